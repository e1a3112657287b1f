"""Tone mapping operators: HDR scRGB -> compressed scRGB.

Every operator has the signature ``tonemap(rgb, options) -> rgb`` where
``rgb`` is a (..., 3) array of linear scRGB samples and ``options`` provides
``hdr_max`` (white point in scRGB units) and ``saturation``.

Reinhard, original:
http://www.cmap.polytechnique.fr/%7Epeyre/cours/x2005signal/hdr_photographic.pdf

Extended form used here (https://64.github.io/tonemapping/#reinhard):

    TMO(C) = C * (1 + C / C_white^2) / (1 + C)
"""

from typing import Callable

from ._backend import Array
from .oklab import luma_oklab, scale_oklab_desat, scrgb_to_oklab, oklab_to_scrgb


def reinhard(x: Array, white: float) -> Array:
    """Extended Reinhard curve on a scalar or array."""
    return x * (1.0 + x / (white * white)) / (1.0 + x)


def tonemap_linear(rgb: Array, options) -> Array:
    """No compression."""
    return rgb


def tonemap_reinhard_rgb(rgb: Array, options) -> Array:
    """Reinhard applied to R, G and B separately.

    Very bright colors desaturate gradually, at the cost of some hue shift.
    """
    return reinhard(rgb, options.hdr_max)


def tonemap_reinhard_oklab(rgb: Array, options) -> Array:
    """Reinhard on luminance, with the color scaled in OKLab.

    Keeps hue much better than the per-channel variant. Chroma follows the
    lightness compression, tuned by ``options.saturation``.
    """
    lab = scrgb_to_oklab(rgb)
    luma_in = luma_oklab(lab)
    luma_out = reinhard(luma_in, options.hdr_max)
    return oklab_to_scrgb(scale_oklab_desat(lab, luma_out, options.saturation))


TONE_MAPS: dict[str, Callable] = {
    'linear': tonemap_linear,
    'reinhard': tonemap_reinhard_oklab,
    'reinhard-rgb': tonemap_reinhard_rgb,
}


def get_tone_map(name: str) -> Callable:
    """Look up a tone map operator by its configuration name."""
    try:
        return TONE_MAPS[name]
    except KeyError:
        raise ValueError(
            f"Unknown tone map: {name!r} (expected one of {', '.join(TONE_MAPS)})"
        ) from None
