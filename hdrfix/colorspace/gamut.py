"""Gamut mapping for out-of-range scRGB samples.

After tone mapping some samples still have channels above 1.0 (too bright
for SDR) or below 0.0 (outside the sRGB gamut).

Strategies:
- clip: Hard-clip RGB to [0,1], fast but can shift hue and saturation
- darken: Scale OKLab L, a and b together until the brightest channel is 1.0
- desaturate: Scale only OKLab a and b (chroma) until the brightest channel is 1.0

Both searches are a bisection over a scale factor in [0,1], run for every
out-of-range sample at once until the brightest channel is within EPSILON
of 1.0.
"""
from typing import Callable

from . import _backend as B
from ._backend import Array
from .oklab import scrgb_to_oklab, oklab_to_scrgb
from .transfer import clamp01, max_channel

EPSILON = 0.001

# Step cap for bisect_scale. The bracket is far below float32 resolution
# long before this, so only samples with no match in [lo, hi] run to the cap.
SEARCH_STEPS = 48


def close_enough(a: Array, b) -> Array:
    """Three-way compare with tolerance: -1 (less), 0 (equal) or 1 (greater).

    NaN compares as greater.
    """
    delta = a - b
    greater = B.where(delta < 0, B.full_like(delta, -1), B.full_like(delta, 1))
    return B.where(B.abs(delta) < EPSILON, B.zeros_like(delta), greater)


def bisect_scale(
    source: Array,
    apply: Callable[[Array, Array], Array],
    comparator: Callable[[Array], Array],
    lo: float = 0.0,
    hi: float = 1.0,
) -> Array:
    """Search a per-sample scale factor in [lo, hi] by bisection.

    Args:
        source: Samples (N, 3) the scale is applied to
        apply: ``apply(source, scale) -> result`` with scale shaped (N,)
        comparator: Maps results to -1 (scale too small), 0 (close enough)
            or 1 (scale too large)

    Returns:
        For each sample, the first midpoint result the comparator accepts.
        Samples with no match in [lo, hi] get the result at the last
        midpoint, next to the bracket edge.
    """
    lo = B.full_like(source[..., 0], lo)
    hi = B.full_like(source[..., 0], hi)
    done = B.zeros_like(lo) > 0
    result = None
    trial = None

    for _ in range(SEARCH_STEPS):
        mid = (lo + hi) / 2
        trial = apply(source, mid)
        order = comparator(trial)

        finished = ~done & (order == 0)
        result = trial if result is None else B.where(B.expand(finished), trial, result)
        done = done | finished
        if not B.any(~done):
            break

        lo = B.where(~done & (order < 0), mid, lo)
        hi = B.where(~done & (order > 0), mid, hi)

    return B.where(B.expand(done), result, trial)


def _darken_oklab(lab: Array, brightness: Array) -> Array:
    return oklab_to_scrgb(lab * B.expand(brightness))


def _desat_oklab(lab: Array, saturation: Array) -> Array:
    L, a, b = B.channels(lab)
    return oklab_to_scrgb(B.stack([L, a * saturation, b * saturation], axis=-1))


def _compare_to_white(rgb: Array) -> Array:
    return close_enough(max_channel(rgb), 1.0)


def _search_out_of_gamut(rgb: Array, apply: Callable) -> Array:
    too_bright = max_channel(rgb) > 1.0
    if not B.any(too_bright):
        return rgb

    lab = scrgb_to_oklab(rgb[too_bright])
    fixed = clamp01(bisect_scale(lab, apply, _compare_to_white))

    result = B.copy(rgb)
    result[too_bright] = fixed
    return result


# === Color map operators ===

def color_clip(rgb: Array) -> Array:
    """Clamp every channel to [0,1] independently."""
    return clamp01(rgb)


def color_darken_oklab(rgb: Array) -> Array:
    """Darken too-bright samples in OKLab until they fit; others pass through."""
    return _search_out_of_gamut(rgb, _darken_oklab)


def color_desat_oklab(rgb: Array) -> Array:
    """Desaturate too-bright samples in OKLab until they fit; others pass through."""
    return _search_out_of_gamut(rgb, _desat_oklab)


COLOR_MAPS: dict[str, Callable] = {
    'clip': color_clip,
    'darken': color_darken_oklab,
    'desaturate': color_desat_oklab,
}


def get_color_map(name: str) -> Callable:
    """Look up a color map operator by its configuration name."""
    try:
        return COLOR_MAPS[name]
    except KeyError:
        raise ValueError(
            f"Unknown color map: {name!r} (expected one of {', '.join(COLOR_MAPS)})"
        ) from None
