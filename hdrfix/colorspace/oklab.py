"""OKLab color space conversions on linear scRGB samples.

Reference: https://bottosson.github.io/posts/oklab/

Samples are arrays shaped (..., 3). Linear input is extended-range (scRGB):
values above 1.0 are brighter than SDR white and the cube root is
sign-preserving, so negative channels from wide-gamut sources survive the
round trip.

All functions accept numpy arrays or torch tensors.
"""

from . import _backend as B
from ._backend import Array

# === OKLab <-> Linear RGB matrices ===
# From Björn Ottosson's reference implementation

# Linear RGB -> LMS
_RGB_TO_LMS = (
    (0.4122214708, 0.5363325363, 0.0514459929),
    (0.2119034982, 0.6806995451, 0.1073969566),
    (0.0883024619, 0.2817188376, 0.6299787005),
)

# LMS cube root -> OKLab
_LMS_TO_OKLAB = (
    (0.2104542553, 0.7936177850, -0.0040720468),
    (1.9779984951, -2.4285922050, 0.4505937099),
    (0.0259040371, 0.7827717662, -0.8086757660),
)

# OKLab -> LMS cube root
_OKLAB_TO_LMS = (
    (1.0, 0.3963377774, 0.2158037573),
    (1.0, -0.1055613458, -0.0638541728),
    (1.0, -0.0894841775, -1.2914855480),
)

# LMS -> Linear RGB
_LMS_TO_RGB = (
    (+4.0767416621, -3.3077115913, +0.2309699292),
    (-1.2684380046, +2.6097574011, -0.3413193965),
    (-0.0041960863, -0.7034186147, +1.7076147010),
)


# === Core Conversions ===

def linear_rgb_to_oklab(rgb: Array) -> Array:
    """Linear RGB (..., 3) -> OKLab (..., 3) via LMS intermediate."""
    r, g, b = B.channels(rgb)

    l = _RGB_TO_LMS[0][0]*r + _RGB_TO_LMS[0][1]*g + _RGB_TO_LMS[0][2]*b
    m = _RGB_TO_LMS[1][0]*r + _RGB_TO_LMS[1][1]*g + _RGB_TO_LMS[1][2]*b
    s = _RGB_TO_LMS[2][0]*r + _RGB_TO_LMS[2][1]*g + _RGB_TO_LMS[2][2]*b

    l_, m_, s_ = B.cbrt(l), B.cbrt(m), B.cbrt(s)

    L = _LMS_TO_OKLAB[0][0]*l_ + _LMS_TO_OKLAB[0][1]*m_ + _LMS_TO_OKLAB[0][2]*s_
    a = _LMS_TO_OKLAB[1][0]*l_ + _LMS_TO_OKLAB[1][1]*m_ + _LMS_TO_OKLAB[1][2]*s_
    b_ = _LMS_TO_OKLAB[2][0]*l_ + _LMS_TO_OKLAB[2][1]*m_ + _LMS_TO_OKLAB[2][2]*s_

    return B.stack([L, a, b_], axis=-1)


def oklab_to_linear_rgb(lab: Array) -> Array:
    """OKLab (..., 3) -> Linear RGB (..., 3) via LMS intermediate."""
    L, a, b = B.channels(lab)

    l_ = L + _OKLAB_TO_LMS[0][1] * a + _OKLAB_TO_LMS[0][2] * b
    m_ = L + _OKLAB_TO_LMS[1][1] * a + _OKLAB_TO_LMS[1][2] * b
    s_ = L + _OKLAB_TO_LMS[2][1] * a + _OKLAB_TO_LMS[2][2] * b

    l, m, s = l_**3, m_**3, s_**3

    r = _LMS_TO_RGB[0][0]*l + _LMS_TO_RGB[0][1]*m + _LMS_TO_RGB[0][2]*s
    g = _LMS_TO_RGB[1][0]*l + _LMS_TO_RGB[1][1]*m + _LMS_TO_RGB[1][2]*s
    b_ = _LMS_TO_RGB[2][0]*l + _LMS_TO_RGB[2][1]*m + _LMS_TO_RGB[2][2]*s

    return B.stack([r, g, b_], axis=-1)


# === Luminance ===

def luma_oklab(lab: Array) -> Array:
    """Linear luminance of OKLab samples, shape (...).

    OKLab's L is not linear, so the sample is desaturated to a gray of the
    same lightness, converted back to linear RGB, and one channel is taken.
    """
    L = lab[..., 0]
    zero = B.zeros_like(L)
    gray = oklab_to_linear_rgb(B.stack([L, zero, zero], axis=-1))
    return gray[..., 0]


def luma_scrgb(rgb: Array) -> Array:
    """Linear luminance of scRGB samples, shape (...)."""
    return luma_oklab(linear_rgb_to_oklab(rgb))


def oklab_l_for_luma(luma: Array) -> Array:
    """OKLab lightness of the gray whose linear channels all equal luma."""
    return linear_rgb_to_oklab(B.stack([luma, luma, luma], axis=-1))[..., 0]


# === Lightness rescaling ===

def scale_oklab(lab: Array, luma_out: Array) -> Array:
    """Rescale L, a and b together so the sample's luminance becomes luma_out.

    Samples with L == 0 are returned unchanged.
    """
    L = lab[..., 0]
    black = L == 0
    L_safe = B.where(black, B.ones_like(L), L)
    gray_l = oklab_l_for_luma(luma_out)
    ratio = B.where(black, B.ones_like(L), gray_l / L_safe)
    return lab * B.expand(ratio)


def scale_oklab_desat(lab: Array, luma_out: Array, saturation: float) -> Array:
    """Move L to the lightness of luma_out and scale chroma to match.

    OKLab coordinates scale cubically with linear light, so chroma is scaled
    by (L_out / L_in) ** (3 / saturation):

        1.0 -> desaturate linearly with the luminance compression ratio
        0.5 -> desaturate more aggressively
        2.0 -> saturate more aggressively

    Samples with L == 0 are returned unchanged.
    """
    L, a, b = B.channels(lab)
    black = L == 0
    L_safe = B.where(black, B.ones_like(L), L)
    l_out = oklab_l_for_luma(luma_out)
    ratio = B.pow(l_out / L_safe, 3.0 / saturation)
    scaled = B.stack([l_out, a * ratio, b * ratio], axis=-1)
    return B.where(B.expand(black), lab, scaled)


# === Convenience Composites ===

def scrgb_to_oklab(rgb: Array) -> Array:
    """scRGB -> OKLab. scRGB shares sRGB primaries, only the range differs."""
    return linear_rgb_to_oklab(rgb)


def oklab_to_scrgb(lab: Array) -> Array:
    """OKLab -> scRGB."""
    return oklab_to_linear_rgb(lab)
