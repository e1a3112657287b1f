"""Color math for HDR -> SDR conversion.

This module provides:
- PQ and BT.2100 <-> scRGB conversions, sRGB gamma encoding
- OKLab conversions, luminance extraction and lightness rescaling
- Tone mapping operators (linear, Reinhard per channel, Reinhard in OKLab)
- Gamut mapping operators (clip, darken, desaturate)
- Backend-agnostic: works with numpy arrays or torch tensors

Samples are arrays shaped (..., 3).

Example:
    import numpy as np
    from hdrfix.colorspace import linear_rgb_to_oklab, color_desat_oklab

    rgb = np.array([[4.0, 1.0, 0.2]], dtype=np.float32)
    lab = linear_rgb_to_oklab(rgb)
    fitted = color_desat_oklab(rgb)   # brightest channel now 1.0
"""

from .transfer import (
    REC2100_MAX,
    SDR_WHITE,
    pq_to_linear,
    linear_to_pq,
    rec2100_to_scrgb,
    scrgb_to_rec2100,
    linear_to_srgb,
    srgb_to_linear,
    clamp01,
    max_channel,
    exposure_scale,
    apply_exposure,
)

from .oklab import (
    linear_rgb_to_oklab,
    oklab_to_linear_rgb,
    scrgb_to_oklab,
    oklab_to_scrgb,
    luma_oklab,
    luma_scrgb,
    oklab_l_for_luma,
    scale_oklab,
    scale_oklab_desat,
)

from .tonemap import (
    TONE_MAPS,
    get_tone_map,
    reinhard,
    tonemap_linear,
    tonemap_reinhard_rgb,
    tonemap_reinhard_oklab,
)

from .gamut import (
    COLOR_MAPS,
    EPSILON,
    get_color_map,
    bisect_scale,
    close_enough,
    color_clip,
    color_darken_oklab,
    color_desat_oklab,
)

__all__ = [
    # Transfer functions
    'REC2100_MAX',
    'SDR_WHITE',
    'pq_to_linear',
    'linear_to_pq',
    'rec2100_to_scrgb',
    'scrgb_to_rec2100',
    'linear_to_srgb',
    'srgb_to_linear',
    'clamp01',
    'max_channel',
    'exposure_scale',
    'apply_exposure',
    # OKLab
    'linear_rgb_to_oklab',
    'oklab_to_linear_rgb',
    'scrgb_to_oklab',
    'oklab_to_scrgb',
    'luma_oklab',
    'luma_scrgb',
    'oklab_l_for_luma',
    'scale_oklab',
    'scale_oklab_desat',
    # Tone mapping
    'TONE_MAPS',
    'get_tone_map',
    'reinhard',
    'tonemap_linear',
    'tonemap_reinhard_rgb',
    'tonemap_reinhard_oklab',
    # Gamut mapping
    'COLOR_MAPS',
    'EPSILON',
    'get_color_map',
    'bisect_scale',
    'close_enough',
    'color_clip',
    'color_darken_oklab',
    'color_desat_oklab',
]
