"""Transfer functions and primaries conversions.

HDR screenshots arrive either as BT.2100 PQ-encoded 8-bit RGB (PNG) or as
linear scRGB floats (JPEG XR). Everything downstream works in linear scRGB,
where 1.0 is SDR reference white (80 nits) and values may exceed 1.0 or go
negative for colors outside the sRGB gamut.

All functions accept numpy arrays or torch tensors shaped (..., 3) unless
noted otherwise.
"""

import numpy as np

from . import _backend as B
from ._backend import Array

REC2100_MAX = 10000.0  # nits at 1.0 in BT.2100 linear
SDR_WHITE = 80.0  # nits at 1.0 in scRGB

# SMPTE ST 2084
PQ_M1 = 0.1593017578125
PQ_M2 = 78.84375
PQ_C1 = 0.8359375
PQ_C2 = 18.8515625
PQ_C3 = 18.6875

SRGB_LINEAR_THRESHOLD = 0.0031308
SRGB_GAMMA_THRESHOLD = 0.04045

# BT.2020 primaries -> BT.709 primaries, both linear
_REC2100_TO_SCRGB = (
    (1.6605, -0.5876, -0.0728),
    (-0.1246, 1.1329, -0.0083),
    (-0.0182, -0.1006, 1.1187),
)
_SCRGB_TO_REC2100 = tuple(
    tuple(row) for row in np.linalg.inv(np.array(_REC2100_TO_SCRGB)).tolist()
)


def _apply_matrix(m, rgb: Array) -> Array:
    r, g, b = B.channels(rgb)
    return B.stack([
        m[0][0]*r + m[0][1]*g + m[0][2]*b,
        m[1][0]*r + m[1][1]*g + m[1][2]*b,
        m[2][0]*r + m[2][1]*g + m[2][2]*b,
    ], axis=-1)


# === PQ ===

def pq_to_linear(v: Array) -> Array:
    """Inverse PQ curve: encoded [0,1] -> linear [0,1] of 10000 nits.

    Not clamped; encoded values above 1.0 produce values above 1.0.
    """
    powered = B.pow(v, 1.0 / PQ_M2)
    num = B.maximum(powered - PQ_C1, B.zeros_like(powered))
    return B.pow(num / (PQ_C2 - PQ_C3 * powered), 1.0 / PQ_M1)


def linear_to_pq(v: Array) -> Array:
    """Forward PQ curve: linear [0,1] of 10000 nits -> encoded [0,1]."""
    powered = B.pow(B.maximum(v, B.zeros_like(v)), PQ_M1)
    return B.pow((PQ_C1 + PQ_C2 * powered) / (1.0 + PQ_C3 * powered), PQ_M2)


# === Primaries ===

def rec2100_to_scrgb(v: Array, scale: float = REC2100_MAX / SDR_WHITE) -> Array:
    """Linear BT.2100 (1.0 = 10000 nits) -> linear scRGB (1.0 = 80 nits)."""
    return _apply_matrix(_REC2100_TO_SCRGB, v * scale)


def scrgb_to_rec2100(v: Array, scale: float = REC2100_MAX / SDR_WHITE) -> Array:
    """Linear scRGB -> linear BT.2100; inverse of rec2100_to_scrgb."""
    return _apply_matrix(_SCRGB_TO_REC2100, v) / scale


# === sRGB gamma ===

def linear_to_srgb(x: Array) -> Array:
    """Linear -> sRGB gamma encoding, clipped to [0,1].

    The upper segment is written as 1.055 * (x^(1/2.4) - 1) + 1, which is
    algebraically 1.055 * x^(1/2.4) - 0.055 but keeps 1.0 -> 1.0 exact so
    full white survives truncation to 8 bits.
    """
    low = x * 12.92
    powered = B.pow(B.maximum(x, B.full_like(x, SRGB_LINEAR_THRESHOLD)), 1 / 2.4)
    high = (powered - 1.0) * 1.055 + 1.0
    return clamp01(B.where(x < SRGB_LINEAR_THRESHOLD, low, high))


def srgb_to_linear(x: Array) -> Array:
    """sRGB -> Linear RGB gamma decoding (per channel)."""
    low = x / 12.92
    high = B.pow((B.maximum(x, B.full_like(x, SRGB_GAMMA_THRESHOLD)) + 0.055) / 1.055, 2.4)
    return B.where(x <= SRGB_GAMMA_THRESHOLD, low, high)


# === Small helpers ===

def clamp01(x: Array) -> Array:
    """Clamp to [0,1]; NaN clamps to 0."""
    return B.fmin(B.fmax(x, 0.0), 1.0)


def max_channel(x: Array) -> Array:
    """Largest of the three channels, ignoring NaN. Shape (...)."""
    r, g, b = B.channels(x)
    return B.fmax(B.fmax(r, g), b)


def exposure_scale(stops: float) -> float:
    """Linear multiplier for an exposure adjustment in stops."""
    return 2.0 ** stops


def apply_exposure(v: Array, stops: float) -> Array:
    return v * exposure_scale(stops)
