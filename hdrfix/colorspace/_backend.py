"""Backend dispatch for numpy/torch compatibility.

Provides unified math operations that work with both numpy arrays and torch tensors.
Torch is imported lazily on first use to avoid loading it when not needed.

Color samples are arrays shaped (..., 3); the helpers below split and
restack the channel axis so the conversion code never indexes it directly.
"""

import numpy as np
from typing import Any

Array = Any  # numpy.ndarray or torch.Tensor

# Lazy torch reference - only imported when needed
_torch = None


def _get_torch():
    """Get torch module, importing it on first use."""
    global _torch
    if _torch is None:
        import torch
        _torch = torch
    return _torch


def is_torch(x: Array) -> bool:
    """Check if x is a torch tensor."""
    return type(x).__module__.startswith('torch')


# === Channel helpers ===

def channels(x: Array) -> tuple[Array, Array, Array]:
    """Split (..., 3) samples into three (...) channel arrays."""
    return x[..., 0], x[..., 1], x[..., 2]


def stack(arrays: list[Array], axis: int = -1) -> Array:
    """Stack arrays along a new axis."""
    if is_torch(arrays[0]):
        return _get_torch().stack(arrays, dim=axis)
    return np.stack(arrays, axis=axis)


def expand(x: Array) -> Array:
    """Add a trailing axis so per-sample scalars broadcast over channels."""
    return x[..., None]


# === Dispatched operations ===

def cbrt(x: Array) -> Array:
    """Cube root (sign-preserving)."""
    if is_torch(x):
        torch = _get_torch()
        return torch.sign(x) * torch.abs(x).pow(1/3)
    return np.cbrt(x)


def pow(x: Array, exp) -> Array:
    if is_torch(x):
        return _get_torch().pow(x, exp)
    return np.power(x, exp)


def abs(x: Array) -> Array:
    if is_torch(x):
        return _get_torch().abs(x)
    return np.abs(x)


def where(cond: Array, true_val: Array, false_val: Array) -> Array:
    if is_torch(cond):
        return _get_torch().where(cond, true_val, false_val)
    return np.where(cond, true_val, false_val)


def maximum(x: Array, y: Array) -> Array:
    if is_torch(x):
        return _get_torch().maximum(x, y)
    return np.maximum(x, y)


def fmin(x: Array, y: Array) -> Array:
    """Elementwise minimum that prefers the non-NaN operand."""
    if is_torch(x):
        torch = _get_torch()
        if not is_torch(y):
            y = torch.full_like(x, float(y))
        return torch.fmin(x, y)
    return np.fmin(x, y)


def fmax(x: Array, y: Array) -> Array:
    """Elementwise maximum that prefers the non-NaN operand."""
    if is_torch(x):
        torch = _get_torch()
        if not is_torch(y):
            y = torch.full_like(x, float(y))
        return torch.fmax(x, y)
    return np.fmax(x, y)


def zeros_like(x: Array) -> Array:
    if is_torch(x):
        return _get_torch().zeros_like(x)
    return np.zeros_like(x)


def ones_like(x: Array) -> Array:
    if is_torch(x):
        return _get_torch().ones_like(x)
    return np.ones_like(x)


def full_like(x: Array, value: float) -> Array:
    if is_torch(x):
        return _get_torch().full_like(x, value)
    return np.full_like(x, value)


def copy(x: Array) -> Array:
    if is_torch(x):
        return x.clone()
    return np.array(x, copy=True)


def any(x: Array) -> bool:
    if is_torch(x):
        return bool(_get_torch().any(x))
    return bool(np.any(x))
