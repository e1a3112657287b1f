"""Test configuration for hdrfix."""

import numpy as np
import pytest
from PIL import Image

from hdrfix import defaults
from hdrfix.buffer import PixelBuffer, PixelFormat


def _float_buffer(samples, width=None, height=1):
    samples = np.asarray(samples, dtype=np.float32).reshape(-1, 3)
    if width is None:
        width = len(samples) // height
    rgba = np.ones((len(samples), 4), dtype=np.float32)
    rgba[:, :3] = samples
    return PixelBuffer(width, height, PixelFormat.FLOAT32, rgba)


@pytest.fixture
def float_buffer():
    """Factory for FLOAT32 buffers holding (N, 3) linear samples, alpha 1."""
    return _float_buffer


@pytest.fixture
def gray_buffer():
    """Factory for FLOAT32 buffers of neutral grays."""
    def make(values, width=None, height=1):
        values = np.asarray(values, dtype=np.float32).reshape(-1, 1)
        return _float_buffer(np.repeat(values, 3, axis=1), width, height)
    return make


@pytest.fixture
def white_hdr8():
    """2x2 HDR8 buffer at full PQ signal (10000 nits)."""
    return PixelBuffer(2, 2, PixelFormat.HDR8, bytes([255] * 12))


@pytest.fixture
def small_chunks(monkeypatch):
    """Force many tiny work items so runs really go through the thread pool."""
    monkeypatch.setattr(defaults, "CHUNK_PIXELS", 7)
    return 7


@pytest.fixture
def hdr_png(tmp_path):
    """Factory writing an 8-bit RGB PNG of PQ-encoded pixels; returns its path."""
    def write(pixels, name="input.png"):
        path = tmp_path / name
        Image.fromarray(np.asarray(pixels, dtype=np.uint8)).save(path)
        return path
    return write
