"""Luminance histograms for percentile-based levels.

A Histogram is the sorted luminance of every pixel in a buffer. Building one
costs a full pass over the image plus a sort, so the pipeline wraps it in a
LazyHistogram that only builds it when a percentile level asks for it.
"""

from __future__ import annotations

import threading
from typing import Callable, Generic, TypeVar

import numpy as np

from hdrfix.buffer import PixelBuffer, run_chunked
from hdrfix.colorspace.oklab import luma_scrgb
from hdrfix.errors import EmptyHistogramError
from hdrfix.options import Level

T = TypeVar("T")


class Histogram:
    """Ascending per-pixel luminance of one buffer snapshot.

    NaN luminance values are kept; numpy's sort places them after every
    number, so they only matter for percentiles near 100.
    """

    def __init__(self, source: PixelBuffer, num_threads: int | None = None):
        luma = np.empty(source.pixel_count, dtype=np.float32)
        samples = source.map(luma_scrgb)

        def work(start: int, stop: int) -> None:
            luma[start:stop] = samples.evaluate(start, stop)

        run_chunked(source.pixel_count, work, num_threads)
        self.luma_vals = self._sorted(luma)

    @classmethod
    def from_values(cls, values) -> Histogram:
        """Histogram over raw luminance values (mostly for tests)."""
        histogram = cls.__new__(cls)
        histogram.luma_vals = cls._sorted(np.asarray(values, dtype=np.float32).reshape(-1))
        return histogram

    @staticmethod
    def _sorted(values: np.ndarray) -> np.ndarray:
        if values.size == 0:
            raise EmptyHistogramError("Histogram needs at least one pixel")
        return np.sort(values, kind="stable")

    def __len__(self) -> int:
        return len(self.luma_vals)

    def percentile(self, target: float) -> float:
        """Luminance at ``floor((n - 1) * target / 100)`` in sorted order."""
        max_index = len(self.luma_vals) - 1
        index = int(max_index * target / 100.0)
        index = min(max(index, 0), max_index)
        return float(self.luma_vals[index])


class Lazy(Generic[T]):
    """Value computed on first use, at most once.

    ``force()`` may be called from several threads; the first caller builds
    the value under a lock and the rest wait for it.
    """

    def __init__(self, func: Callable[[], T]):
        self._func: Callable[[], T] | None = func
        self._value: T | None = None
        self._evaluated = False
        self._lock = threading.Lock()

    @property
    def is_evaluated(self) -> bool:
        return self._evaluated

    def force(self) -> T:
        if not self._evaluated:
            with self._lock:
                if not self._evaluated:
                    self._value = self._func()
                    self._evaluated = True
                    self._func = None
        return self._value


class LazyHistogram(Lazy[Histogram]):
    """Deferred histogram that resolves Level values."""

    def level(self, level: Level) -> float:
        """Scalar levels pass through; percentiles force the histogram."""
        if level.is_percentile:
            return self.force().percentile(level.value)
        return level.value
