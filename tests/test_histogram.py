"""Tests for luminance histograms and lazy evaluation."""

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from hdrfix.colorspace import luma_scrgb
from hdrfix.errors import EmptyHistogramError
from hdrfix.histogram import Histogram, Lazy, LazyHistogram
from hdrfix.options import Level


class TestHistogram:

    def test_sorted_gray_luminance(self, gray_buffer):
        hist = Histogram(gray_buffer([0.5, 0.1, 0.9, 0.3], width=2, height=2))
        assert len(hist) == 4
        np.testing.assert_allclose(hist.luma_vals, [0.1, 0.3, 0.5, 0.9], rtol=1e-4)

    def test_matches_pixel_luminance(self, float_buffer, small_chunks):
        """Same multiset as the per-pixel luminance, ascending."""
        rng = np.random.default_rng(5)
        samples = rng.uniform(0, 4, size=(50, 3)).astype(np.float32)
        hist = Histogram(float_buffer(samples, width=10, height=5), num_threads=3)

        assert np.all(np.diff(hist.luma_vals) >= 0)
        np.testing.assert_allclose(hist.luma_vals, np.sort(luma_scrgb(samples)), rtol=1e-5)

    def test_percentile_index(self):
        hist = Histogram.from_values(np.arange(11))
        assert hist.percentile(0) == 0.0
        assert hist.percentile(10) == 1.0
        assert hist.percentile(50) == 5.0
        assert hist.percentile(95) == 9.0  # floor(9.5)
        assert hist.percentile(100) == 10.0

    def test_percentile_is_member(self):
        values = np.random.default_rng(9).random(37).astype(np.float32)
        hist = Histogram.from_values(values)
        for p in (0, 12.5, 33, 50, 99.9, 100):
            assert np.float32(hist.percentile(p)) in values

    def test_single_value(self):
        hist = Histogram.from_values([0.42])
        assert hist.percentile(0) == hist.percentile(100) == pytest.approx(0.42)

    def test_nan_sorted_last(self):
        hist = Histogram.from_values([0.3, np.nan, 0.1])
        assert hist.percentile(0) == pytest.approx(0.1)
        assert hist.percentile(50) == pytest.approx(0.3)

    def test_empty(self):
        with pytest.raises(EmptyHistogramError):
            Histogram.from_values([])


class TestLazy:

    def test_evaluated_once(self):
        calls = []

        def build():
            calls.append(1)
            return 42

        lazy = Lazy(build)
        assert not lazy.is_evaluated
        assert calls == []
        assert lazy.force() == 42
        assert lazy.force() == 42
        assert lazy.is_evaluated
        assert len(calls) == 1

    def test_concurrent_force(self):
        calls = []
        lock = threading.Lock()

        def build():
            with lock:
                calls.append(1)
            time.sleep(0.05)
            return object()

        lazy = Lazy(build)
        with ThreadPoolExecutor(max_workers=8) as executor:
            results = list(executor.map(lambda _: lazy.force(), range(16)))

        assert len(calls) == 1
        assert all(r is results[0] for r in results)

    def test_failure_can_retry(self):
        attempts = []

        def build():
            attempts.append(1)
            if len(attempts) == 1:
                raise RuntimeError("first try fails")
            return "ok"

        lazy = Lazy(build)
        with pytest.raises(RuntimeError):
            lazy.force()
        assert not lazy.is_evaluated
        assert lazy.force() == "ok"


class TestLazyHistogram:

    def test_scalar_levels_never_build(self):
        def build():
            raise AssertionError("histogram should not be built")

        lazy = LazyHistogram(build)
        assert lazy.level(Level.scalar(0.25)) == 0.25
        assert lazy.level(Level.scalar(1.0)) == 1.0
        assert not lazy.is_evaluated

    def test_percentiles_share_one_build(self):
        calls = []

        def build():
            calls.append(1)
            return Histogram.from_values(np.linspace(0, 1, 101))

        lazy = LazyHistogram(build)
        assert lazy.level(Level.percentile(10)) == pytest.approx(0.1)
        assert lazy.level(Level.percentile(90)) == pytest.approx(0.9)
        assert len(calls) == 1
