"""Tests for OKLab conversions and lightness rescaling."""

import numpy as np
import pytest

from hdrfix.colorspace import (
    linear_rgb_to_oklab,
    oklab_to_linear_rgb,
    luma_oklab,
    luma_scrgb,
    oklab_l_for_luma,
    scale_oklab,
    scale_oklab_desat,
)


class TestBasicConversions:
    """Test basic color space conversions."""

    def test_black(self):
        """Black: RGB (0,0,0) should give L=0, a=b=0."""
        lab = linear_rgb_to_oklab(np.zeros((1, 3)))
        np.testing.assert_allclose(lab, [[0, 0, 0]], atol=1e-10)

    def test_white(self):
        """White: RGB (1,1,1) should give L=1 and no chroma."""
        lab = linear_rgb_to_oklab(np.ones((1, 3)))
        np.testing.assert_allclose(lab, [[1, 0, 0]], atol=1e-4)

    def test_grays_have_no_chroma(self):
        grays = np.linspace(0, 5, 11)[:, None] * np.ones((1, 3))
        lab = linear_rgb_to_oklab(grays)
        np.testing.assert_allclose(lab[:, 1:], 0, atol=1e-4)

    def test_shape_preserved(self):
        rgb = np.random.default_rng(1).random((4, 5, 3)).astype(np.float32)
        lab = linear_rgb_to_oklab(rgb)
        assert lab.shape == (4, 5, 3)
        assert lab.dtype == np.float32


class TestRoundTrip:
    """Linear RGB -> OKLab -> Linear RGB."""

    def test_roundtrip_primaries(self):
        colors = np.array([
            [1, 0, 0],
            [0, 1, 0],
            [0, 0, 1],
            [1, 1, 0],
            [1, 0, 1],
            [0, 1, 1],
        ], dtype=np.float64)
        back = oklab_to_linear_rgb(linear_rgb_to_oklab(colors))
        np.testing.assert_allclose(back, colors, atol=1e-4)

    def test_roundtrip_extended_range(self):
        """scRGB values above 1 and slightly below 0 survive the round trip."""
        rng = np.random.default_rng(42)
        colors = rng.uniform(-0.2, 8.0, size=(500, 3))
        back = oklab_to_linear_rgb(linear_rgb_to_oklab(colors))
        np.testing.assert_allclose(back, colors, atol=1e-4)

    def test_roundtrip_float32(self):
        rng = np.random.default_rng(7)
        colors = rng.random((200, 3)).astype(np.float32)
        back = oklab_to_linear_rgb(linear_rgb_to_oklab(colors))
        np.testing.assert_allclose(back, colors, atol=1e-4)


class TestLuminance:

    def test_gray_luma_is_channel_value(self):
        values = np.array([0.0, 0.18, 0.5, 1.0, 4.0, 125.0])
        grays = values[:, None] * np.ones((1, 3))
        np.testing.assert_allclose(luma_scrgb(grays), values, rtol=1e-4, atol=1e-8)

    def test_luma_ignores_chroma(self):
        """Luminance only depends on OKLab L."""
        lab = np.array([[0.7, 0.1, -0.05], [0.7, 0.0, 0.0], [0.7, -0.08, 0.12]])
        luma = luma_oklab(lab)
        np.testing.assert_allclose(luma, luma[1], rtol=1e-12)

    def test_l_for_luma_inverts_luma(self):
        L = np.array([0.1, 0.4, 0.8, 1.0, 2.0])
        lab = np.stack([L, np.zeros_like(L), np.zeros_like(L)], axis=-1)
        np.testing.assert_allclose(oklab_l_for_luma(luma_oklab(lab)), L, rtol=1e-6)


class TestScaleOklab:

    def test_scale_reaches_target_luma(self):
        lab = linear_rgb_to_oklab(np.array([[0.8, 0.4, 0.1], [2.0, 1.0, 3.0]]))
        target = np.array([0.25, 0.5])
        scaled = scale_oklab(lab, target)
        np.testing.assert_allclose(luma_oklab(scaled), target, rtol=1e-6)

    def test_scale_keeps_hue_direction(self):
        lab = np.array([[0.6, 0.1, -0.05]])
        scaled = scale_oklab(lab, np.array([0.05]))
        ratio = scaled[0, 1] / scaled[0, 2]
        assert ratio == pytest.approx(lab[0, 1] / lab[0, 2])

    def test_scale_black_unchanged(self):
        lab = np.array([[0.0, 0.0, 0.0]])
        scaled = scale_oklab(lab, np.array([0.5]))
        np.testing.assert_array_equal(scaled, lab)

    def test_desat_ratio_is_cubic(self):
        """With saturation 1, chroma scales by (L_out / L_in) ** 3."""
        lab = np.array([[0.8, 0.1, 0.05]])
        luma_out = np.array([0.2])
        out = scale_oklab_desat(lab, luma_out, 1.0)

        l_out = oklab_l_for_luma(luma_out)[0]
        ratio = (l_out / 0.8) ** 3
        np.testing.assert_allclose(out[0], [l_out, 0.1 * ratio, 0.05 * ratio], rtol=1e-9)

    def test_desat_lower_saturation_removes_more_chroma(self):
        lab = np.array([[0.8, 0.1, 0.05]])
        luma_out = np.array([0.2])
        gentle = scale_oklab_desat(lab, luma_out, 2.0)
        harsh = scale_oklab_desat(lab, luma_out, 0.5)
        assert abs(harsh[0, 1]) < abs(gentle[0, 1])

    def test_desat_black_unchanged(self):
        lab = np.array([[0.0, 0.0, 0.0], [0.5, 0.1, 0.1]])
        out = scale_oklab_desat(lab, np.array([0.3, 0.1]), 1.0)
        np.testing.assert_array_equal(out[0], lab[0])
        assert np.isfinite(out).all()


class TestTorchBackend:
    """Test torch tensor support (if torch available)."""

    @pytest.fixture
    def torch(self):
        pytest.importorskip('torch')
        import torch
        return torch

    def test_torch_roundtrip(self, torch):
        rgb = torch.tensor([[0.7, 0.2, 0.1], [2.0, 2.0, 2.0]], dtype=torch.float64)
        lab = linear_rgb_to_oklab(rgb)
        back = oklab_to_linear_rgb(lab)

        assert isinstance(lab, torch.Tensor)
        np.testing.assert_allclose(back.numpy(), rgb.numpy(), atol=1e-4)

    def test_torch_matches_numpy(self, torch):
        rgb = np.array([[0.7, 0.2, 0.1], [0.0, 0.5, 1.5]])
        expected = luma_scrgb(rgb)
        actual = luma_scrgb(torch.from_numpy(rgb))
        np.testing.assert_allclose(actual.numpy(), expected, rtol=1e-6)
