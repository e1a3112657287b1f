"""Tests for Level parsing and conversion settings."""

import dataclasses

import pytest

from hdrfix.colorspace import (
    color_clip,
    color_desat_oklab,
    tonemap_linear,
    tonemap_reinhard_oklab,
)
from hdrfix.errors import ConfigError, LevelParseError
from hdrfix.options import ConvertSettings, Level, LevelKind


class TestLevel:

    @pytest.mark.parametrize("text, kind, value", [
        ("50%", LevelKind.PERCENTILE, 50.0),
        ("99.9%", LevelKind.PERCENTILE, 99.9),
        ("0%", LevelKind.PERCENTILE, 0.0),
        ("100%", LevelKind.PERCENTILE, 100.0),
        ("0.25", LevelKind.SCALAR, 0.25),
        ("1000", LevelKind.SCALAR, 1000.0),
        ("-0.5", LevelKind.SCALAR, -0.5),
    ])
    def test_parse(self, text, kind, value):
        level = Level.parse(text)
        assert level.kind is kind
        assert level.value == value

    @pytest.mark.parametrize("text", ["", "%", "abc", "50%%", "12x", "nan", "inf", "-inf%", "150%", "-1%"])
    def test_parse_invalid(self, text):
        with pytest.raises(LevelParseError):
            Level.parse(text)

    def test_parse_error_is_value_error(self):
        with pytest.raises(ValueError):
            Level.parse("bright")

    def test_str(self):
        assert str(Level.parse("99.5%")) == "99.5%"
        assert str(Level.scalar(0.25)) == "0.25"

    def test_is_percentile(self):
        assert Level.percentile(5).is_percentile
        assert not Level.scalar(5).is_percentile


class TestConvertSettings:

    def test_defaults(self):
        settings = ConvertSettings()
        assert settings.exposure == 0.0
        assert settings.hdr_max == Level.percentile(100)
        assert settings.saturation == 1.0
        assert settings.tone_map == "reinhard"
        assert settings.color_map == "desaturate"
        assert settings.levels_min == Level.scalar(0.0)
        assert settings.levels_max == Level.scalar(1.0)
        assert settings.pre_gamma == 1.0
        assert settings.post_gamma == 1.0

    def test_frozen(self):
        settings = ConvertSettings()
        with pytest.raises(dataclasses.FrozenInstanceError):
            settings.exposure = 1.0

    def test_from_mapping(self):
        settings = ConvertSettings.from_mapping({
            "exposure": "-1.5",
            "hdr-max": "1000",
            "levels-max": "99.5%",
            "tone-map": "reinhard-rgb",
            "color_map": "clip",
            "saturation": None,
        })
        assert settings.exposure == -1.5
        assert settings.hdr_max == Level.scalar(1000)
        assert settings.levels_max == Level.percentile(99.5)
        assert settings.tone_map == "reinhard-rgb"
        assert settings.color_map == "clip"
        assert settings.saturation == 1.0

    @pytest.mark.parametrize("values", [
        {"exposure": "abc"},
        {"exposure": float("inf")},
        {"saturation": 0},
        {"pre_gamma": -1},
        {"post_gamma": float("nan")},
        {"hdr_max": "0"},
        {"levels_min": "high"},
        {"tone_map": "filmic"},
        {"color_map": "compress"},
        {"brightness": 2},
    ])
    def test_invalid(self, values):
        with pytest.raises(ConfigError):
            ConvertSettings.from_mapping(values)

    def test_hdr_max_scalar(self):
        """Nits to scRGB units, then the exposure multiplier."""
        assert ConvertSettings(hdr_max=Level.scalar(160)).hdr_max_scalar() == 2.0
        assert ConvertSettings(hdr_max=Level.scalar(160), exposure=1.0).hdr_max_scalar() == 4.0

    def test_resolve(self):
        options = ConvertSettings(tone_map="linear", color_map="clip").resolve(3.5)
        assert options.hdr_max == 3.5
        assert options.tone_map is tonemap_linear
        assert options.color_map is color_clip
        assert options.levels_min == Level.scalar(0.0)

    def test_resolve_defaults(self):
        options = ConvertSettings().resolve(1.0)
        assert options.tone_map is tonemap_reinhard_oklab
        assert options.color_map is color_desat_oklab
