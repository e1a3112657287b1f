"""Conversion settings.

ConvertSettings holds the user-facing values (as given on the command line
or by a caller). Options is the resolved form the per-pixel code uses: the
HDR white point in scRGB units and the operator functions themselves.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass, field, fields
from typing import Any, Callable, Mapping

from hdrfix import defaults
from hdrfix.colorspace.gamut import COLOR_MAPS, get_color_map
from hdrfix.colorspace.tonemap import TONE_MAPS, get_tone_map
from hdrfix.colorspace.transfer import SDR_WHITE, exposure_scale
from hdrfix.errors import ConfigError, LevelParseError


class LevelKind(enum.Enum):
    SCALAR = "scalar"
    PERCENTILE = "percentile"


@dataclass(frozen=True)
class Level:
    """An absolute value, or a percentile (0-100) of an image histogram."""

    kind: LevelKind
    value: float

    @classmethod
    def scalar(cls, value: float) -> Level:
        return cls(LevelKind.SCALAR, float(value))

    @classmethod
    def percentile(cls, value: float) -> Level:
        return cls(LevelKind.PERCENTILE, float(value))

    @classmethod
    def parse(cls, source: str) -> Level:
        """Parse "50%" as a percentile and anything else as a scalar.

        Raises:
            LevelParseError: Not a finite number, or a percentile outside 0-100
        """
        is_percentile = source.endswith("%")
        text = source[:-1] if is_percentile else source
        try:
            value = float(text)
        except ValueError as e:
            raise LevelParseError(f"Invalid level {source!r}: {e}") from e

        if not math.isfinite(value):
            raise LevelParseError(f"Invalid level {source!r}: not finite")
        if is_percentile:
            if not 0.0 <= value <= 100.0:
                raise LevelParseError(f"Invalid level {source!r}: percentile outside 0-100")
            return cls.percentile(value)
        return cls.scalar(value)

    @property
    def is_percentile(self) -> bool:
        return self.kind is LevelKind.PERCENTILE

    def __str__(self) -> str:
        if self.is_percentile:
            return f"{self.value:g}%"
        return f"{self.value:g}"


def _parse_float(name: str, value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid {name} {value!r}: {e}") from e


def _parse_level(value: Any) -> Level:
    if isinstance(value, Level):
        return value
    if isinstance(value, str):
        return Level.parse(value)
    return Level.scalar(value)


@dataclass(frozen=True)
class ConvertSettings:
    """User-facing conversion settings.

    Attributes:
        exposure: Exposure adjustment in stops (0 = unchanged)
        hdr_max: HDR white point, in nits or a percentile of input luminance
        saturation: Chroma scaling coefficient for OKLab Reinhard (1.0 = linear)
        tone_map: 'linear', 'reinhard' or 'reinhard-rgb'
        color_map: 'clip', 'darken' or 'desaturate'
        levels_min: Output black level, absolute (0-1) or percentile
        levels_max: Output white level, absolute (0-1) or percentile
        pre_gamma: Luminance gamma applied to the input (1.0 = none)
        post_gamma: Luminance gamma applied to the output (1.0 = none)
    """

    exposure: float = defaults.DEFAULT_EXPOSURE
    hdr_max: Level = field(default_factory=lambda: Level.parse(defaults.DEFAULT_HDR_MAX))
    saturation: float = defaults.DEFAULT_SATURATION
    tone_map: str = defaults.DEFAULT_TONE_MAP
    color_map: str = defaults.DEFAULT_COLOR_MAP
    levels_min: Level = field(default_factory=lambda: Level.parse(defaults.DEFAULT_LEVELS_MIN))
    levels_max: Level = field(default_factory=lambda: Level.parse(defaults.DEFAULT_LEVELS_MAX))
    pre_gamma: float = defaults.DEFAULT_PRE_GAMMA
    post_gamma: float = defaults.DEFAULT_POST_GAMMA

    def __post_init__(self):
        for name in ("exposure", "saturation", "pre_gamma", "post_gamma"):
            if not math.isfinite(getattr(self, name)):
                raise ConfigError(f"{name} must be finite, got {getattr(self, name)}")
        for name in ("saturation", "pre_gamma", "post_gamma"):
            if getattr(self, name) <= 0:
                raise ConfigError(f"{name} must be positive, got {getattr(self, name)}")
        for name in ("hdr_max", "levels_min", "levels_max"):
            level = getattr(self, name)
            if not isinstance(level, Level) or not math.isfinite(level.value):
                raise ConfigError(f"{name} must be a finite Level, got {level!r}")
        if not self.hdr_max.is_percentile and self.hdr_max.value <= 0:
            raise ConfigError(f"hdr_max must be positive, got {self.hdr_max}")
        if self.tone_map not in TONE_MAPS:
            raise ConfigError(f"Unknown tone map {self.tone_map!r}, expected one of {sorted(TONE_MAPS)}")
        if self.color_map not in COLOR_MAPS:
            raise ConfigError(f"Unknown color map {self.color_map!r}, expected one of {sorted(COLOR_MAPS)}")

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> ConvertSettings:
        """Build settings from strings or numbers, e.g. parsed arguments.

        Keys use the field names; hyphens are accepted in place of
        underscores. Missing keys keep their defaults; unknown keys raise.
        """
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in values.items():
            name = key.replace("-", "_")
            if name not in known:
                raise ConfigError(f"Unknown setting {key!r}")
            if value is None:
                continue
            if name in ("hdr_max", "levels_min", "levels_max"):
                kwargs[name] = _parse_level(value)
            elif name in ("tone_map", "color_map"):
                kwargs[name] = str(value)
            else:
                kwargs[name] = _parse_float(name, value)
        return cls(**kwargs)

    def resolve(self, hdr_max: float) -> Options:
        """Options for a conversion once the HDR white point is known (scRGB)."""
        return Options(
            exposure=self.exposure,
            hdr_max=hdr_max,
            saturation=self.saturation,
            tone_map=get_tone_map(self.tone_map),
            color_map=get_color_map(self.color_map),
            levels_min=self.levels_min,
            levels_max=self.levels_max,
        )

    def hdr_max_scalar(self) -> float:
        """HDR white point in scRGB units for a scalar (nits) hdr_max."""
        return (self.hdr_max.value / SDR_WHITE) * exposure_scale(self.exposure)


@dataclass(frozen=True)
class Options:
    """Resolved per-conversion options used by the pixel functions."""

    exposure: float
    hdr_max: float
    saturation: float
    tone_map: Callable
    color_map: Callable
    levels_min: Level
    levels_max: Level
