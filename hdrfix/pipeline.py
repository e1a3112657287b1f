"""HDR -> SDR conversion pipeline - no CLI dependencies.

Stages run strictly in order, each producing a new buffer:

    read_input -> pre_gamma -> hdr_max -> hdr_to_sdr (exposure, tone map,
    color map) -> levels histogram -> output mapping (levels, post gamma,
    color map) -> write_png
"""

import logging
import time
from contextlib import contextmanager
from functools import partial
from typing import Iterator

import numpy as np

from hdrfix.buffer import PixelBuffer, PixelFormat
from hdrfix.colorspace import _backend as B
from hdrfix.colorspace.oklab import luma_oklab, oklab_to_scrgb, scale_oklab, scrgb_to_oklab
from hdrfix.colorspace.transfer import apply_exposure, clamp01
from hdrfix.errors import ConversionError, HdrfixError
from hdrfix.histogram import Histogram, LazyHistogram
from hdrfix.io import read_image, write_png
from hdrfix.options import ConvertSettings, Options

logger = logging.getLogger(__name__)


@contextmanager
def timed(stage: str) -> Iterator[None]:
    """Log how long a stage took and tag errors raised inside it with its name."""
    start = time.perf_counter()
    try:
        yield
    except HdrfixError as e:
        if e.stage is None:
            e.stage = stage
        raise
    except (ValueError, ArithmeticError, MemoryError) as e:
        raise ConversionError(stage, str(e)) from e
    logger.info("%s in %.1f ms", stage, (time.perf_counter() - start) * 1000.0)


# === Per-pixel functions ===

def apply_gamma(rgb: np.ndarray, gamma: float) -> np.ndarray:
    """Raise luminance to ``gamma``, keeping hue and relative chroma."""
    lab = scrgb_to_oklab(rgb)
    luma_out = B.pow(luma_oklab(lab), gamma)
    return oklab_to_scrgb(scale_oklab(lab, luma_out))


def apply_levels(rgb: np.ndarray, level_min: float, level_max: float, gamma: float) -> np.ndarray:
    """Stretch luminance so [level_min, level_max] maps to [0, 1], then apply gamma."""
    offset = level_min
    scale = level_max - level_min
    lab = scrgb_to_oklab(rgb)
    luma_in = luma_oklab(lab)
    luma_out = B.pow((luma_in - offset) / scale, gamma)
    return oklab_to_scrgb(scale_oklab(lab, luma_out))


def levels_are_identity(level_min: float, level_max: float, gamma: float) -> bool:
    return level_min == 0.0 and level_max == 1.0 and gamma == 1.0


def hdr_to_sdr_pixel(rgb: np.ndarray, options: Options) -> np.ndarray:
    """Exposure, tone map and color map."""
    rgb = apply_exposure(rgb, options.exposure)
    rgb = options.tone_map(rgb, options)
    return options.color_map(rgb)


def output_pixel(
    rgb: np.ndarray,
    options: Options,
    level_min: float,
    level_max: float,
    gamma: float,
) -> np.ndarray:
    """Levels and post gamma, then color map again.

    The levels stretch can push colors back out of gamut, hence the second
    color map.
    """
    if not levels_are_identity(level_min, level_max, gamma):
        rgb = apply_levels(rgb, level_min, level_max, gamma)
    return clamp01(options.color_map(rgb))


# === Pipeline ===

def resolve_hdr_max(source: PixelBuffer, settings: ConvertSettings, num_threads: int | None = None) -> float:
    """HDR white point in scRGB units.

    A scalar is in nits and follows the exposure adjustment; a percentile is
    read from the input's luminance histogram.
    """
    if settings.hdr_max.is_percentile:
        with timed("input histogram"):
            return Histogram(source, num_threads).percentile(settings.hdr_max.value)
    return settings.hdr_max_scalar()


def resolve_levels(histogram: LazyHistogram, options: Options) -> tuple[float, float]:
    """Output levels; the histogram is only built for percentile levels."""
    level_min = histogram.level(options.levels_min)
    level_max = histogram.level(options.levels_max)
    if not level_max > level_min:
        logger.warning(
            "Empty levels range [%g, %g] (from %s, %s); leaving levels unstretched",
            level_min, level_max, options.levels_min, options.levels_max,
        )
        return 0.0, 1.0
    return level_min, level_max


def convert_buffer(
    source: PixelBuffer,
    settings: ConvertSettings | None = None,
    num_threads: int | None = None,
) -> PixelBuffer:
    """Convert a decoded HDR buffer to an SDR8 buffer ready for encoding.

    Pure function - the source buffer is only read.
    """
    if settings is None:
        settings = ConvertSettings()
    width, height = source.width, source.height

    with timed("pre_gamma"):
        if settings.pre_gamma != 1.0:
            gamma_corrected = PixelBuffer(width, height, PixelFormat.FLOAT32)
            gamma_corrected.fill(source.map(partial(apply_gamma, gamma=settings.pre_gamma)), num_threads)
            source = gamma_corrected

    hdr_max = resolve_hdr_max(source, settings, num_threads)
    options = settings.resolve(hdr_max)

    tone_mapped = PixelBuffer(width, height, PixelFormat.FLOAT32)
    with timed("hdr_to_sdr"):
        tone_mapped.fill(source.map(partial(hdr_to_sdr_pixel, options=options)), num_threads)

    def build_histogram() -> Histogram:
        with timed("levels histogram"):
            return Histogram(tone_mapped, num_threads)

    with timed("levels"):
        level_min, level_max = resolve_levels(LazyHistogram(build_histogram), options)

    dest = PixelBuffer(width, height, PixelFormat.SDR8)
    with timed("output mapping"):
        dest.fill(
            tone_mapped.map(partial(
                output_pixel,
                options=options,
                level_min=level_min,
                level_max=level_max,
                gamma=settings.post_gamma,
            )),
            num_threads,
        )
    return dest


def convert(input_path, output_path, settings: ConvertSettings | None = None, num_threads: int | None = None) -> None:
    """Read an HDR screenshot, convert it and write an SDR PNG.

    Either the output file is fully written or it is not created at all.

    Raises:
        HdrfixError: Any stage failed; ``stage`` names which one
    """
    logger.info("%s -> %s", input_path, output_path)

    with timed("read_input"):
        source = read_image(input_path)

    dest = convert_buffer(source, settings, num_threads)

    with timed("write_png"):
        write_png(output_path, dest)
