"""Convert HDR screenshots to SDR PNGs.

Example:
    from hdrfix import ConvertSettings, Level, convert

    settings = ConvertSettings(tone_map="reinhard", levels_max=Level.parse("99.9%"))
    convert("capture.jxr", "capture-sdr.png", settings)
"""

__version__ = "0.1.0"

from hdrfix.buffer import PixelBuffer, PixelFormat
from hdrfix.errors import HdrfixError
from hdrfix.histogram import Histogram, Lazy, LazyHistogram
from hdrfix.options import ConvertSettings, Level, LevelKind, Options
from hdrfix.pipeline import convert, convert_buffer

__all__ = [
    'ConvertSettings',
    'Histogram',
    'HdrfixError',
    'Lazy',
    'LazyHistogram',
    'Level',
    'LevelKind',
    'Options',
    'PixelBuffer',
    'PixelFormat',
    'convert',
    'convert_buffer',
]
