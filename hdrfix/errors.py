"""Conversion errors.

Everything a caller should expect from a single conversion derives from
HdrfixError. Broken internal invariants derive from AssertionError instead
so they are never mistaken for bad input.
"""


class HdrfixError(Exception):
    """Base class for conversion errors.

    Attributes:
        stage: Pipeline stage that raised the error, filled in by the pipeline
    """

    stage: str | None = None

    def __str__(self) -> str:
        message = super().__str__()
        if self.stage is not None and not message.startswith(f"{self.stage}: "):
            return f"{self.stage}: {message}"
        return message


class ConfigError(HdrfixError, ValueError):
    """Invalid configuration value."""
    pass


class LevelParseError(ConfigError):
    """Level string is neither a number nor a percentage."""
    pass


class InputError(HdrfixError):
    """Base class for problems with the input image."""
    pass


class InvalidInputFileError(InputError):
    """Input file type is not supported."""
    pass


class InputFormatError(InputError):
    """PNG input is not 8bpp true color."""
    pass


class UnsupportedPixelFormatError(InputError):
    """Decoded pixel layout is not one of the supported encodings."""
    pass


class DecodingError(InputError):
    """Codec failed to decode the input."""
    pass


class InvalidDimensionsError(InputError):
    """Image dimensions are not positive or do not match the pixel data."""
    pass


class CodecIOError(HdrfixError):
    """File could not be opened, read or written."""
    pass


class ConversionError(HdrfixError):
    """A pipeline stage failed with an error that is not an HdrfixError."""

    def __init__(self, stage: str, message: str):
        super().__init__(message)
        self.stage = stage


class BufferSizeMismatch(AssertionError):
    """Source and destination pixel counts differ in a fill pass."""
    pass


class EmptyHistogramError(AssertionError):
    """Histogram requested over a buffer with no pixels."""
    pass
