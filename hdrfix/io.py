"""Image file reading and writing.

Inputs are HDR screenshots as saved by the NVIDIA capture overlay:

- .png: 8-bit RGB truecolor holding BT.2100 PQ-encoded values
- .jxr: JPEG XR with floating point RGB(A) holding linear scRGB

Output is always an 8-bit sRGB truecolor PNG without alpha.
"""

import logging
import os
import tempfile
from pathlib import Path

import imagecodecs
import numpy as np
from PIL import Image

from hdrfix import defaults
from hdrfix.buffer import PixelBuffer, PixelFormat
from hdrfix.errors import (
    CodecIOError,
    DecodingError,
    InputFormatError,
    InvalidInputFileError,
    UnsupportedPixelFormatError,
)

logger = logging.getLogger(__name__)

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
PNG_COLOR_TYPE_RGB = 2


def _read_bytes(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as e:
        raise CodecIOError(f"Cannot read {path}: {e}") from e


def _png_header(data: bytes, path: Path) -> tuple[int, int, int, int]:
    """(width, height, bit depth, color type) from the IHDR chunk."""
    if len(data) < 29 or not data.startswith(PNG_SIGNATURE) or data[12:16] != b"IHDR":
        raise DecodingError(f"Not a PNG file: {path}")
    width = int.from_bytes(data[16:20], "big")
    height = int.from_bytes(data[20:24], "big")
    return width, height, data[24], data[25]


def read_png(path) -> PixelBuffer:
    """Read an 8bpp RGB PNG (no alpha) as PQ-encoded BT.2100 pixels."""
    path = Path(path)
    data = _read_bytes(path)

    _, _, bit_depth, color_type = _png_header(data, path)
    if bit_depth != 8 or color_type != PNG_COLOR_TYPE_RGB:
        raise InputFormatError(
            f"PNG input must be in 8bpp true color, got bit depth {bit_depth}, "
            f"color type {color_type}: {path}"
        )

    try:
        with Image.open(path) as img:
            img.load()
            pixels = np.asarray(img, dtype=np.uint8)
    except Exception as e:
        raise DecodingError(f"PNG decoding error in {path}: {e}") from e

    height, width = pixels.shape[:2]
    return PixelBuffer(width, height, PixelFormat.HDR8, pixels)


def read_jxr(path) -> PixelBuffer:
    """Read a floating point JPEG XR image as linear scRGB pixels."""
    path = Path(path)
    data = _read_bytes(path)

    try:
        image = imagecodecs.jpegxr_decode(data)
    except Exception as e:
        raise DecodingError(f"JPEG XR decoding error in {path}: {e}") from e

    if (
        not isinstance(image, np.ndarray)
        or image.ndim != 3
        or image.shape[2] not in (3, 4)
        or image.dtype not in (np.float16, np.float32)
    ):
        shape = getattr(image, "shape", None)
        dtype = getattr(image, "dtype", None)
        raise UnsupportedPixelFormatError(
            f"Unsupported pixel format in {path}: shape {shape}, dtype {dtype}"
        )

    height, width, channels = image.shape
    logger.debug("Decoded %s: %dx%d, %d channels, %s", path, width, height, channels, image.dtype)

    rgba = np.ones((height, width, 4), dtype=np.float32)
    rgba[..., :3] = image[..., :3]
    return PixelBuffer(width, height, PixelFormat.FLOAT32, rgba)


_READERS = {
    ".png": read_png,
    ".jxr": read_jxr,
}


def read_image(path) -> PixelBuffer:
    """Read an input image, choosing the decoder from the file extension.

    Raises:
        InvalidInputFileError: Extension is not .png or .jxr
        InputFormatError, UnsupportedPixelFormatError, DecodingError: Bad contents
        CodecIOError: File cannot be read
    """
    path = Path(path)
    reader = _READERS.get(path.suffix.lower())
    if reader is None:
        raise InvalidInputFileError(
            f"Invalid input file type {path.suffix!r}, expected one of {', '.join(defaults.INPUT_EXTENSIONS)}"
        )
    return reader(path)


def write_png(path, buffer: PixelBuffer) -> None:
    """Write an SDR8 buffer as an 8-bit RGB PNG.

    The image is written to a temporary file next to ``path`` and moved into
    place once complete, so a failed write never leaves a partial file.
    """
    if buffer.format is not PixelFormat.SDR8:
        raise ValueError(f"write_png needs an SDR8 buffer, got {buffer.format.name}")

    path = Path(path)
    img = Image.fromarray(buffer.to_array())

    tmp_path = None
    try:
        with tempfile.NamedTemporaryFile(
            dir=path.parent, prefix=f".{path.stem}-", suffix=".png", delete=False
        ) as tmp:
            tmp_path = Path(tmp.name)
            img.save(tmp, format="PNG", compress_level=defaults.PNG_COMPRESS_LEVEL)
        os.replace(tmp_path, path)
    except BaseException as e:
        if tmp_path is not None:
            tmp_path.unlink(missing_ok=True)
        if isinstance(e, OSError):
            raise CodecIOError(f"Cannot write {path}: {e}") from e
        raise
