"""Pixel buffers in the encodings hdrfix reads and writes.

A PixelBuffer owns a flat uint8 store of ``width * height * bytes_per_pixel``
bytes (stride == width, no padding). Its pixel format fixes how bytes decode
to linear scRGB samples and how samples encode back to bytes.

Per-pixel work runs in contiguous pixel runs on a thread pool. numpy releases
the GIL inside its kernels, so runs proceed in parallel; each run writes only
its own slice of the destination store.
"""

from __future__ import annotations

import enum
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Iterator

import numpy as np

from hdrfix import defaults
from hdrfix.colorspace.transfer import (
    linear_to_pq,
    linear_to_srgb,
    pq_to_linear,
    rec2100_to_scrgb,
    scrgb_to_rec2100,
    srgb_to_linear,
    clamp01,
)
from hdrfix.errors import BufferSizeMismatch, InvalidDimensionsError

SampleFunc = Callable[[np.ndarray], np.ndarray]


# === Pixel codecs ===
# Decoders take a (k, bytes_per_pixel) uint8 block and return (k, 3) float32.
# Encoders take (k, 3) samples and write into a (k, bytes_per_pixel) block.

def _to_bytes(encoded: np.ndarray) -> np.ndarray:
    # Truncate, don't round.
    return (clamp01(encoded) * 255.0).astype(np.uint8)


def _read_srgb_rgb24(block: np.ndarray) -> np.ndarray:
    return srgb_to_linear(block.astype(np.float32) / 255.0)


def _write_srgb_rgb24(samples: np.ndarray, block: np.ndarray) -> None:
    block[:] = _to_bytes(linear_to_srgb(samples))


def _read_rec2100_rgb24(block: np.ndarray) -> np.ndarray:
    return rec2100_to_scrgb(pq_to_linear(block.astype(np.float32) / 255.0))


def _write_rec2100_rgb24(samples: np.ndarray, block: np.ndarray) -> None:
    block[:] = _to_bytes(linear_to_pq(scrgb_to_rec2100(samples)))


def _float_view(block: np.ndarray) -> np.ndarray:
    return block.view('<f4').reshape(-1, 4)


def _read_scrgb_rgb128float(block: np.ndarray) -> np.ndarray:
    return _float_view(block)[:, :3].astype(np.float32)


def _write_scrgb_rgb128float(samples: np.ndarray, block: np.ndarray) -> None:
    # Alpha is left as it was.
    _float_view(block)[:, :3] = samples


@dataclass(frozen=True)
class PixelCodec:
    """Byte layout and conversion functions for one pixel format."""

    bytes_per_pixel: int
    decode: Callable[[np.ndarray], np.ndarray]
    encode: Callable[[np.ndarray, np.ndarray], None]


class PixelFormat(enum.Enum):
    """Supported pixel encodings."""

    SDR8 = "sdr8"  # 8-bit sRGB gamma-encoded RGB
    HDR8 = "hdr8"  # 8-bit BT.2100 PQ-encoded RGB
    FLOAT32 = "float32"  # 32-bit float linear scRGB, RGBA

    @property
    def codec(self) -> PixelCodec:
        return _CODECS[self]

    @property
    def bytes_per_pixel(self) -> int:
        return _CODECS[self].bytes_per_pixel


_CODECS: dict[PixelFormat, PixelCodec] = {
    PixelFormat.SDR8: PixelCodec(3, _read_srgb_rgb24, _write_srgb_rgb24),
    PixelFormat.HDR8: PixelCodec(3, _read_rec2100_rgb24, _write_rec2100_rgb24),
    PixelFormat.FLOAT32: PixelCodec(16, _read_scrgb_rgb128float, _write_scrgb_rgb128float),
}


# === Parallel runs ===

def iter_chunks(total: int, chunk: int | None = None) -> Iterator[tuple[int, int]]:
    """Yield (start, stop) pixel runs covering [0, total)."""
    chunk = chunk or defaults.CHUNK_PIXELS
    for start in range(0, total, chunk):
        yield start, min(start + chunk, total)


def run_chunked(total: int, work: Callable[[int, int], None], num_threads: int | None = None) -> None:
    """Call ``work(start, stop)`` for every pixel run, in parallel.

    Blocks until all runs finish. The first exception raised by a run is
    re-raised here.
    """
    chunks = list(iter_chunks(total))
    if len(chunks) <= 1:
        for start, stop in chunks:
            work(start, stop)
        return

    workers = num_threads if num_threads is not None else defaults.DEFAULT_NUM_THREADS
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [executor.submit(work, start, stop) for start, stop in chunks]
        for future in futures:
            future.result()


# === Buffers ===

class PixelMap:
    """Lazy per-pixel transform of a buffer.

    Describes ``func(decode(pixel))`` for every pixel in raster order. Nothing
    is computed until the map is consumed by ``PixelBuffer.fill()`` or
    ``collect()``; the functions must be pure since runs execute in any order.
    """

    def __init__(self, source: PixelBuffer, funcs: tuple[SampleFunc, ...] = ()):
        self._source = source
        self._funcs = funcs

    def __len__(self) -> int:
        return self._source.pixel_count

    def map(self, func: SampleFunc) -> PixelMap:
        """Compose another per-pixel function."""
        return PixelMap(self._source, self._funcs + (func,))

    def evaluate(self, start: int, stop: int) -> np.ndarray:
        """Compute samples for pixels [start, stop)."""
        samples = self._source.read_rgb(start, stop)
        for func in self._funcs:
            samples = func(samples)
        return samples

    def collect(self, num_threads: int | None = None) -> np.ndarray:
        """Compute every sample into an (N, 3) float32 array."""
        out = np.empty((len(self), 3), dtype=np.float32)

        def work(start: int, stop: int) -> None:
            out[start:stop] = self.evaluate(start, stop)

        run_chunked(len(self), work, num_threads)
        return out


class PixelBuffer:
    """Rectangular image in one pixel format.

    Attributes:
        width, height: Dimensions in pixels (positive)
        format: PixelFormat of the byte store
    """

    def __init__(
        self,
        width: int,
        height: int,
        format: PixelFormat,
        data: bytes | bytearray | np.ndarray | None = None,
    ):
        if width <= 0 or height <= 0:
            raise InvalidDimensionsError(f"Invalid image size {width}x{height}")

        codec = format.codec
        size = width * height * codec.bytes_per_pixel

        if data is None:
            store = np.zeros(size, dtype=np.uint8)
        else:
            if isinstance(data, np.ndarray):
                store = np.ascontiguousarray(data).view(np.uint8).reshape(-1)
            else:
                store = np.frombuffer(data, dtype=np.uint8)
            if store.size != size:
                raise InvalidDimensionsError(
                    f"{format.name} {width}x{height} needs {size} bytes, got {store.size}"
                )
            if not store.flags.writeable:
                store = store.copy()

        self.width = width
        self.height = height
        self.format = format
        self.bytes_per_pixel = codec.bytes_per_pixel
        self._data = store
        self._decode = codec.decode
        self._encode = codec.encode

    def __repr__(self) -> str:
        return f"PixelBuffer({self.width}x{self.height}, {self.format.name})"

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    def bytes(self) -> np.ndarray:
        """The flat uint8 store."""
        return self._data

    def to_array(self) -> np.ndarray:
        """View of the store shaped (height, width, bytes_per_pixel)."""
        return self._data.reshape(self.height, self.width, self.bytes_per_pixel)

    def _block(self, start: int, stop: int) -> np.ndarray:
        bpp = self.bytes_per_pixel
        return self._data[start * bpp:stop * bpp].reshape(-1, bpp)

    def _check_index(self, index: int) -> None:
        if not 0 <= index < self.pixel_count:
            raise IndexError(f"pixel {index} out of range for {self!r}")

    # === Pixel access ===

    def read_rgb(self, start: int = 0, stop: int | None = None) -> np.ndarray:
        """Decode pixels [start, stop) to an (N, 3) float32 array."""
        if stop is None:
            stop = self.pixel_count
        return self._decode(self._block(start, stop))

    def write_rgb(self, start: int, samples: np.ndarray) -> None:
        """Encode (N, 3) samples into pixels [start, start + N)."""
        samples = np.asarray(samples, dtype=np.float32)
        self._encode(samples, self._block(start, start + len(samples)))

    def read_at(self, index: int) -> np.ndarray:
        """Decode a single pixel to a (3,) sample."""
        self._check_index(index)
        return self.read_rgb(index, index + 1)[0]

    def write_at(self, index: int, sample) -> None:
        """Encode a single (3,) sample into pixel ``index``."""
        self._check_index(index)
        self.write_rgb(index, np.asarray(sample, dtype=np.float32).reshape(1, 3))

    # === Bulk operations ===

    def map(self, func: SampleFunc) -> PixelMap:
        """Lazy ``func(decode(pixel))`` over every pixel, in raster order."""
        return PixelMap(self, (func,))

    def fill(self, source: PixelMap | np.ndarray, num_threads: int | None = None) -> None:
        """Overwrite every pixel from a PixelMap or an (N, 3) sample array.

        Raises:
            BufferSizeMismatch: Source length differs from this buffer's pixel count
        """
        if isinstance(source, PixelMap):
            count = len(source)
            evaluate = source.evaluate
        else:
            samples = np.asarray(source, dtype=np.float32)
            if samples.ndim != 2 or samples.shape[1] != 3:
                raise BufferSizeMismatch(f"Expected (N, 3) samples, got shape {samples.shape}")
            count = samples.shape[0]

            def evaluate(start: int, stop: int) -> np.ndarray:
                return samples[start:stop]

        if count != self.pixel_count:
            raise BufferSizeMismatch(
                f"Cannot fill {self!r} ({self.pixel_count} pixels) from {count} samples"
            )

        def work(start: int, stop: int) -> None:
            self.write_rgb(start, evaluate(start, stop))

        run_chunked(count, work, num_threads)
