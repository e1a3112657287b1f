"""Central place for hdrfix default settings."""

# Conversion settings (match the command-line defaults)
DEFAULT_EXPOSURE: float = 0.0  # stops
DEFAULT_HDR_MAX: str = "100%"  # nits, or a percentile of the input
DEFAULT_SATURATION: float = 1.0
DEFAULT_TONE_MAP: str = "reinhard"
DEFAULT_COLOR_MAP: str = "desaturate"
DEFAULT_LEVELS_MIN: str = "0.0"
DEFAULT_LEVELS_MAX: str = "1.0"
DEFAULT_PRE_GAMMA: float = 1.0
DEFAULT_POST_GAMMA: float = 1.0

# Worker pool
DEFAULT_NUM_THREADS: int | None = None  # None = auto-detect from CPU count
CHUNK_PIXELS: int = 1 << 16  # pixels per work item in map/fill passes

# Codecs
INPUT_EXTENSIONS: tuple[str, ...] = (".png", ".jxr")
PNG_COMPRESS_LEVEL: int = 9
