"""Command-line entry point.

Usage:
    hdrfix input.jxr output.png [--tone-map reinhard] [--levels-max 99.5%] ...
"""

import argparse
import logging
import sys

from hdrfix import __version__, defaults
from hdrfix.colorspace.gamut import COLOR_MAPS
from hdrfix.colorspace.tonemap import TONE_MAPS
from hdrfix.errors import ConfigError, HdrfixError
from hdrfix.options import ConvertSettings, Level
from hdrfix.pipeline import convert


def _level(value: str) -> Level:
    try:
        return Level.parse(value)
    except ConfigError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def _thread_count(value: str) -> int:
    try:
        count = int(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid thread count {value!r}") from e
    if count < 1:
        raise argparse.ArgumentTypeError(f"thread count must be at least 1, got {count}")
    return count


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hdrfix",
        description="hdrfix converter for HDR screenshots",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "input",
        help="Input filename, must be .jxr or .png as saved by NVIDIA capture overlay.",
    )
    parser.add_argument("output", help="Output filename, must be .png.")
    parser.add_argument(
        "--exposure",
        type=float,
        default=defaults.DEFAULT_EXPOSURE,
        help="Exposure adjustment in stops, used to scale the HDR input linearly. "
             "May be positive or negative; defaults to 0, which does not change the exposure.",
    )
    parser.add_argument(
        "--tone-map",
        choices=list(TONE_MAPS),
        default=defaults.DEFAULT_TONE_MAP,
        help="Method for mapping HDR into SDR domain.",
    )
    parser.add_argument(
        "--hdr-max",
        type=_level,
        default=defaults.DEFAULT_HDR_MAX,
        help="Max HDR luminance level for Reinhard algorithm, in nits or a percentile to be "
             "calculated from input data. The default is 100%%, which represents the highest input value.",
    )
    parser.add_argument(
        "--saturation",
        type=float,
        default=defaults.DEFAULT_SATURATION,
        help="Coefficient for how to scale saturation in tone mapping. 1.0 will desaturate "
             "linearly to the compression ratio; smaller values will desaturate more aggressively.",
    )
    parser.add_argument(
        "--levels-min",
        type=_level,
        default=defaults.DEFAULT_LEVELS_MIN,
        help="Minimum output level to save when expanding final SDR output for saving. "
             "May be an absolute value in 0..1 range or a percentile from 0%% to 100%%.",
    )
    parser.add_argument(
        "--levels-max",
        type=_level,
        default=defaults.DEFAULT_LEVELS_MAX,
        help="Maximum output level to save when expanding final SDR output for saving. "
             "May be an absolute value in 0..1 range or a percentile from 0%% to 100%%.",
    )
    parser.add_argument(
        "--color-map",
        choices=list(COLOR_MAPS),
        default=defaults.DEFAULT_COLOR_MAP,
        help="Method for mapping and fixing out of gamut colors.",
    )
    parser.add_argument(
        "--pre-gamma",
        type=float,
        default=defaults.DEFAULT_PRE_GAMMA,
        help="Gamma power applied on input.",
    )
    parser.add_argument(
        "--post-gamma",
        type=float,
        default=defaults.DEFAULT_POST_GAMMA,
        help="Gamma power applied on output.",
    )
    parser.add_argument(
        "--threads",
        type=_thread_count,
        default=defaults.DEFAULT_NUM_THREADS,
        help="Worker threads for per-pixel work (default: CPU count).",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log per-stage timings.",
    )
    return parser


def settings_from_args(args: argparse.Namespace) -> ConvertSettings:
    return ConvertSettings.from_mapping({
        "exposure": args.exposure,
        "hdr_max": args.hdr_max,
        "saturation": args.saturation,
        "tone_map": args.tone_map,
        "color_map": args.color_map,
        "levels_min": args.levels_min,
        "levels_max": args.levels_max,
        "pre_gamma": args.pre_gamma,
        "post_gamma": args.post_gamma,
    })


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    print(f"{args.input} -> {args.output}")
    try:
        settings = settings_from_args(args)
        convert(args.input, args.output, settings, num_threads=args.threads)
    except HdrfixError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print("Done.")
    return 0
