#!/usr/bin/env python3
"""
norpix-seq command line entry point.

Converts a Norpix SEQ file into a directory of image files, optionally
previewing frames and saving header metadata. With no output directory
the header is printed as JSON.

Examples:
    norpix-seq run1.seq frames/ --make-dir
    norpix-seq run1.seq frames/ --format tiff --range 100 inf
    norpix-seq run1.seq --header-only
    norpix-seq --config convert.toml --workers 4
"""

import argparse
import json
import logging
import math
import os
import sys
from pathlib import Path
from typing import List, Optional, TextIO

from .config import ConvertConfig, load_config, parse_bound, parse_normalization
from .errors import SeqError
from .pipeline import run
from .sinks import IMAGE_FORMATS, FrameSink, ImageFileSink, MultiSink, write_header_info

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure console logging.

    Level resolution (first match wins): the argument, env var
    `NORPIX_SEQ_LOG_LEVEL`, then INFO.
    """
    if level is None:
        level = os.environ.get("NORPIX_SEQ_LOG_LEVEL", "INFO")
    level = str(level).upper().strip()
    if level not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
        level = "INFO"
    logging.basicConfig(level=level, format=LOG_FORMAT)


class DotProgress:
    """Prints a dot to stderr every `every` frames."""

    def __init__(self, every: int = 100, stream: Optional[TextIO] = None):
        self.every = every
        self.stream = stream or sys.stderr
        self.calls = 0

    def __call__(self, fraction: float) -> None:
        self.calls += 1
        if self.calls % self.every == 0:
            self.stream.write(".")
            self.stream.flush()

    def finish(self) -> None:
        if self.calls >= self.every:
            self.stream.write("\n")
            self.stream.flush()


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="norpix-seq",
        description="Convert a Norpix SEQ file into a sequence of image files.",
    )
    ap.add_argument("input", nargs="?", help="SEQ file, or a folder containing a single SEQ file")
    ap.add_argument("output", nargs="?", help="Directory for output images (omit to only read the header)")
    ap.add_argument("--config", help="TOML/YAML/JSON file with conversion settings")
    ap.add_argument("--format", choices=sorted(IMAGE_FORMATS), help="Output image type (default: png)")
    ap.add_argument(
        "--range",
        nargs=2,
        metavar=("START", "END"),
        help="Inclusive 1-based frame range; 'inf' and '-inf' are accepted",
    )
    ap.add_argument("--header-only", action="store_true", help="Read the header, decode no frames")
    ap.add_argument("--make-dir", action="store_true", default=None, help="Create the output directory if missing")
    ap.add_argument("--show", action="store_true", default=None, help="Preview frames while decoding")
    ap.add_argument("--normalization", help="fixed_255 (default) or bit_depth")
    ap.add_argument(
        "--strict-format",
        action="store_true",
        default=None,
        help="Fail on unrecognized image format codes instead of warning",
    )
    ap.add_argument("--workers", type=int, help="Decode threads (default: 1)")
    ap.add_argument("--header-info", help="Save header metadata to this .json or .mat file")
    ap.add_argument("--log-level", help="Logging level (default: INFO)")
    return ap


def config_from_args(args: argparse.Namespace) -> ConvertConfig:
    """Merge a config file (if any) with command-line overrides."""
    if args.config:
        cfg = load_config(args.config)
    else:
        cfg = ConvertConfig(input_path=Path(args.input))

    frame_range = None
    if args.header_only:
        frame_range = (math.inf, math.inf)
    elif args.range:
        frame_range = (parse_bound(args.range[0]), parse_bound(args.range[1]))

    return cfg.with_overrides(
        input_path=Path(args.input) if args.input else None,
        output_dir=Path(args.output) if args.output else None,
        image_format=args.format,
        frame_range=frame_range,
        make_dir=args.make_dir,
        show=args.show,
        normalization=parse_normalization(args.normalization) if args.normalization else None,
        strict_format=args.strict_format,
        workers=args.workers,
        header_info=Path(args.header_info) if args.header_info else None,
    )


def build_sink(cfg: ConvertConfig) -> Optional[FrameSink]:
    sinks: List[FrameSink] = []
    if cfg.output_dir is not None:
        sinks.append(ImageFileSink(cfg.output_dir, cfg.image_format, make_dir=cfg.make_dir))
    if cfg.show:
        from .preview import make_preview

        sinks.append(make_preview())
    if not sinks:
        return None
    return sinks[0] if len(sinks) == 1 else MultiSink(sinks)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.input and not args.config:
        parser.error("an input SEQ file or --config is required")

    setup_logging(args.log_level)

    try:
        cfg = config_from_args(args)
        if cfg.output_dir is None and not cfg.show:
            logger.warning("No output directory given; no images will be written")

        sink = build_sink(cfg)
        progress = DotProgress()
        result = run(
            cfg.input_path,
            sink,
            frame_range=cfg.frame_range,
            progress=progress,
            normalization=cfg.normalization,
            workers=cfg.workers,
            strict_format=cfg.strict_format,
        )
        progress.finish()

        header_info = cfg.header_info
        if header_info is None and cfg.output_dir is not None:
            header_info = cfg.output_dir / "headerinfo.json"
        if header_info is not None:
            write_header_info(header_info, result.header, result.timestamps)

        if cfg.output_dir is None:
            print(json.dumps(result.header.to_dict(), indent=2))

        if result.truncated:
            logger.info(
                f"File ended after {result.frames_decoded} of "
                f"{len(result.frame_range)} requested frames"
            )
        return 0
    except (SeqError, FileNotFoundError, ValueError) as e:
        logger.error(str(e))
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
