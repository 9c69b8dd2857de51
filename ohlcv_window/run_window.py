#!/usr/bin/env python3
from __future__ import annotations

import argparse
import pathlib
import sys
from typing import Optional, Sequence

if __package__ is None and __name__ == "__main__":
    import os

    sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from ohlcv_window.config import load_config
from ohlcv_window.core.errors import InvalidConfiguration, WindowPipelineError
from ohlcv_window.core.types import GapPolicy
from ohlcv_window.core.window import EXTREMA_MODES
from ohlcv_window.pipeline import WindowPipeline
from ohlcv_window.sinks import ConsoleSink, CsvSink
from ohlcv_window.utils.log import setup_logging


EXIT_OK = 0
EXIT_DATA_ERROR = 1
EXIT_CONFIG_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Rolling average, std, min and max of close prices over an OHLCV CSV."
    )
    parser.add_argument("-w", "--window", dest="window_size", type=int, default=None, help="Window size in records (default: 14).")
    parser.add_argument("-f", "--file", dest="file", type=str, required=True, help="Path to OHLCV CSV (timestamp,open,high,low,close,volume).")
    parser.add_argument(
        "--interval", dest="interval_seconds", type=int, default=None, help="Sampling interval in seconds (default: 60)."
    )
    parser.add_argument(
        "--gap-policy",
        dest="gap_policy",
        choices=[p.value for p in GapPolicy],
        default=None,
        help="What to do on a timestamp gap (default: strict).",
    )
    parser.add_argument(
        "--max-forward-fill",
        dest="max_forward_fill",
        type=int,
        default=None,
        help="Maximum synthetic records per gap under forward_fill (default: 0).",
    )
    parser.add_argument(
        "--max-skip-ratio",
        dest="max_skip_ratio",
        type=float,
        default=None,
        help="Abort when the share of malformed lines exceeds this ratio (default: disabled).",
    )
    parser.add_argument("--extrema", choices=list(EXTREMA_MODES), default=None, help="Min/max maintenance strategy.")
    parser.add_argument("--config", type=str, default=None, help="Optional YAML config; CLI flags override it.")
    parser.add_argument("--out", type=str, default=None, help="Optional CSV output path (default: print rows).")
    parser.add_argument("--log-level", dest="log_level", type=str, default=None, help="Logging level (default: $LOG_LEVEL or INFO).")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    try:
        cfg = load_config(args.config).replace(
            window_size=args.window_size,
            interval_seconds=args.interval_seconds,
            gap_policy=args.gap_policy,
            max_forward_fill=args.max_forward_fill,
            max_skip_ratio=args.max_skip_ratio,
            extrema=args.extrema,
        )
        pipeline = WindowPipeline(cfg)
    except InvalidConfiguration as exc:
        print(f"[error] invalid configuration: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    path = pathlib.Path(args.file)
    if not path.exists():
        print(f"[error] CSV not found: {path}", file=sys.stderr)
        return EXIT_DATA_ERROR

    try:
        with path.open("r", newline="", encoding="utf-8", errors="replace") as f:
            sink = CsvSink(args.out) if args.out else ConsoleSink()
            stats = pipeline.run_to_sink(f, sink)
    except OSError as exc:
        print(f"[error] {exc}", file=sys.stderr)
        return EXIT_DATA_ERROR
    except WindowPipelineError as exc:
        print(f"[error] {exc}", file=sys.stderr)
        print(f"Rows emitted before failure: {pipeline.stats.emitted}", file=sys.stderr)
        return EXIT_DATA_ERROR

    print("\nSummary:", file=sys.stderr)
    for k, v in stats.as_dict().items():
        print(f"{k}: {v}", file=sys.stderr)
    if args.out:
        print(f"Saved {stats.emitted} rows to {args.out}", file=sys.stderr)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
