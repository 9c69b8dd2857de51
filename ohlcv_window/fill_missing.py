#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
from typing import Optional, Sequence

if __package__ is None and __name__ == "__main__":
    import os

    sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from ohlcv_window.missing_intervals import EmptyInputError, MissingColumnsError, add_missing_intervals
from ohlcv_window.utils.log import setup_logging


def main(argv: Optional[Sequence[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Insert placeholder rows for missing time slots in a CSV.")
    ap.add_argument("input")
    ap.add_argument("output")
    ap.add_argument("--interval", default="1h", help="Slot length as a pandas Timedelta string (default: 1h).")
    ap.add_argument("--time-col", dest="time_col", default="dateTime")
    ap.add_argument("--key-col", dest="key_col", default="name")
    ap.add_argument("--log-level", dest="log_level", default=None)
    args = ap.parse_args(argv)
    setup_logging(args.log_level)

    try:
        generated = add_missing_intervals(
            args.input, args.output, interval=args.interval, time_column=args.time_col, key_column=args.key_col
        )
    except (EmptyInputError, MissingColumnsError, FileNotFoundError) as exc:
        print(f"[error] {exc}", file=sys.stderr)
        return 1
    print(f"{args.output}: {generated} row(s) added")
    return 0


if __name__ == "__main__":
    sys.exit(main())
