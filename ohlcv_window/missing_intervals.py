"""
Insert placeholder rows for missing time slots in a CSV file.

Input rows are copied through verbatim with ``holiday=0``; each missing
slot between two consecutive rows gets a generated row with ``holiday=1``,
the slot time in the time column (and in ``mapTime`` when present), the key
column carried over from the previous row, and ``-1`` everywhere else.
"""

from __future__ import annotations

import logging
import pathlib
from typing import List

import pandas as pd

logger = logging.getLogger(__name__)

PLACEHOLDER = "-1"
HOLIDAY_COLUMN = "holiday"
MAP_TIME_COLUMN = "mapTime"


class EmptyInputError(IOError):
    pass


class MissingColumnsError(RuntimeError):
    pass


def _placeholder_row(columns: List[str], slot: pd.Timestamp, key_value: str, time_column: str, key_column: str, time_format: str) -> List[str]:
    stamp = slot.strftime(time_format)
    row = []
    for col in columns:
        if col in (time_column, MAP_TIME_COLUMN):
            row.append(stamp)
        elif col == key_column:
            row.append(key_value)
        else:
            row.append(PLACEHOLDER)
    row.append("1")
    return row


def add_missing_intervals(
    input_path: str | pathlib.Path,
    output_path: str | pathlib.Path,
    interval: str | pd.Timedelta = "1h",
    time_column: str = "dateTime",
    key_column: str = "name",
    time_format: str = "%Y-%m-%dT%H:%M",
) -> int:
    """
    Rewrite ``input_path`` to ``output_path`` with missing intervals filled in.

    Returns the number of generated rows.

    Raises
    ------
    EmptyInputError
        If the input file has no content at all.
    MissingColumnsError
        If ``time_column`` or ``key_column`` is absent from the header.
    """
    try:
        df = pd.read_csv(input_path, dtype=str, keep_default_na=False)
    except pd.errors.EmptyDataError:
        raise EmptyInputError("Input file is empty.") from None

    if time_column not in df.columns or key_column not in df.columns:
        raise MissingColumnsError(f"Missing required columns: '{time_column}' or '{key_column}'")

    step = pd.Timedelta(interval)
    if step <= pd.Timedelta(0):
        raise ValueError("interval must be positive")

    columns = list(df.columns)
    times = pd.to_datetime(df[time_column])
    out_rows: List[List[str]] = []
    generated = 0
    prev_ts = None
    prev_key = None
    for ts, values in zip(times, df.itertuples(index=False, name=None)):
        if prev_ts is not None:
            slot = prev_ts + step
            while slot < ts:
                out_rows.append(_placeholder_row(columns, slot, prev_key, time_column, key_column, time_format))
                generated += 1
                slot += step
        out_rows.append(list(values) + ["0"])
        prev_ts = ts
        prev_key = values[columns.index(key_column)]

    out = pd.DataFrame(out_rows, columns=columns + [HOLIDAY_COLUMN])
    out.to_csv(output_path, index=False)
    logger.info("Wrote %d rows (%d generated) to %s", len(out), generated, output_path)
    return generated


__all__ = ["EmptyInputError", "MissingColumnsError", "add_missing_intervals"]
