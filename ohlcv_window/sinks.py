from __future__ import annotations

import csv
import pathlib
import sys
from typing import IO, Optional, Protocol, TextIO

from ohlcv_window.core.types import OUTPUT_COLUMNS, OutputRow


class Sink(Protocol):
    """Protocol for consumers of emitted rows."""

    def write(self, row: OutputRow) -> None:
        ...

    def close(self) -> None:
        ...


def format_row(row: OutputRow, precision: int = 6) -> str:
    return (
        f"{row.ts} avg={row.moving_average:.{precision}f} std={row.rolling_std:.{precision}f} "
        f"min={row.rolling_min:.{precision}f} max={row.rolling_max:.{precision}f}"
    )


class ConsoleSink:
    """Print one line per row."""

    def __init__(self, stream: Optional[TextIO] = None, precision: int = 6) -> None:
        self.stream = stream if stream is not None else sys.stdout
        self.precision = precision

    def write(self, row: OutputRow) -> None:
        print(format_row(row, self.precision), file=self.stream)

    def close(self) -> None:
        self.stream.flush()


class CsvSink:
    """Stream rows to a CSV file (or an open text stream) with a header line."""

    def __init__(self, target: str | pathlib.Path | IO[str]) -> None:
        if isinstance(target, (str, pathlib.Path)):
            path = pathlib.Path(target)
            path.parent.mkdir(parents=True, exist_ok=True)
            self._fh: IO[str] = path.open("w", newline="")
            self._owns = True
        else:
            self._fh = target
            self._owns = False
        self._writer = csv.writer(self._fh)
        self._writer.writerow(OUTPUT_COLUMNS)
        self.rows_written = 0

    def write(self, row: OutputRow) -> None:
        self._writer.writerow(
            [row.ts, repr(row.moving_average), repr(row.rolling_std), repr(row.rolling_min), repr(row.rolling_max)]
        )
        self.rows_written += 1

    def close(self) -> None:
        if self._fh.closed:
            return
        self._fh.flush()
        if self._owns:
            self._fh.close()

    def __enter__(self) -> "CsvSink":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


__all__ = ["Sink", "ConsoleSink", "CsvSink", "format_row"]
