"""
Line-level decoding of OHLCV CSV input.

Accepts epoch seconds (int or float), epoch milliseconds and ISO-8601
timestamps. The header row, when present, is recognized by its column names
and may reorder the columns.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Dict, Optional, Sequence, Tuple

from ohlcv_window.core.errors import MalformedRecord
from ohlcv_window.core.types import OhlcvRecord

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("timestamp", "open", "high", "low", "close", "volume")

_COLUMN_ALIASES: Dict[str, Tuple[str, ...]] = {
    "timestamp": ("timestamp", "ts", "time", "date", "datetime", "unix", "open_time", "opentime"),
    "open": ("open", "o"),
    "high": ("high", "h"),
    "low": ("low", "l"),
    "close": ("close", "c"),
    "volume": ("volume", "vol", "v", "volume_(btc)"),
}

# Binance and friends use ms epoch values >= 10^12
_MS_EPOCH_THRESHOLD = 10**12


def parse_timestamp(raw: str) -> int:
    """Parse an epoch (s or ms) or ISO-8601 timestamp into integer epoch seconds."""
    text = raw.strip()
    try:
        value = float(text)
    except ValueError:
        dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return int(dt.timestamp())
    if not math.isfinite(value):
        raise ValueError(f"non-finite timestamp: {raw!r}")
    if value >= _MS_EPOCH_THRESHOLD:
        value = value / 1000.0
    return int(value)


def _normalize_name(name: str) -> str:
    return name.strip().strip('"').lower().replace(" ", "_")


def _resolve_header(fields: Sequence[str]) -> Optional[Tuple[int, ...]]:
    names = [_normalize_name(f) for f in fields]
    positions = []
    for col in REQUIRED_COLUMNS:
        pos = next((i for i, n in enumerate(names) if n in _COLUMN_ALIASES[col]), None)
        if pos is None:
            return None
        positions.append(pos)
    return tuple(positions)


def _to_float(raw: str, name: str, line_no: Optional[int]) -> float:
    try:
        value = float(raw)
    except ValueError:
        raise MalformedRecord(f"Field '{name}' is not numeric: {raw.strip()!r}", line_no=line_no) from None
    if not math.isfinite(value):
        raise MalformedRecord(f"Field '{name}' is not finite: {raw.strip()!r}", line_no=line_no)
    return value


class RecordParser:
    """Decode CSV lines into :class:`OhlcvRecord` instances.

    ``columns`` names the field order of headerless input; names outside
    :data:`REQUIRED_COLUMNS` are accepted and ignored.
    """

    def __init__(self, columns: Sequence[str] = REQUIRED_COLUMNS, delimiter: str = ",") -> None:
        cols = [_normalize_name(c) for c in columns]
        missing = [c for c in REQUIRED_COLUMNS if c not in cols]
        if missing:
            raise ValueError(f"Missing required columns: {missing}")
        self.delimiter = delimiter
        self._width = len(cols)
        self._positions = tuple(cols.index(c) for c in REQUIRED_COLUMNS)
        self._first_line_seen = False
        self.header: Optional[Tuple[str, ...]] = None

    def try_header(self, line: str) -> bool:
        """Consume ``line`` as the header if it is the first line and names the columns."""
        if self._first_line_seen:
            return False
        self._first_line_seen = True
        fields = line.rstrip("\r\n").split(self.delimiter)
        positions = _resolve_header(fields)
        if positions is None:
            return False
        self.header = tuple(f.strip() for f in fields)
        self._width = len(fields)
        self._positions = positions
        logger.debug("Header recognized: %s", ",".join(self.header))
        return True

    def parse(self, line: str, line_no: Optional[int] = None) -> OhlcvRecord:
        """Parse one data line; raises :class:`MalformedRecord` on any defect."""
        fields = line.rstrip("\r\n").split(self.delimiter)
        if len(fields) != self._width:
            raise MalformedRecord(f"Expected {self._width} fields, got {len(fields)}", line_no=line_no)

        ts_pos, o_pos, h_pos, l_pos, c_pos, v_pos = self._positions
        try:
            ts = parse_timestamp(fields[ts_pos])
        except ValueError:
            raise MalformedRecord(f"Unparseable timestamp: {fields[ts_pos].strip()!r}", line_no=line_no) from None

        open_ = _to_float(fields[o_pos], "open", line_no)
        high = _to_float(fields[h_pos], "high", line_no)
        low = _to_float(fields[l_pos], "low", line_no)
        close = _to_float(fields[c_pos], "close", line_no)
        volume = _to_float(fields[v_pos], "volume", line_no)

        if not (low <= open_ <= high and low <= close <= high):
            raise MalformedRecord(
                f"OHLC invariant violated: low={low} open={open_} close={close} high={high}",
                line_no=line_no,
                ts=ts,
            )
        if volume < 0:
            raise MalformedRecord(f"Negative volume: {volume}", line_no=line_no, ts=ts)

        return OhlcvRecord(ts=ts, open=open_, high=high, low=low, close=close, volume=volume)


__all__ = ["REQUIRED_COLUMNS", "RecordParser", "parse_timestamp"]
