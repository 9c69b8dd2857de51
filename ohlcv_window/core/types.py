"""
Core data types shared by the parser, continuity validator, window and emitter.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple


@dataclass(frozen=True)
class OhlcvRecord:
    """One sampled interval of OHLCV data."""

    ts: int  # Unix timestamp in seconds
    open: float
    high: float
    low: float
    close: float
    volume: float
    synthetic: bool = False  # True for forward-filled records

    def filled_at(self, ts: int) -> "OhlcvRecord":
        """Return a synthetic record at ``ts`` holding this record's close."""
        c = self.close
        return OhlcvRecord(ts=int(ts), open=c, high=c, low=c, close=c, volume=0.0, synthetic=True)


@dataclass(frozen=True)
class OutputRow:
    """Statistics of a full window, stamped with its newest record's timestamp."""

    ts: int
    moving_average: float
    rolling_std: float
    rolling_min: float
    rolling_max: float

    def as_tuple(self) -> Tuple[int, float, float, float, float]:
        return (self.ts, self.moving_average, self.rolling_std, self.rolling_min, self.rolling_max)


OUTPUT_COLUMNS = ("timestamp", "moving_average", "rolling_std", "rolling_min", "rolling_max")


class GapPolicy(str, Enum):
    """How the continuity validator reacts to a gap in the timestamps."""

    STRICT = "strict"
    SKIP_GAPS = "skip_gaps"
    FORWARD_FILL = "forward_fill"

    @classmethod
    def parse(cls, value: "GapPolicy | str") -> "GapPolicy":
        if isinstance(value, cls):
            return value
        norm = str(value).strip().lower().replace("-", "_")
        aliases = {"skip": "skip_gaps", "skipgaps": "skip_gaps", "ffill": "forward_fill", "forwardfill": "forward_fill"}
        norm = aliases.get(norm, norm)
        try:
            return cls(norm)
        except ValueError:
            raise ValueError(f"Unsupported gap policy: {value}") from None


class Transition(str, Enum):
    """Classification of the step between two consecutive timestamps."""

    CONTIGUOUS = "contiguous"
    GAP = "gap"
    DUPLICATE = "duplicate"
    OUT_OF_ORDER = "out_of_order"
    MISALIGNED = "misaligned"


@dataclass
class RunStats:
    """Counters owned by one pipeline run."""

    lines_seen: int = 0  # data lines, excluding header and blank lines
    header_lines: int = 0
    malformed: int = 0
    duplicates: int = 0
    out_of_order: int = 0
    misaligned: int = 0
    gaps_skipped: int = 0
    records_filled: int = 0
    admitted: int = 0
    emitted: int = 0
    last_ts: int | None = None  # ts of the last admitted input record

    @property
    def dropped(self) -> int:
        return self.duplicates + self.out_of_order + self.misaligned + self.gaps_skipped

    @property
    def skip_ratio(self) -> float:
        if self.lines_seen == 0:
            return 0.0
        return self.malformed / self.lines_seen

    def as_dict(self) -> dict:
        return {
            "lines_seen": self.lines_seen,
            "header_lines": self.header_lines,
            "malformed": self.malformed,
            "duplicates": self.duplicates,
            "out_of_order": self.out_of_order,
            "misaligned": self.misaligned,
            "gaps_skipped": self.gaps_skipped,
            "records_filled": self.records_filled,
            "admitted": self.admitted,
            "emitted": self.emitted,
            "last_ts": self.last_ts,
        }


__all__ = [
    "OhlcvRecord",
    "OutputRow",
    "OUTPUT_COLUMNS",
    "GapPolicy",
    "Transition",
    "RunStats",
]
