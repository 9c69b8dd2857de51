"""
Fixed-capacity sliding window over admitted records.

Maintains running sum, sum of squares, min and max of ``close`` so that each
push costs O(1) amortized. Two extremum strategies are available:

- ``"rescan"``: cache min/max and rescan the buffer only when the evicted
  close equals a cached extremum.
- ``"monotonic"``: keep monotonic deques of closes, giving strict O(1)
  amortized eviction at the cost of extra state.
"""

from __future__ import annotations

import math
from collections import deque
from typing import Deque, Iterator, List, Optional

from ohlcv_window.core.types import OhlcvRecord

EXTREMA_MODES = ("rescan", "monotonic")


class _MonotonicExtrema:
    """Sliding min/max via two monotonic deques of (seq, value)."""

    def __init__(self) -> None:
        self._min: Deque[tuple[int, float]] = deque()
        self._max: Deque[tuple[int, float]] = deque()

    def push(self, seq: int, value: float) -> None:
        while self._min and self._min[-1][1] >= value:
            self._min.pop()
        self._min.append((seq, value))
        while self._max and self._max[-1][1] <= value:
            self._max.pop()
        self._max.append((seq, value))

    def evict(self, seq: int) -> None:
        if self._min and self._min[0][0] == seq:
            self._min.popleft()
        if self._max and self._max[0][0] == seq:
            self._max.popleft()

    @property
    def min(self) -> float:
        return self._min[0][1]

    @property
    def max(self) -> float:
        return self._max[0][1]


class SlidingWindow:
    """FIFO window of the last ``capacity`` records with incremental aggregates over ``close``."""

    def __init__(self, capacity: int, extrema: str = "rescan", resync_interval: Optional[int] = 100_000) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        if extrema not in EXTREMA_MODES:
            raise ValueError(f"Unsupported extrema mode: {extrema}")
        self.capacity = int(capacity)
        self.extrema = extrema
        self.resync_interval = resync_interval
        self._records: Deque[OhlcvRecord] = deque()
        self._sum = 0.0
        self._sum_sq = 0.0
        self._min = float("inf")
        self._max = float("-inf")
        self._mono = _MonotonicExtrema() if extrema == "monotonic" else None
        self._pushes = 0  # sequence number of the next push

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[OhlcvRecord]:
        return iter(self._records)

    @property
    def is_full(self) -> bool:
        return len(self._records) == self.capacity

    @property
    def oldest(self) -> Optional[OhlcvRecord]:
        return self._records[0] if self._records else None

    @property
    def newest(self) -> Optional[OhlcvRecord]:
        return self._records[-1] if self._records else None

    @property
    def running_sum(self) -> float:
        return self._sum

    @property
    def running_sum_sq(self) -> float:
        return self._sum_sq

    @property
    def running_min(self) -> float:
        if self._mono is not None:
            return self._mono.min
        return self._min

    @property
    def running_max(self) -> float:
        if self._mono is not None:
            return self._mono.max
        return self._max

    def closes(self) -> List[float]:
        return [r.close for r in self._records]

    def _evict(self) -> None:
        old = self._records.popleft()
        c = old.close
        self._sum -= c
        self._sum_sq -= c * c
        if self._mono is not None:
            self._mono.evict(self._pushes - self.capacity)
            return
        if not self._records:
            self._min = float("inf")
            self._max = float("-inf")
            return
        if c == self._min:
            self._min = min(r.close for r in self._records)
        if c == self._max:
            self._max = max(r.close for r in self._records)

    def push(self, record: OhlcvRecord) -> bool:
        """Admit ``record``, evicting the oldest one when full. Returns True when the window is full."""
        if len(self._records) == self.capacity:
            self._evict()

        c = record.close
        self._records.append(record)
        self._sum += c
        self._sum_sq += c * c
        if self._mono is not None:
            self._mono.push(self._pushes, c)
        else:
            if c < self._min:
                self._min = c
            if c > self._max:
                self._max = c
        self._pushes += 1

        if self.resync_interval and self._pushes % self.resync_interval == 0:
            self.resync()
        return self.is_full

    def resync(self) -> None:
        """Recompute the running sums from the buffer to shed accumulated rounding error."""
        closes = self.closes()
        self._sum = math.fsum(closes)
        self._sum_sq = math.fsum(c * c for c in closes)


__all__ = ["EXTREMA_MODES", "SlidingWindow"]
