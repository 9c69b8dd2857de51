"""
Timestamp continuity checks between consecutive admitted records.

The validator decides, per candidate record, what the window should see:
nothing (dropped), the candidate alone, or forward-filled records followed by
the candidate.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from ohlcv_window.core.errors import GapExceeded, OutOfOrderRecord
from ohlcv_window.core.types import GapPolicy, OhlcvRecord, Transition

logger = logging.getLogger(__name__)


def classify(prev_ts: Optional[int], ts: int, interval: int) -> Transition:
    """Classify the step from ``prev_ts`` to ``ts`` for a sampling ``interval`` in seconds."""
    if prev_ts is None:
        return Transition.CONTIGUOUS
    delta = ts - prev_ts
    if delta == interval:
        return Transition.CONTIGUOUS
    if delta == 0:
        return Transition.DUPLICATE
    if delta < 0:
        return Transition.OUT_OF_ORDER
    if delta % interval != 0:
        return Transition.MISALIGNED
    return Transition.GAP


@dataclass(frozen=True)
class Verdict:
    transition: Transition
    admitted: Tuple[OhlcvRecord, ...] = ()
    warning: Optional[OutOfOrderRecord] = None  # set when the candidate was dropped

    @property
    def dropped(self) -> bool:
        return not self.admitted

    @property
    def filled(self) -> int:
        return sum(1 for r in self.admitted if r.synthetic)


class ContinuityValidator:
    """Apply a :class:`GapPolicy` to a stream of parsed records."""

    def __init__(self, interval: int, policy: GapPolicy | str = GapPolicy.STRICT, max_forward_fill: int = 0) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        if max_forward_fill < 0:
            raise ValueError("max_forward_fill must be non-negative")
        self.interval = int(interval)
        self.policy = GapPolicy.parse(policy)
        self.max_forward_fill = int(max_forward_fill)
        self._anchor_ts: Optional[int] = None
        self._last: Optional[OhlcvRecord] = None

    @property
    def anchor_ts(self) -> Optional[int]:
        return self._anchor_ts

    def _accept(self, record: OhlcvRecord) -> None:
        self._anchor_ts = record.ts
        self._last = record

    def admit(self, record: OhlcvRecord, line_no: Optional[int] = None) -> Verdict:
        """Decide what to admit for ``record``.

        Raises :class:`GapExceeded` under ``STRICT`` on any gap, and under
        ``FORWARD_FILL`` when the gap needs more than ``max_forward_fill``
        synthetic records.
        """
        transition = classify(self._anchor_ts, record.ts, self.interval)

        if transition is Transition.CONTIGUOUS:
            self._accept(record)
            return Verdict(transition, (record,))

        if transition in (Transition.DUPLICATE, Transition.OUT_OF_ORDER, Transition.MISALIGNED):
            warning = OutOfOrderRecord(
                f"Dropped {transition.value} record after ts {self._anchor_ts}",
                line_no=line_no,
                ts=record.ts,
            )
            return Verdict(transition, (), warning)

        missing = (record.ts - self._anchor_ts) // self.interval - 1

        if self.policy is GapPolicy.STRICT:
            raise GapExceeded(
                f"Gap of {missing} missing interval(s) after ts {self._anchor_ts}",
                line_no=line_no,
                ts=record.ts,
            )

        if self.policy is GapPolicy.SKIP_GAPS:
            warning = OutOfOrderRecord(
                f"Skipped record opening a gap of {missing} interval(s) after ts {self._anchor_ts}",
                line_no=line_no,
                ts=record.ts,
            )
            # re-anchor so the next contiguous record resumes the stream
            self._anchor_ts = record.ts
            return Verdict(transition, (), warning)

        if missing > self.max_forward_fill:
            raise GapExceeded(
                f"Gap of {missing} interval(s) exceeds max_forward_fill={self.max_forward_fill}",
                line_no=line_no,
                ts=record.ts,
            )
        source = self._last
        start = self._anchor_ts
        fills = tuple(source.filled_at(start + k * self.interval) for k in range(1, missing + 1))
        self._accept(record)
        return Verdict(transition, fills + (record,))


__all__ = ["classify", "Verdict", "ContinuityValidator"]
