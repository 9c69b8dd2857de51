"""
Single-pass pipeline: parse -> continuity -> window -> emit.

This module is the one place the four stages are wired together. Callers feed
it lines (or a file path) and iterate over the emitted rows; nothing is
buffered beyond the window itself.
"""

from __future__ import annotations

import logging
import pathlib
from typing import Iterable, Iterator, List, Optional

from ohlcv_window.config import WindowConfig
from ohlcv_window.core.continuity import ContinuityValidator
from ohlcv_window.core.emitter import StatisticEmitter
from ohlcv_window.core.errors import MalformedRecord, TooManyMalformedRecords
from ohlcv_window.core.parser import RecordParser
from ohlcv_window.core.types import OhlcvRecord, OutputRow, RunStats, Transition
from ohlcv_window.core.window import SlidingWindow
from ohlcv_window.sinks import Sink

logger = logging.getLogger(__name__)

_DROP_COUNTERS = {
    Transition.DUPLICATE: "duplicates",
    Transition.OUT_OF_ORDER: "out_of_order",
    Transition.MISALIGNED: "misaligned",
    Transition.GAP: "gaps_skipped",
}


class WindowPipeline:
    """Owns the per-run state: parser, validator, window, emitter and counters.

    Construct one per run. :meth:`run` raises the fatal errors
    (:class:`~ohlcv_window.core.errors.GapExceeded`,
    :class:`~ohlcv_window.core.errors.TooManyMalformedRecords`) at the point
    they occur; rows yielded before that remain valid.
    """

    def __init__(self, config: Optional[WindowConfig] = None) -> None:
        self.config = (config or WindowConfig()).validate()
        cfg = self.config
        self.parser = RecordParser(cfg.columns)
        self.validator = ContinuityValidator(
            interval=cfg.interval_seconds,
            policy=cfg.gap_policy,
            max_forward_fill=cfg.max_forward_fill,
        )
        self.window = SlidingWindow(cfg.window_size, extrema=cfg.extrema, resync_interval=cfg.resync_interval)
        self.emitter = StatisticEmitter()
        self.stats = RunStats()

    def _check_skip_ratio(self, line_no: Optional[int]) -> None:
        ratio = self.config.max_skip_ratio
        if ratio is None or self.stats.lines_seen < self.config.skip_ratio_min_lines:
            return
        if self.stats.skip_ratio > ratio:
            raise TooManyMalformedRecords(
                f"{self.stats.malformed} of {self.stats.lines_seen} lines malformed "
                f"(ratio {self.stats.skip_ratio:.3f} > {ratio})",
                line_no=line_no,
            )

    def feed_record(self, record: OhlcvRecord, line_no: Optional[int] = None) -> List[OutputRow]:
        """Push one parsed record through continuity, window and emitter."""
        verdict = self.validator.admit(record, line_no=line_no)
        if verdict.dropped:
            counter = _DROP_COUNTERS[verdict.transition]
            setattr(self.stats, counter, getattr(self.stats, counter) + 1)
            logger.warning("%s", verdict.warning)
            return []

        if verdict.filled:
            self.stats.records_filled += verdict.filled
            logger.info("Forward-filled %d record(s) before ts %s", verdict.filled, record.ts)

        rows = []
        for admitted in verdict.admitted:
            self.window.push(admitted)
            self.stats.admitted += 1
            row = self.emitter.emit(self.window)
            if row is not None:
                self.stats.emitted += 1
                rows.append(row)
        self.stats.last_ts = record.ts
        return rows

    def feed_line(self, line: str, line_no: Optional[int] = None) -> List[OutputRow]:
        """Parse and process one raw line. Header and blank lines produce nothing."""
        if not line.strip():
            return []
        if self.parser.try_header(line):
            self.stats.header_lines += 1
            return []

        self.stats.lines_seen += 1
        try:
            record = self.parser.parse(line, line_no=line_no)
        except MalformedRecord as exc:
            self.stats.malformed += 1
            logger.warning("Skipping malformed line: %s", exc)
            self._check_skip_ratio(line_no)
            return []
        if self.stats.lines_seen == self.config.skip_ratio_min_lines:
            self._check_skip_ratio(line_no)
        return self.feed_record(record, line_no=line_no)

    def run(self, lines: Iterable[str]) -> Iterator[OutputRow]:
        """Yield output rows for an ordered iterable of lines (1-based line numbers)."""
        for line_no, line in enumerate(lines, start=1):
            yield from self.feed_line(line, line_no)
        self._check_skip_ratio(None)
        logger.info("Run finished: %s", self.stats.as_dict())

    def run_file(self, path: str | pathlib.Path) -> Iterator[OutputRow]:
        # undecodable bytes become U+FFFD and fail parsing as a malformed line
        with open(path, "r", newline="", encoding="utf-8", errors="replace") as f:
            yield from self.run(f)

    def run_to_sink(self, lines: Iterable[str], sink: Sink) -> RunStats:
        """Stream every row into ``sink``; the sink is closed even when the run fails."""
        try:
            for row in self.run(lines):
                sink.write(row)
        finally:
            sink.close()
        return self.stats


def compute_window_stats(lines: Iterable[str], config: Optional[WindowConfig] = None) -> Iterator[OutputRow]:
    """Convenience wrapper: one fresh pipeline over ``lines``."""
    return WindowPipeline(config).run(lines)


__all__ = ["WindowPipeline", "compute_window_stats"]
