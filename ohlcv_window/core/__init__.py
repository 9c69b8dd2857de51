"""
Streaming sliding-window engine.

- Record parsing (CSV line -> OhlcvRecord)
- Timestamp continuity (gap policies)
- Sliding window with incremental aggregates
- Statistic emission
"""

from ohlcv_window.core.continuity import ContinuityValidator, Verdict, classify
from ohlcv_window.core.emitter import StatisticEmitter, population_variance
from ohlcv_window.core.errors import (
    GapExceeded,
    InvalidConfiguration,
    MalformedRecord,
    OutOfOrderRecord,
    TooManyMalformedRecords,
    WindowPipelineError,
)
from ohlcv_window.core.parser import REQUIRED_COLUMNS, RecordParser, parse_timestamp
from ohlcv_window.core.types import OUTPUT_COLUMNS, GapPolicy, OhlcvRecord, OutputRow, RunStats, Transition
from ohlcv_window.core.window import EXTREMA_MODES, SlidingWindow

__all__ = [
    # Types
    "OhlcvRecord",
    "OutputRow",
    "OUTPUT_COLUMNS",
    "GapPolicy",
    "Transition",
    "RunStats",
    # Errors
    "WindowPipelineError",
    "InvalidConfiguration",
    "MalformedRecord",
    "TooManyMalformedRecords",
    "GapExceeded",
    "OutOfOrderRecord",
    # Parser
    "REQUIRED_COLUMNS",
    "RecordParser",
    "parse_timestamp",
    # Continuity
    "classify",
    "Verdict",
    "ContinuityValidator",
    # Window
    "EXTREMA_MODES",
    "SlidingWindow",
    # Emitter
    "StatisticEmitter",
    "population_variance",
]
