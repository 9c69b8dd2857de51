"""
Rolling statistics over large OHLCV CSV files.

The package streams a CSV once, keeps only the last W records in memory and
emits moving average, rolling standard deviation and rolling min/max of the
close price for every full window.
"""

from .config import WindowConfig, load_config
from .core import (
    GapExceeded,
    GapPolicy,
    InvalidConfiguration,
    MalformedRecord,
    OhlcvRecord,
    OutOfOrderRecord,
    OutputRow,
    RunStats,
    SlidingWindow,
    TooManyMalformedRecords,
    WindowPipelineError,
)
from .pipeline import WindowPipeline, compute_window_stats
from .sinks import ConsoleSink, CsvSink, Sink

__version__ = "0.1.0"

__all__ = [
    "WindowConfig",
    "load_config",
    "GapPolicy",
    "OhlcvRecord",
    "OutputRow",
    "RunStats",
    "SlidingWindow",
    "WindowPipeline",
    "compute_window_stats",
    "Sink",
    "ConsoleSink",
    "CsvSink",
    "WindowPipelineError",
    "InvalidConfiguration",
    "MalformedRecord",
    "TooManyMalformedRecords",
    "GapExceeded",
    "OutOfOrderRecord",
]
