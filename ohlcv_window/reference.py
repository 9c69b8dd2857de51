"""
Batch reference for the streaming statistics, computed with pandas rolling windows.

Holds the whole series in memory, so it is meant for cross-checking the
streaming engine and for callers that already have a DataFrame.
"""

from __future__ import annotations

from typing import Iterable, Sequence

import numpy as np
import pandas as pd

from ohlcv_window.core.types import OhlcvRecord

STAT_COLUMNS = ["moving_average", "rolling_std", "rolling_min", "rolling_max"]


def rolling_reference(closes: Sequence[float] | pd.Series, window: int) -> pd.DataFrame:
    """
    Rolling mean, population std, min and max of ``closes``.

    Rows before the window fills are dropped, so row ``k`` of the result
    lines up with the ``k``-th emitted row of the streaming pipeline.
    """
    if window <= 0:
        raise ValueError("window must be positive")
    s = pd.Series(closes, dtype=float) if not isinstance(closes, pd.Series) else closes.astype(float)
    roll = s.rolling(window=window, min_periods=window)
    out = pd.DataFrame(
        {
            "moving_average": roll.mean(),
            "rolling_std": np.sqrt(roll.var(ddof=0).clip(lower=0.0)),
            "rolling_min": roll.min(),
            "rolling_max": roll.max(),
        },
        index=s.index,
    )
    return out.iloc[window - 1 :]


def rolling_reference_frame(df: pd.DataFrame, window: int, close_col: str = "close") -> pd.DataFrame:
    """Same as :func:`rolling_reference` for an OHLCV DataFrame, keeping its index."""
    if close_col not in df.columns:
        raise ValueError(f"DataFrame must have '{close_col}' column")
    close = pd.to_numeric(df[close_col], errors="coerce")
    return rolling_reference(close, window)


def records_to_frame(records: Iterable[OhlcvRecord]) -> pd.DataFrame:
    """OHLCV DataFrame indexed by UTC timestamps."""
    rows = [
        {"ts": r.ts, "open": r.open, "high": r.high, "low": r.low, "close": r.close, "volume": r.volume, "synthetic": r.synthetic}
        for r in records
    ]
    df = pd.DataFrame(rows, columns=["ts", "open", "high", "low", "close", "volume", "synthetic"])
    df.index = pd.to_datetime(df.pop("ts"), unit="s", utc=True)
    df.index.name = "timestamp"
    return df


__all__ = ["STAT_COLUMNS", "rolling_reference", "rolling_reference_frame", "records_to_frame"]
