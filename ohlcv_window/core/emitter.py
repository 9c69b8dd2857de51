from __future__ import annotations

import math
from typing import Optional

from ohlcv_window.core.types import OutputRow
from ohlcv_window.core.window import SlidingWindow


def population_variance(running_sum: float, running_sum_sq: float, n: int) -> float:
    """Population variance from running sums, clamped at zero against cancellation error."""
    mean = running_sum / n
    return max(0.0, running_sum_sq / n - mean * mean)


class StatisticEmitter:
    """Turn a full window into an :class:`OutputRow`; nothing until the window fills."""

    def emit(self, window: SlidingWindow) -> Optional[OutputRow]:
        if not window.is_full:
            return None
        n = window.capacity
        lo = window.running_min
        hi = window.running_max
        if lo == hi:
            # flat window (includes W == 1): exact mean, zero spread
            return OutputRow(ts=window.newest.ts, moving_average=lo, rolling_std=0.0, rolling_min=lo, rolling_max=hi)
        var = population_variance(window.running_sum, window.running_sum_sq, n)
        return OutputRow(
            ts=window.newest.ts,
            moving_average=window.running_sum / n,
            rolling_std=math.sqrt(var),
            rolling_min=lo,
            rolling_max=hi,
        )


__all__ = ["population_variance", "StatisticEmitter"]
