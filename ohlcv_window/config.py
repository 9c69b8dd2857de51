from __future__ import annotations

import dataclasses
import pathlib
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple

import yaml

from ohlcv_window.core.errors import InvalidConfiguration
from ohlcv_window.core.parser import REQUIRED_COLUMNS
from ohlcv_window.core.types import GapPolicy
from ohlcv_window.core.window import EXTREMA_MODES


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(frozen=True)
class WindowConfig:
    """Run configuration for one pipeline pass."""

    window_size: int = 14
    interval_seconds: int = 60
    gap_policy: GapPolicy = GapPolicy.STRICT
    max_forward_fill: int = 0
    max_skip_ratio: Optional[float] = None  # None disables the malformed-line circuit breaker
    skip_ratio_min_lines: int = 100
    columns: Tuple[str, ...] = REQUIRED_COLUMNS
    extrema: str = "rescan"
    resync_interval: Optional[int] = 100_000

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "gap_policy", GapPolicy.parse(self.gap_policy))
        except ValueError as exc:
            raise InvalidConfiguration(str(exc)) from None
        object.__setattr__(self, "columns", tuple(self.columns))

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "WindowConfig":
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(raw) - known)
        if unknown:
            raise InvalidConfiguration(f"Unknown configuration keys: {unknown}")
        return cls(**dict(raw))

    def replace(self, **overrides: Any) -> "WindowConfig":
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return dataclasses.replace(self, **changes)

    def validate(self) -> "WindowConfig":
        if not _is_int(self.window_size) or self.window_size <= 0:
            raise InvalidConfiguration(f"window_size must be a positive integer, got {self.window_size!r}")
        if not _is_int(self.interval_seconds) or self.interval_seconds <= 0:
            raise InvalidConfiguration(f"interval_seconds must be a positive integer, got {self.interval_seconds!r}")
        if not _is_int(self.max_forward_fill) or self.max_forward_fill < 0:
            raise InvalidConfiguration(f"max_forward_fill must be a non-negative integer, got {self.max_forward_fill!r}")
        if self.max_skip_ratio is not None and (
            not _is_number(self.max_skip_ratio) or not 0.0 <= self.max_skip_ratio <= 1.0
        ):
            raise InvalidConfiguration(f"max_skip_ratio must be a number within [0, 1], got {self.max_skip_ratio!r}")
        if not _is_int(self.skip_ratio_min_lines) or self.skip_ratio_min_lines < 0:
            raise InvalidConfiguration("skip_ratio_min_lines must be a non-negative integer")
        missing = [c for c in REQUIRED_COLUMNS if c not in [str(n).strip().lower() for n in self.columns]]
        if missing:
            raise InvalidConfiguration(f"Missing required columns: {missing}")
        if self.extrema not in EXTREMA_MODES:
            raise InvalidConfiguration(f"extrema must be one of {EXTREMA_MODES}, got {self.extrema!r}")
        if self.resync_interval is not None and (not _is_int(self.resync_interval) or self.resync_interval < 0):
            raise InvalidConfiguration("resync_interval must be a non-negative integer")
        return self


def load_config(path: str | pathlib.Path | None) -> WindowConfig:
    """Load a YAML config file. A missing path or file yields the defaults."""
    if path is None:
        return WindowConfig()
    p = pathlib.Path(path)
    if not p.exists():
        return WindowConfig()
    with p.open("r") as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise InvalidConfiguration(f"Config file {p} must contain a mapping")
    if "columns" in raw and isinstance(raw["columns"], str):
        raw["columns"] = [c.strip() for c in raw["columns"].split(",")]
    return WindowConfig.from_mapping(raw)


__all__ = ["WindowConfig", "load_config"]
