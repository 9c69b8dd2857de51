from __future__ import annotations

from typing import Optional


class WindowPipelineError(ValueError):
    """Base error; carries the line number and timestamp it was raised at, when known."""

    def __init__(self, message: str, line_no: Optional[int] = None, ts: Optional[int] = None) -> None:
        self.line_no = line_no
        self.ts = ts
        where = []
        if line_no is not None:
            where.append(f"line {line_no}")
        if ts is not None:
            where.append(f"ts {ts}")
        if where:
            message = f"{message} ({', '.join(where)})"
        super().__init__(message)


class InvalidConfiguration(WindowPipelineError):
    pass


class MalformedRecord(WindowPipelineError):
    pass


class TooManyMalformedRecords(WindowPipelineError):
    pass


class GapExceeded(WindowPipelineError):
    pass


class OutOfOrderRecord(WindowPipelineError):
    """Warning payload for records dropped by the continuity validator. Never fatal."""


__all__ = [
    "WindowPipelineError",
    "InvalidConfiguration",
    "MalformedRecord",
    "TooManyMalformedRecords",
    "GapExceeded",
    "OutOfOrderRecord",
]
