import pathlib
from typing import Iterable, List

import pytest

HEADER = "timestamp,open,high,low,close,volume"


def make_lines(closes: Iterable[float], start: int = 0, interval: int = 60, header: bool = False) -> List[str]:
    """Flat OHLCV lines (open=high=low=close) for the given closes, evenly spaced."""
    lines = [HEADER] if header else []
    for i, c in enumerate(closes):
        lines.append(f"{start + i * interval},{c},{c},{c},{c},1.0")
    return lines


@pytest.fixture
def write_csv(tmp_path):
    """Write lines to a CSV under tmp_path and return its path."""

    def _write(lines: Iterable[str], name: str = "data.csv") -> pathlib.Path:
        path = tmp_path / name
        path.write_text("\n".join(lines) + "\n")
        return path

    return _write


@pytest.fixture
def ohlcv_lines():
    return make_lines
