from __future__ import annotations

import logging
import os
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """Configure root logging for CLI runs. ``level`` falls back to $LOG_LEVEL, then INFO."""
    name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    lvl = getattr(logging, name, logging.INFO)
    # force=True replaces any handlers installed earlier in the process
    logging.basicConfig(level=lvl, format=LOG_FORMAT, force=True)
    logger = logging.getLogger("ohlcv_window")
    logger.setLevel(lvl)
    return logger
