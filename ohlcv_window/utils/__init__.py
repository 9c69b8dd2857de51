from ohlcv_window.utils.log import setup_logging

__all__ = ["setup_logging"]
