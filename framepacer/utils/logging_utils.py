"""
Logging helpers for frame pacer hosts.

Log lines carry the time since the host started (``app_time``), which makes
it easy to line up auto-tuning trial results with the schedule of a run.
"""

import logging
import sys
import time
from typing import Optional

DEFAULT_LOG_FORMAT = "%(asctime)s - %(app_time)s - %(name)s - %(levelname)s - %(message)s"


class AppTimeFormatter(logging.Formatter):
    """Formatter that adds ``app_time``, the mm:ss.xxx elapsed since host start."""

    def __init__(
        self, fmt: Optional[str] = None, datefmt: Optional[str] = None, app_start_time: Optional[float] = None
    ):
        """
        Initialize the formatter.

        Args:
            fmt: Log format string
            datefmt: Date format string
            app_start_time: Host start time (time.time()). If None, uses current time.
        """
        super().__init__(fmt, datefmt)
        self.app_start_time = app_start_time or time.time()

    def format(self, record):
        """Format the log record with the elapsed host time."""
        elapsed_seconds = record.created - self.app_start_time
        minutes = int(elapsed_seconds // 60)
        seconds = elapsed_seconds % 60
        record.app_time = f"{minutes:02d}:{seconds:06.3f}"
        return super().format(record)


# Host start time, set when logging is first configured
_app_start_time: Optional[float] = None


def get_app_start_time() -> float:
    """Get the host start time, fixing it on first use."""
    global _app_start_time
    if _app_start_time is None:
        _app_start_time = time.time()
    return _app_start_time


def set_app_start_time(start_time: float) -> None:
    """Set the host start time."""
    global _app_start_time
    _app_start_time = start_time


def create_app_time_formatter(fmt: Optional[str] = None, datefmt: Optional[str] = None) -> AppTimeFormatter:
    """
    Create a formatter anchored at the host start time.

    Args:
        fmt: Log format string. If None, uses DEFAULT_LOG_FORMAT.
        datefmt: Date format string

    Returns:
        AppTimeFormatter instance
    """
    return AppTimeFormatter(fmt=fmt or DEFAULT_LOG_FORMAT, datefmt=datefmt, app_start_time=get_app_start_time())


def configure_logging(
    debug: bool = False,
    log_file: Optional[str] = None,
    console_level: int = logging.WARNING,
    target: Optional[logging.Logger] = None,
) -> logging.Logger:
    """
    Install console and optional file handlers on the root logger (or ``target``).

    The console only shows ``console_level`` and above; the file receives
    everything at DEBUG or INFO depending on ``debug``.

    Args:
        debug: Log DEBUG records (per-frame PID terms) instead of INFO
        log_file: Optional path of a log file, truncated on start
        console_level: Minimum level echoed to stdout
        target: Logger to configure, the root logger by default

    Returns:
        The configured logger
    """
    set_app_start_time(time.time())
    formatter = create_app_time_formatter()

    root_logger = target if target is not None else logging.getLogger()
    root_logger.handlers = []
    root_logger.setLevel(logging.DEBUG if debug else logging.INFO)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(console_level)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="w")
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    return root_logger
