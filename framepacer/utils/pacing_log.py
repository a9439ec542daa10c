"""
Per-frame pacing log.

This module records the pacer's state once per frame to a CSV file so pacing
runs and auto-tuning sessions can be analysed offline.
"""

import csv
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, TextIO

logger = logging.getLogger(__name__)


@dataclass
class PacingSample:
    """Controller state after one paced frame."""

    frame_index: int = 0
    target_frame_time_ms: float = 0.0
    smoothed_frame_time_ms: float = 0.0
    error_ms: float = 0.0
    integral: float = 0.0
    commanded_sleep_ms: float = 0.0
    kp: float = 0.0
    ki: float = 0.0
    kd: float = 0.0
    tuning_phase: str = ""  # Empty when not tuning

    @classmethod
    def from_snapshot(cls, frame_index: int, target_frame_time_ms: float, snapshot) -> "PacingSample":
        """Build a sample from a DiagnosticsSnapshot."""
        return cls(
            frame_index=frame_index,
            target_frame_time_ms=target_frame_time_ms,
            smoothed_frame_time_ms=snapshot.smoothed_frame_time_ms,
            error_ms=snapshot.previous_error,
            integral=snapshot.integral,
            commanded_sleep_ms=snapshot.commanded_sleep_ms,
            kp=snapshot.kp,
            ki=snapshot.ki,
            kd=snapshot.kd,
            tuning_phase=snapshot.tuning.phase.value if snapshot.tuning.active else "",
        )

    def to_csv_row(self) -> list:
        return [
            self.frame_index,
            self.target_frame_time_ms,
            self.smoothed_frame_time_ms,
            self.error_ms,
            self.integral,
            self.commanded_sleep_ms,
            self.kp,
            self.ki,
            self.kd,
            self.tuning_phase,
        ]

    @classmethod
    def csv_header(cls) -> list:
        return [
            "frame_index",
            "target_frame_time_ms",
            "smoothed_frame_time_ms",
            "error_ms",
            "integral",
            "commanded_sleep_ms",
            "kp",
            "ki",
            "kd",
            "tuning_phase",
        ]


class PacingLogger:
    """
    Writes PacingSample rows to a CSV file.

    I/O failures are logged and disable the logger; they never propagate into
    the frame loop.
    """

    def __init__(self, log_file_path: str, flush_interval: int = 60):
        """
        Initialize pacing logger.

        Args:
            log_file_path: Path to CSV file for pacing data
            flush_interval: Rows between explicit flushes
        """
        self.log_file_path = Path(log_file_path)
        self.flush_interval = max(1, flush_interval)
        self._file_handle: Optional[TextIO] = None
        self._csv_writer: Optional[Any] = None
        self._rows_written = 0

    @property
    def is_active(self) -> bool:
        return self._csv_writer is not None

    @property
    def rows_written(self) -> int:
        return self._rows_written

    def start(self) -> bool:
        """
        Open the log file and write the header.

        Returns:
            True if logging started successfully, False otherwise
        """
        # Release any handle left by a previous start
        self.stop()

        try:
            self.log_file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_handle = open(self.log_file_path, "w", newline="")  # noqa: SIM115
            self._csv_writer = csv.writer(self._file_handle)
            self._csv_writer.writerow(PacingSample.csv_header())
            self._rows_written = 0
            logger.info(f"Started pacing log at {self.log_file_path}")
            return True

        except OSError as e:
            logger.error(f"Failed to start pacing log: {e}")
            self.stop()
            return False

    def log(self, sample: PacingSample) -> None:
        if not self.is_active:
            return

        try:
            self._csv_writer.writerow(sample.to_csv_row())
            self._rows_written += 1
            if self._rows_written % self.flush_interval == 0:
                self._file_handle.flush()

        except OSError as e:
            logger.error(f"Failed to write pacing sample, disabling pacing log: {e}")
            self.stop()

    def stop(self) -> None:
        """Flush and close the log file."""
        if self._file_handle:
            try:
                self._file_handle.close()
                logger.info(f"Stopped pacing log at {self.log_file_path} ({self._rows_written} rows)")
            except OSError as e:
                logger.error(f"Error closing pacing log: {e}")
            finally:
                self._file_handle = None
                self._csv_writer = None

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
