"""
Frame Time Smoother.

This module implements a fixed-size rolling average over recent frame times,
damping single-frame outliers (GC pauses, scheduler hiccups) before they reach
the pacing controller.
"""

from collections import deque

from ..const import FRAME_HISTORY_SIZE


class FrameTimeSmoother:
    """
    Rolling window average of frame time samples.

    Keeps a running sum alongside the window so ``average()`` is O(1).
    """

    def __init__(self, capacity: int = FRAME_HISTORY_SIZE):
        """
        Initialize the smoother.

        Args:
            capacity: Number of most recent samples kept in the window
        """
        if capacity <= 0:
            raise ValueError("Smoother capacity must be positive")

        self.capacity = capacity
        self._samples = deque()
        self._sum = 0.0

    def record(self, sample_ms: float) -> None:
        """
        Add a frame time sample, evicting the oldest once the window is full.

        Args:
            sample_ms: Measured frame time in milliseconds
        """
        self._samples.append(sample_ms)
        self._sum += sample_ms

        while len(self._samples) > self.capacity:
            self._sum -= self._samples.popleft()

    def average(self) -> float:
        """Mean of the samples in the window, or 0.0 when empty."""
        if not self._samples:
            return 0.0
        return self._sum / len(self._samples)

    def clear(self) -> None:
        self._samples.clear()
        self._sum = 0.0

    @property
    def is_full(self) -> bool:
        return len(self._samples) == self.capacity

    def __len__(self) -> int:
        return len(self._samples)

    def __repr__(self) -> str:
        return (
            f"FrameTimeSmoother(capacity={self.capacity}, samples={len(self._samples)}, "
            f"average={self.average():.3f})"
        )
