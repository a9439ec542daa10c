"""
High precision clock and sleep primitive.

This module wraps the monotonic performance counter and implements the hybrid
wait used by the frame pacer: an OS sleep covers the bulk of long waits and a
cooperative spin on the performance counter finishes the remainder, giving
sub-millisecond precision without pinning a core for the whole wait.

A simulated clock with the same interface is provided for deterministic tests
and offline tuning runs.
"""

import logging
import math
import time

from ..const import COARSE_SLEEP_THRESHOLD_MS, SPIN_WAIT_THRESHOLD_MS, SPIN_YIELD_CUTOFF_MS

logger = logging.getLogger(__name__)


class PrecisionClock:
    """Monotonic wall clock with a hybrid sleep/spin wait."""

    def __init__(
        self,
        coarse_threshold_ms: float = COARSE_SLEEP_THRESHOLD_MS,
        spin_threshold_ms: float = SPIN_WAIT_THRESHOLD_MS,
        yield_cutoff_ms: float = SPIN_YIELD_CUTOFF_MS,
    ):
        """
        Initialize the clock.

        Args:
            coarse_threshold_ms: Waits longer than this start with an OS sleep
            spin_threshold_ms: Time reserved for spinning at the end of a long wait
            yield_cutoff_ms: Spin without yielding once this close to the deadline
        """
        self.coarse_threshold_ms = coarse_threshold_ms
        self.spin_threshold_ms = spin_threshold_ms
        self.yield_cutoff_ms = yield_cutoff_ms

    def now_ms(self) -> float:
        """Current monotonic time in milliseconds."""
        return time.perf_counter() * 1000.0

    def wait(self, ms: float) -> None:
        """
        Block the calling thread for approximately ``ms`` milliseconds.

        Never returns early. Non-positive and non-finite durations return
        immediately.

        Args:
            ms: Wait duration in milliseconds
        """
        if not ms > 0 or math.isinf(ms):
            return

        start = time.perf_counter()
        target_s = ms / 1000.0

        # Phase 1: coarse OS sleep for the bulk of the time
        if ms > self.coarse_threshold_ms:
            coarse_ms = math.floor(ms - self.spin_threshold_ms)
            if coarse_ms > 0:
                time.sleep(coarse_ms / 1000.0)

        # Phase 2: spin for the remainder, yielding until the final stretch
        yield_until_s = target_s - self.yield_cutoff_ms / 1000.0
        while True:
            elapsed_s = time.perf_counter() - start
            if elapsed_s >= target_s:
                break
            if elapsed_s < yield_until_s:
                time.sleep(0)

        # The spin cannot recover from an OS sleep that ran past the deadline
        overshoot_ms = elapsed_s * 1000.0 - ms
        if overshoot_ms > self.spin_threshold_ms:
            logger.debug(f"Wait of {ms:.3f}ms overshot by {overshoot_ms:.3f}ms")


class SimulatedClock:
    """
    Virtual clock for deterministic pacing.

    Time only moves when the host calls ``advance`` (to model render work) or
    when the pacer calls ``wait``. Waits are recorded so tests can inspect
    exactly what the controller asked for.
    """

    def __init__(self, start_ms: float = 0.0):
        self._now_ms = float(start_ms)
        self.wait_count = 0
        self.total_waited_ms = 0.0
        self.last_wait_ms = None

    def now_ms(self) -> float:
        return self._now_ms

    def advance(self, ms: float) -> None:
        """Move virtual time forward by ``ms`` milliseconds."""
        if ms < 0:
            raise ValueError("Cannot move a simulated clock backwards")
        self._now_ms += ms

    def wait(self, ms: float) -> None:
        if not ms > 0 or math.isinf(ms):
            return
        self._now_ms += ms
        self.wait_count += 1
        self.total_waited_ms += ms
        self.last_wait_ms = ms

    def __repr__(self) -> str:
        return f"SimulatedClock(now_ms={self._now_ms:.3f}, waits={self.wait_count})"
