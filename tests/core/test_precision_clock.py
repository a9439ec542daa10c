"""
Unit tests for the precision clock and the simulated clock.

The real-clock tests sleep for a few milliseconds at most.
"""

import logging
import sys
import time
from pathlib import Path
from unittest.mock import call, patch

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from framepacer.core.precision_clock import PrecisionClock, SimulatedClock

# =============================================================================
# PrecisionClock Tests
# =============================================================================


class TestPrecisionClock:
    """Test the hybrid sleep/spin wait."""

    def test_now_is_monotonic_milliseconds(self):
        """Test now_ms tracks perf_counter in milliseconds."""
        clock = PrecisionClock()

        before = time.perf_counter() * 1000.0
        now = clock.now_ms()
        after = time.perf_counter() * 1000.0

        assert before <= now <= after

    @pytest.mark.parametrize("duration", [0.0, -1.0, -100.0, float("nan"), float("inf")])
    def test_non_positive_wait_returns_immediately(self, duration):
        """Test waits that cannot be honoured return at once."""
        clock = PrecisionClock()

        start = time.perf_counter()
        clock.wait(duration)
        elapsed_ms = (time.perf_counter() - start) * 1000.0

        assert elapsed_ms < 5.0

    @pytest.mark.realtime
    @pytest.mark.parametrize("duration", [0.3, 2.0, 7.0])
    def test_wait_never_returns_early(self, duration):
        """Test short spin-only and long hybrid waits both last at least the request."""
        clock = PrecisionClock()

        start = time.perf_counter()
        clock.wait(duration)
        elapsed_ms = (time.perf_counter() - start) * 1000.0

        assert elapsed_ms >= duration
        assert elapsed_ms < duration + 50.0

    def test_long_wait_uses_coarse_os_sleep(self):
        """Test waits above the coarse threshold sleep floor(ms - 0.5) first."""
        clock = PrecisionClock()

        with patch("framepacer.core.precision_clock.time.sleep") as mock_sleep:
            clock.wait(6.8)

        assert mock_sleep.call_args_list[0] == call(0.006)
        assert all(c == call(0) for c in mock_sleep.call_args_list[1:])

    def test_short_wait_only_spins(self):
        """Test waits at or below the coarse threshold never OS-sleep."""
        clock = PrecisionClock()

        with patch("framepacer.core.precision_clock.time.sleep") as mock_sleep:
            clock.wait(5.0)

        assert all(c == call(0) for c in mock_sleep.call_args_list)

    def test_custom_thresholds(self):
        """Test thresholds are configurable."""
        clock = PrecisionClock(coarse_threshold_ms=1.0, spin_threshold_ms=0.25, yield_cutoff_ms=0.1)

        with patch("framepacer.core.precision_clock.time.sleep") as mock_sleep:
            clock.wait(3.0)

        assert mock_sleep.call_args_list[0] == call(0.002)

    def test_overshoot_is_logged(self, caplog):
        """Test an OS sleep that runs past the deadline is reported at debug level."""
        clock = PrecisionClock()

        caplog.set_level(logging.DEBUG, logger="framepacer.core.precision_clock")
        with patch("framepacer.core.precision_clock.time.sleep"), patch(
            "framepacer.core.precision_clock.time.perf_counter", side_effect=[0.0, 0.010]
        ):
            clock.wait(6.8)

        assert "overshot by 3.200ms" in caplog.text

    def test_on_time_wait_is_not_logged(self, caplog):
        """Test a wait that ends within the spin margin logs nothing."""
        clock = PrecisionClock()

        caplog.set_level(logging.DEBUG, logger="framepacer.core.precision_clock")
        with patch("framepacer.core.precision_clock.time.sleep"), patch(
            "framepacer.core.precision_clock.time.perf_counter", side_effect=[0.0, 0.0069]
        ):
            clock.wait(6.8)

        assert "overshot" not in caplog.text


# =============================================================================
# SimulatedClock Tests
# =============================================================================


class TestSimulatedClock:
    """Test the virtual clock."""

    def test_starts_at_given_time(self):
        """Test start time."""
        assert SimulatedClock().now_ms() == 0.0
        assert SimulatedClock(start_ms=100.0).now_ms() == 100.0

    def test_advance(self):
        """Test advance moves time forward."""
        clock = SimulatedClock()

        clock.advance(16.5)
        clock.advance(0.5)

        assert clock.now_ms() == pytest.approx(17.0)

    def test_advance_backwards_rejected(self):
        """Test time cannot go backwards."""
        clock = SimulatedClock()

        with pytest.raises(ValueError):
            clock.advance(-1.0)

    def test_wait_moves_time_and_records(self):
        """Test waits advance virtual time and are recorded."""
        clock = SimulatedClock()

        clock.wait(5.0)
        clock.wait(2.5)

        assert clock.now_ms() == pytest.approx(7.5)
        assert clock.wait_count == 2
        assert clock.total_waited_ms == pytest.approx(7.5)
        assert clock.last_wait_ms == 2.5

    def test_non_positive_wait_ignored(self):
        """Test zero and negative waits are not recorded."""
        clock = SimulatedClock()

        clock.wait(0.0)
        clock.wait(-3.0)

        assert clock.now_ms() == 0.0
        assert clock.wait_count == 0
        assert clock.last_wait_ms is None
