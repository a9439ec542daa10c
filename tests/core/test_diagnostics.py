"""
Unit tests for pacer diagnostics.

Diagnostics must report the controller state faithfully and never change it.
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from framepacer.core.auto_tuner import TrialResult, TuningPhase
from framepacer.core.diagnostics import TuningStatus, fps_from_frame_time

TARGET_MS = 16.67


class TestFps:
    """Test frame time to FPS conversion."""

    def test_fps(self):
        assert fps_from_frame_time(20.0) == pytest.approx(50.0)

    def test_no_measurement(self):
        assert fps_from_frame_time(0.0) == 0.0


class TestDiagnosticsSnapshot:
    """Test the snapshot taken from a pacer."""

    def test_snapshot_reflects_state(self, pacer, run_frames):
        """Test snapshot fields mirror the pacer."""
        run_frames(pacer, TARGET_MS, frames=25, work_ms=6.0)

        snapshot = pacer.diagnostics()

        assert snapshot.smoothed_frame_time_ms == pacer.smoother.average()
        assert snapshot.fps == pytest.approx(1000.0 / pacer.smoother.average())
        assert (snapshot.kp, snapshot.ki, snapshot.kd) == pacer.current_gains()
        assert snapshot.previous_error == pacer.previous_error
        assert snapshot.integral == pacer.integral
        assert snapshot.commanded_sleep_ms == pacer.commanded_sleep_ms
        assert snapshot.initialized is True
        assert snapshot.tuning.active is False

    def test_queries_do_not_mutate(self, pacer, run_frames, sim_clock):
        """Test repeated queries leave the controller untouched."""
        run_frames(pacer, TARGET_MS, frames=25, work_ms=6.0)
        pacer.start_tuning()
        run_frames(pacer, TARGET_MS, frames=25, work_ms=6.0)
        before = pacer.diagnostics()
        samples = len(pacer.smoother)
        now = sim_clock.now_ms()

        for _ in range(10):
            pacer.diagnostics()
            pacer.tuning_status()
            pacer.current_gains()
            pacer.diagnostic_info()
            pacer.tuning_history()

        assert pacer.diagnostics() == before
        assert sim_clock.now_ms() == now
        assert len(pacer.smoother) == samples

    def test_snapshot_as_dict(self, pacer, run_frames):
        """Test snapshots flatten to plain data."""
        pacer.start_tuning()
        run_frames(pacer, TARGET_MS, frames=5)

        data = pacer.diagnostics().as_dict()

        assert data["tuning"]["phase"] == "coarse"
        assert data["tuning"]["phase_name"] == "Coarse Tuning"
        assert data["tuning"]["best"] is None
        assert data["kp"] == pacer.current_gains()[0]

    def test_snapshot_is_immutable(self, pacer):
        """Test snapshots are frozen."""
        snapshot = pacer.diagnostics()

        with pytest.raises(AttributeError):
            snapshot.integral = 5.0


class TestDiagnosticInfo:
    """Test the one-line diagnostic summary."""

    def test_contains_state(self, pacer, run_frames):
        """Test the summary names every controller quantity."""
        run_frames(pacer, TARGET_MS, frames=10, work_ms=5.0)

        info = pacer.diagnostic_info()

        assert info.startswith("PID State")
        for key in ("Sleep", "Error", "Integral", "Frame Time", "Actual FPS"):
            assert key in info

    def test_after_reset(self, pacer, run_frames):
        """Test a reset pacer reports zero sleep."""
        run_frames(pacer, TARGET_MS, frames=10, work_ms=5.0)
        pacer.reset()

        assert "Sleep: 0.00ms" in pacer.diagnostic_info()

    def test_includes_tuning_progress(self, pacer, run_frames):
        """Test the summary shows tuning progress while tuning."""
        pacer.start_tuning()
        run_frames(pacer, TARGET_MS, frames=3)

        assert "Coarse Tuning: 1/24 (0%)" in pacer.diagnostic_info()


class TestTuningStatus:
    """Test TuningStatus serialization."""

    def test_as_dict_with_best(self):
        best = TrialResult(kp=1.0, ki=0.1, kd=0.01, average_error=0.5, max_error=1.0, stability=0.2, score=0.4)
        status = TuningStatus(
            active=True, phase=TuningPhase.FINE, current_trial=3, total_trials=25, progress_pct=8.0, best=best
        )

        data = status.as_dict()

        assert data["phase"] == "fine"
        assert data["phase_name"] == "Fine Tuning"
        assert data["best"]["score"] == 0.4
        assert data["current_trial"] == 3
