"""
Adaptive Frame Pacer.

This module implements a PID feedback controller that paces a render loop to a
target frame time. Every frame it measures the wall time since the previous
frame, smooths it over a short window, and nudges a persistent sleep
commitment towards whatever value makes the smoothed frame time match the
target. The sleep itself uses the hybrid sleep/spin wait of the precision
clock.

An optional auto-tuning session (see ``auto_tuner``) piggybacks on the same
per-frame call to search for gains that suit the host machine.
"""

import logging
import math
from typing import List, Optional, Tuple

from ..const import (
    DEFAULT_KD,
    DEFAULT_KI,
    DEFAULT_KP,
    FRAME_HISTORY_SIZE,
    INITIAL_SLEEP_OFFSET_MS,
    INTEGRAL_LIMIT_FACTOR,
    MAX_SLEEP_FACTOR,
    MIN_SLEEP_MS,
    OUTPUT_DAMPING,
)
from ..utils.frame_time_smoother import FrameTimeSmoother
from .auto_tuner import AutoTuner, Gains, TrialResult, TuningPhase
from .diagnostics import DiagnosticsSnapshot, TuningStatus, format_diagnostic_info, fps_from_frame_time
from .precision_clock import PrecisionClock

logger = logging.getLogger(__name__)


def _validate_gains(kp: float, ki: float, kd: float) -> Gains:
    gains = (float(kp), float(ki), float(kd))
    for name, value in zip(("kp", "ki", "kd"), gains):
        if not math.isfinite(value) or value < 0:
            raise ValueError(f"Gain {name} must be a finite non-negative number, got {value}")
    return gains


def _effective_target(target_frame_time_ms: float) -> float:
    """Target used for control; degenerate targets collapse to zero (no sleep)."""
    if not math.isfinite(target_frame_time_ms) or target_frame_time_ms <= 0:
        return 0.0
    return target_frame_time_ms


class FramePacer:
    """
    PID controlled frame pacer with optional self-tuning.

    The pacer must be driven from a single thread, once per frame. It keeps no
    threads of its own; ``pace`` is the only call that blocks.
    """

    def __init__(
        self,
        kp: float = DEFAULT_KP,
        ki: float = DEFAULT_KI,
        kd: float = DEFAULT_KD,
        clock=None,
        history_size: int = FRAME_HISTORY_SIZE,
        log_interval_frames: int = 120,
    ):
        """
        Initialize the pacer.

        Args:
            kp: Proportional gain - reaction to the current error
            ki: Integral gain - reaction to accumulated error
            kd: Derivative gain - reaction to the change in error
            clock: Object providing ``now_ms()`` and ``wait(ms)``; defaults to PrecisionClock
            history_size: Frames averaged by the frame time smoother
            log_interval_frames: Frames between periodic debug log lines
        """
        self._gains = _validate_gains(kp, ki, kd)
        self._production_gains = self._gains
        self.clock = clock if clock is not None else PrecisionClock()
        self.log_interval_frames = max(1, int(log_interval_frames))

        # Controller state
        self.smoother = FrameTimeSmoother(history_size)
        self.previous_error = 0.0
        self.integral = 0.0
        self.commanded_sleep_ms = 0.0
        self.initialized = False
        self.last_frame_timestamp_ms = self.clock.now_ms()
        self.frame_count = 0

        # Auto-tuning
        self._tuning: Optional[AutoTuner] = None
        self._last_tuning_best: Optional[TrialResult] = None
        self._last_tuning_results: List[TrialResult] = []

        logger.info(f"FramePacer initialized: gains=({kp:.3f}, {ki:.3f}, {kd:.3f}), history={history_size}")

    @classmethod
    def from_config(cls, config, clock=None) -> "FramePacer":
        """Create a pacer from a PacerConfig."""
        return cls(
            kp=config.kp,
            ki=config.ki,
            kd=config.kd,
            clock=clock,
            history_size=config.history_size,
            log_interval_frames=config.log_interval_frames,
        )

    # ------------------------------------------------------------------
    # Per-frame control
    # ------------------------------------------------------------------

    def pace(self, target_frame_time_ms: float) -> None:
        """
        Pace the current frame towards the target frame time.

        Call exactly once per frame. Blocks for at most 1.2x the target.

        Args:
            target_frame_time_ms: Desired time per frame in milliseconds
        """
        target = _effective_target(target_frame_time_ms)
        current_time = self.clock.now_ms()

        if not self.initialized:
            # No previous timestamp to measure against yet
            self.last_frame_timestamp_ms = current_time
            self.commanded_sleep_ms = max(0.0, target - INITIAL_SLEEP_OFFSET_MS)
            self.initialized = True
            return

        # Actual frame time includes the previous sleep plus the host's work
        actual_frame_time_ms = current_time - self.last_frame_timestamp_ms
        self.last_frame_timestamp_ms = current_time

        self.smoother.record(actual_frame_time_ms)
        smoothed_frame_time_ms = self.smoother.average()

        # Positive error: frames finish early, more sleep needed
        error = target - smoothed_frame_time_ms

        max_integral = target * INTEGRAL_LIMIT_FACTOR
        self.integral = min(max(self.integral + error, -max_integral), max_integral)

        derivative = error - self.previous_error

        kp, ki, kd = self._gains
        p_term = kp * error
        i_term = ki * self.integral
        d_term = kd * derivative
        pid_output = p_term + i_term + d_term

        self.commanded_sleep_ms += pid_output * OUTPUT_DAMPING
        self.commanded_sleep_ms = min(max(self.commanded_sleep_ms, 0.0), target * MAX_SLEEP_FACTOR)

        if self.commanded_sleep_ms > MIN_SLEEP_MS:
            self.clock.wait(self.commanded_sleep_ms)

        self.previous_error = error
        self.frame_count += 1

        if self.frame_count % self.log_interval_frames == 0:
            logger.debug(
                f"Pacing: target={target:.2f}ms, smoothed={smoothed_frame_time_ms:.2f}ms, "
                f"error={error:.3f}ms, sleep={self.commanded_sleep_ms:.3f}ms, "
                f"P={p_term:.3f}, I={i_term:.3f}, D={d_term:.3f}"
            )

        if self._tuning is not None:
            self._advance_tuning(error)

    def reset(self) -> None:
        """
        Clear controller state.

        Call whenever the target frame time changes; the next ``pace`` call
        behaves like the first call after construction.
        """
        self.previous_error = 0.0
        self.integral = 0.0
        self.commanded_sleep_ms = 0.0
        self.initialized = False
        self.smoother.clear()
        self.last_frame_timestamp_ms = self.clock.now_ms()

    def set_gains(self, kp: float, ki: float, kd: float) -> None:
        """
        Manually override the controller gains.

        Cancels any running auto-tuning session without applying its result
        and resets the controller.
        """
        gains = _validate_gains(kp, ki, kd)
        if self._tuning is not None:
            logger.info("Manual gains set, cancelling auto-tuning")
            self._end_tuning_session()

        self._gains = gains
        self._production_gains = gains
        self.reset()
        logger.info(f"PID gains set manually: ({kp:.3f}, {ki:.3f}, {kd:.3f})")

    # ------------------------------------------------------------------
    # Auto-tuning
    # ------------------------------------------------------------------

    def start_tuning(self) -> None:
        """Start (or restart) the three phase auto-tuning search."""
        if self._tuning is not None:
            logger.info("Restarting auto-tuning session")
            self._end_tuning_session()

        self._last_tuning_best = None
        self._last_tuning_results = []
        self.reset()
        self._tuning = AutoTuner(start_ms=self.clock.now_ms())
        self._gains = self._tuning.current_gains

    def stop_tuning(self) -> None:
        """
        Stop auto-tuning and adopt the best gains found so far.

        If no trial completed, the gains in use before tuning started are
        restored.
        """
        if self._tuning is None:
            logger.debug("stop_tuning called with no active session")
            return

        best = self._tuning.best
        results = len(self._tuning.results)
        self._end_tuning_session()

        if best is not None:
            self._gains = best.gains
            self._production_gains = best.gains
            logger.info(
                f"Auto-tuning stopped after {results} trials, applying best gains "
                f"({best.kp:.3f}, {best.ki:.3f}, {best.kd:.3f}) score={best.score:.4f}"
            )
        else:
            self._gains = self._production_gains
            logger.warning("Auto-tuning stopped before any trial completed, keeping previous gains")

        self.reset()

    def _advance_tuning(self, error: float) -> None:
        next_gains = self._tuning.observe(error, self.clock.now_ms())
        if self._tuning.finished:
            self.stop_tuning()
        elif next_gains is not None:
            self._gains = next_gains
            self.reset()

    def _end_tuning_session(self) -> None:
        self._last_tuning_best = self._tuning.best
        self._last_tuning_results = list(self._tuning.results)
        self._tuning = None

    @property
    def is_tuning(self) -> bool:
        return self._tuning is not None

    def tuning_status(self) -> TuningStatus:
        """Progress of the current auto-tuning session, if any."""
        session = self._tuning
        if session is None:
            return TuningStatus(
                active=False,
                phase=TuningPhase.COMPLETE,
                current_trial=0,
                total_trials=0,
                progress_pct=0.0,
                best=self._last_tuning_best,
            )

        return TuningStatus(
            active=True,
            phase=session.phase,
            current_trial=session.trial_index + 1,
            total_trials=session.total_trials,
            progress_pct=session.progress_pct,
            best=session.best,
        )

    def tuning_history(self) -> Tuple[TrialResult, ...]:
        """Trial results of the current session, or of the most recent one."""
        if self._tuning is not None:
            return tuple(self._tuning.results)
        return tuple(self._last_tuning_results)

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def current_gains(self) -> Gains:
        """Gains driving the controller right now (the trial gains while tuning)."""
        return self._gains

    @property
    def smoothed_frame_time_ms(self) -> float:
        return self.smoother.average()

    def diagnostics(self) -> DiagnosticsSnapshot:
        smoothed = self.smoother.average()
        kp, ki, kd = self._gains
        return DiagnosticsSnapshot(
            smoothed_frame_time_ms=smoothed,
            fps=fps_from_frame_time(smoothed),
            kp=kp,
            ki=ki,
            kd=kd,
            previous_error=self.previous_error,
            integral=self.integral,
            commanded_sleep_ms=self.commanded_sleep_ms,
            initialized=self.initialized,
            tuning=self.tuning_status(),
        )

    def diagnostic_info(self) -> str:
        return format_diagnostic_info(self.diagnostics())

    def __repr__(self) -> str:
        kp, ki, kd = self._gains
        return (
            f"FramePacer(gains=({kp:.3f}, {ki:.3f}, {kd:.3f}), "
            f"sleep={self.commanded_sleep_ms:.3f}ms, tuning={self.is_tuning})"
        )
