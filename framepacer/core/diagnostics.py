"""
Read-only diagnostic projections of the frame pacer state.

Snapshots are plain values copied out of the pacer; holding or mutating them
never affects the controller.
"""

from dataclasses import asdict, dataclass
from typing import Optional

from .auto_tuner import TrialResult, TuningPhase


@dataclass(frozen=True)
class TuningStatus:
    """Auto-tuning progress as seen by the host."""

    active: bool
    phase: TuningPhase
    current_trial: int  # 1-based trial number within the phase, 0 when inactive
    total_trials: int
    progress_pct: float
    best: Optional[TrialResult] = None

    @property
    def phase_name(self) -> str:
        return self.phase.display_name

    def as_dict(self) -> dict:
        return {
            "active": self.active,
            "phase": self.phase.value,
            "phase_name": self.phase_name,
            "current_trial": self.current_trial,
            "total_trials": self.total_trials,
            "progress_pct": self.progress_pct,
            "best": self.best.as_dict() if self.best is not None else None,
        }


@dataclass(frozen=True)
class DiagnosticsSnapshot:
    """Controller state at one instant."""

    smoothed_frame_time_ms: float
    fps: float
    kp: float
    ki: float
    kd: float
    previous_error: float
    integral: float
    commanded_sleep_ms: float
    initialized: bool
    tuning: TuningStatus

    def as_dict(self) -> dict:
        result = asdict(self)
        result["tuning"] = self.tuning.as_dict()
        return result


def fps_from_frame_time(frame_time_ms: float) -> float:
    """Frames per second for a frame time, 0.0 when there is no measurement."""
    return 1000.0 / frame_time_ms if frame_time_ms > 0 else 0.0


def format_diagnostic_info(snapshot: DiagnosticsSnapshot) -> str:
    """One-line summary suitable for an overlay or a periodic log line."""
    info = (
        f"PID State - Sleep: {snapshot.commanded_sleep_ms:.2f}ms (High-Precision), "
        f"Error: {snapshot.previous_error:.2f}ms, "
        f"Integral: {snapshot.integral:.2f}, "
        f"Frame Time: {snapshot.smoothed_frame_time_ms:.2f}ms, "
        f"Actual FPS: {snapshot.fps:.1f}"
    )
    if snapshot.tuning.active:
        info += (
            f", {snapshot.tuning.phase_name}: "
            f"{snapshot.tuning.current_trial}/{snapshot.tuning.total_trials} "
            f"({snapshot.tuning.progress_pct:.0f}%)"
        )
    return info
