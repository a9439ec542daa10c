"""
Frame pacing components.

This package contains the pacing controller and its collaborators:
- High precision clock and simulated clock
- PID frame pacer
- Three phase gain auto-tuner
- Diagnostic snapshots
"""

from .auto_tuner import AutoTuner, TrialResult, TuningPhase
from .diagnostics import DiagnosticsSnapshot, TuningStatus
from .frame_pacer import FramePacer
from .precision_clock import PrecisionClock, SimulatedClock

__all__ = [
    "AutoTuner",
    "DiagnosticsSnapshot",
    "FramePacer",
    "PrecisionClock",
    "SimulatedClock",
    "TrialResult",
    "TuningPhase",
    "TuningStatus",
]
