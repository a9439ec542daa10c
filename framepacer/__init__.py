"""
Adaptive frame pacer.

A PID controlled frame pacer for render loops, with a self-tuning search for
controller gains.
"""

from .config import PacerConfig
from .core import (
    AutoTuner,
    DiagnosticsSnapshot,
    FramePacer,
    PrecisionClock,
    SimulatedClock,
    TrialResult,
    TuningPhase,
    TuningStatus,
)

__version__ = "0.1.0"

__all__ = [
    "AutoTuner",
    "DiagnosticsSnapshot",
    "FramePacer",
    "PacerConfig",
    "PrecisionClock",
    "SimulatedClock",
    "TrialResult",
    "TuningPhase",
    "TuningStatus",
]
