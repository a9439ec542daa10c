"""
Utility modules for the frame pacer.

This package contains frame time smoothing, logging helpers and the per-frame
CSV pacing log.
"""

from .frame_time_smoother import FrameTimeSmoother
from .pacing_log import PacingLogger, PacingSample

__all__ = ["FrameTimeSmoother", "PacingLogger", "PacingSample"]
