"""
Global constants for the frame pacer.

This module contains the controller tuning constants, sleep thresholds and
auto-tuning search grids shared across the pacer components.
"""

# Default PID gains (empirically tuned on a 60 Hz desktop render loop)
DEFAULT_KP = 1.8
DEFAULT_KI = 0.048
DEFAULT_KD = 0.237

# Controller shaping
FRAME_HISTORY_SIZE = 10  # Samples in the rolling frame time window
OUTPUT_DAMPING = 0.2  # Fraction of raw PID output applied to the sleep commitment per frame
INTEGRAL_LIMIT_FACTOR = 2.0  # Integral clamped to +/- factor * target
MAX_SLEEP_FACTOR = 1.2  # Sleep commitment clamped to [0, factor * target]
MIN_SLEEP_MS = 0.1  # Commitments at or below this are not worth a wait
INITIAL_SLEEP_OFFSET_MS = 1.0  # First-frame seed is target minus this
TARGET_CHANGE_THRESHOLD_MS = 0.1  # Hosts reset the pacer when the target moves more than this

# High precision sleep
COARSE_SLEEP_THRESHOLD_MS = 5.0  # Above this, OS sleep covers the bulk of the wait
SPIN_WAIT_THRESHOLD_MS = 0.5  # Portion of a long wait left for the spin phase
SPIN_YIELD_CUTOFF_MS = 0.05  # Stop yielding this close to the deadline

# Auto-tuning
MIN_TRIAL_SAMPLES = 10  # A trial needs strictly more samples than this to be scored
MAX_ERROR_WEIGHT = 0.5  # Weight on max error in the trial score

COARSE_TRIAL_DURATION_S = 8.0
FINE_TRIAL_DURATION_S = 12.0
PRECISION_TRIAL_DURATION_S = 15.0

# Coarse search: conservative to aggressive, then specialised shapes
COARSE_CANDIDATES = (
    # Conservative
    (0.1, 0.02, 0.005),
    (0.2, 0.05, 0.01),
    (0.3, 0.07, 0.015),
    (0.4, 0.08, 0.02),
    (0.5, 0.09, 0.025),
    (0.6, 0.10, 0.03),
    # Balanced
    (0.7, 0.09, 0.04),
    (0.8, 0.10, 0.05),
    (0.9, 0.11, 0.06),
    (1.0, 0.12, 0.07),
    (1.1, 0.13, 0.08),
    (1.2, 0.15, 0.09),
    # Aggressive (includes the default gains)
    (1.3, 0.16, 0.10),
    (1.4, 0.18, 0.11),
    (1.5, 0.20, 0.12),
    (1.7, 0.22, 0.14),
    (1.8, 0.048, 0.237),
    (2.0, 0.25, 0.15),
    (2.3, 0.28, 0.17),
    # Specialised
    (0.6, 0.30, 0.02),  # High integral for steady-state accuracy
    (0.4, 0.35, 0.01),  # Very high integral
    (2.2, 0.03, 0.30),  # Very high derivative
    (0.9, 0.08, 0.01),  # Low derivative
    (1.1, 0.06, 0.005),  # Very low derivative
)

FINE_KP_MULTIPLIERS = (0.8, 0.9, 1.0, 1.1, 1.2)
FINE_KI_MULTIPLIERS = (0.7, 0.85, 1.0, 1.15, 1.3)
PRECISION_MULTIPLIERS = (0.95, 1.0, 1.05)

# Floors applied to generated grid candidates
MIN_GRID_KP = 0.05
MIN_GRID_KI = 0.01
MIN_GRID_KD = 0.001
