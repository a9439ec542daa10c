"""
PID Auto-Tuner for the frame pacer.

This module implements a three phase grid search over controller gains:

1. Coarse: 24 fixed candidates spanning conservative to aggressive gains (8s each)
2. Fine: 5x5 grid around the best result so far (12s each)
3. Precision: 3x3 tight grid around the best result so far (15s each)

Each trial runs the pacer with one gain triple, collects the absolute pacing
error of every frame, and scores the trial on accuracy, worst case error and
stability. The session is advanced purely by the pacer's per-frame calls.
"""

import logging
from dataclasses import asdict, dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..const import (
    COARSE_CANDIDATES,
    COARSE_TRIAL_DURATION_S,
    FINE_KI_MULTIPLIERS,
    FINE_KP_MULTIPLIERS,
    FINE_TRIAL_DURATION_S,
    MAX_ERROR_WEIGHT,
    MIN_GRID_KD,
    MIN_GRID_KI,
    MIN_GRID_KP,
    MIN_TRIAL_SAMPLES,
    PRECISION_MULTIPLIERS,
    PRECISION_TRIAL_DURATION_S,
)

logger = logging.getLogger(__name__)

Gains = Tuple[float, float, float]


class TuningPhase(Enum):
    """Auto-tuning phases, in the only order they are visited."""

    COARSE = "coarse"
    FINE = "fine"
    PRECISION = "precision"
    COMPLETE = "complete"

    @property
    def display_name(self) -> str:
        if self is TuningPhase.COMPLETE:
            return "Complete"
        return f"{self.value.capitalize()} Tuning"

    @property
    def trial_duration_s(self) -> float:
        return _PHASE_DURATIONS_S.get(self, 0.0)


_PHASE_DURATIONS_S = {
    TuningPhase.COARSE: COARSE_TRIAL_DURATION_S,
    TuningPhase.FINE: FINE_TRIAL_DURATION_S,
    TuningPhase.PRECISION: PRECISION_TRIAL_DURATION_S,
}


@dataclass(frozen=True)
class TrialResult:
    """Performance of one gain triple over one trial."""

    kp: float
    ki: float
    kd: float
    average_error: float
    max_error: float
    stability: float  # Population stdev of |error|, lower is better
    score: float  # Higher is better, in (0, 1]

    @property
    def gains(self) -> Gains:
        return (self.kp, self.ki, self.kd)

    def as_dict(self) -> dict:
        return asdict(self)


def calculate_stability(errors: Sequence[float]) -> float:
    """Population standard deviation of the errors; 0.0 for fewer than two samples."""
    if len(errors) < 2:
        return 0.0
    return float(np.std(np.asarray(errors, dtype=np.float64)))


def calculate_score(average_error: float, max_error: float, stability: float) -> float:
    """
    Composite fitness of a trial.

    Each factor lies in (0, 1] for non-negative inputs, so the product does too.

    Args:
        average_error: Mean absolute error in ms
        max_error: Largest absolute error in ms
        stability: Standard deviation of absolute error in ms

    Returns:
        Score where higher is better
    """
    accuracy_score = 1.0 / (1.0 + average_error)
    max_error_penalty = 1.0 / (1.0 + max_error * MAX_ERROR_WEIGHT)
    stability_score = 1.0 / (1.0 + stability)
    return accuracy_score * max_error_penalty * stability_score


def score_trial(gains: Gains, errors: Sequence[float]) -> TrialResult:
    """Build the TrialResult for ``gains`` from a trial's absolute errors."""
    samples = np.asarray(errors, dtype=np.float64)
    average_error = float(samples.mean())
    max_error = float(samples.max())
    stability = calculate_stability(samples)
    kp, ki, kd = gains
    return TrialResult(
        kp=kp,
        ki=ki,
        kd=kd,
        average_error=average_error,
        max_error=max_error,
        stability=stability,
        score=calculate_score(average_error, max_error, stability),
    )


def generate_fine_candidates(best: TrialResult) -> List[Gains]:
    """5x5 grid over kp and ki around ``best``, kd held fixed."""
    candidates = []
    for kp_mult in FINE_KP_MULTIPLIERS:
        for ki_mult in FINE_KI_MULTIPLIERS:
            candidates.append(
                (
                    max(MIN_GRID_KP, best.kp * kp_mult),
                    max(MIN_GRID_KI, best.ki * ki_mult),
                    best.kd,
                )
            )
    return candidates


def generate_precision_candidates(best: TrialResult) -> List[Gains]:
    """Tight 3x3 grid around ``best``; kd follows the ki multiplier."""
    candidates = []
    for kp_mult in PRECISION_MULTIPLIERS:
        for ki_mult in PRECISION_MULTIPLIERS:
            candidates.append(
                (
                    max(MIN_GRID_KP, best.kp * kp_mult),
                    max(MIN_GRID_KI, best.ki * ki_mult),
                    max(MIN_GRID_KD, best.kd * ki_mult),
                )
            )
    return candidates


class AutoTuner:
    """
    One auto-tuning session.

    The session does not touch the pacer directly. ``observe`` is fed the
    error of every paced frame and returns the gains the pacer should load
    when a trial ends; ``finished`` turns True once the search is over (or
    had to be abandoned) and the owner should stop tuning.
    """

    def __init__(self, start_ms: float, coarse_candidates: Sequence[Gains] = COARSE_CANDIDATES):
        """
        Start a session in the coarse phase.

        Args:
            start_ms: Clock time at which the first trial begins
            coarse_candidates: Gain triples for the coarse phase
        """
        if not coarse_candidates:
            raise ValueError("Auto-tuning needs at least one coarse candidate")

        self.phase = TuningPhase.COARSE
        self.trial_index = 0
        self.candidates: List[Gains] = [tuple(c) for c in coarse_candidates]
        self.results: List[TrialResult] = []
        self.best: Optional[TrialResult] = None
        self.finished = False

        self._samples: List[float] = []
        self._trial_start_ms = start_ms

        logger.info(
            f"Auto-tuning started: {len(self.candidates)} coarse candidates, "
            f"{self.phase.trial_duration_s:.0f}s per trial"
        )

    @property
    def current_gains(self) -> Gains:
        """Gains under trial."""
        return self.candidates[self.trial_index]

    @property
    def total_trials(self) -> int:
        return len(self.candidates)

    @property
    def sample_count(self) -> int:
        return len(self._samples)

    @property
    def progress_pct(self) -> float:
        if not self.candidates:
            return 100.0
        return self.trial_index / len(self.candidates) * 100.0

    def observe(self, error: float, now_ms: float) -> Optional[Gains]:
        """
        Record one frame's error and advance the search when the trial is done.

        Args:
            error: Signed pacing error of the frame in ms
            now_ms: Current clock time in ms

        Returns:
            Gains to load for the next trial, or None if the live gains stay
        """
        if self.finished:
            return None

        self._samples.append(abs(error))

        elapsed_s = (now_ms - self._trial_start_ms) / 1000.0
        if elapsed_s < self.phase.trial_duration_s or len(self._samples) <= MIN_TRIAL_SAMPLES:
            return None

        self._record_trial()

        self.trial_index += 1
        if self.trial_index >= len(self.candidates):
            self._advance_phase()
            if self.finished:
                return None

        self._samples = []
        self._trial_start_ms = now_ms
        return self.current_gains

    def _record_trial(self) -> None:
        result = score_trial(self.current_gains, self._samples)
        self.results.append(result)

        improved = self.best is None or result.score > self.best.score
        if improved:
            self.best = result

        logger.info(
            f"{self.phase.display_name} trial {self.trial_index + 1}/{len(self.candidates)}: "
            f"gains=({result.kp:.3f}, {result.ki:.3f}, {result.kd:.3f}), "
            f"avg={result.average_error:.3f}ms, max={result.max_error:.3f}ms, "
            f"stability={result.stability:.3f}, score={result.score:.4f}"
            f"{' (new best)' if improved else ''}"
        )

    def _advance_phase(self) -> None:
        if self.phase is TuningPhase.PRECISION:
            self._finish("precision phase complete")
            return

        if self.best is None:
            logger.warning(f"No scored trials after {self.phase.display_name}, abandoning auto-tuning")
            self._finish("no best result")
            return

        if self.phase is TuningPhase.COARSE:
            self.phase = TuningPhase.FINE
            self.candidates = generate_fine_candidates(self.best)
        else:
            self.phase = TuningPhase.PRECISION
            self.candidates = generate_precision_candidates(self.best)
        self.trial_index = 0

        logger.info(
            f"Entering {self.phase.display_name}: {len(self.candidates)} candidates around "
            f"({self.best.kp:.3f}, {self.best.ki:.3f}, {self.best.kd:.3f}), "
            f"{self.phase.trial_duration_s:.0f}s per trial"
        )

    def _finish(self, reason: str) -> None:
        self.phase = TuningPhase.COMPLETE
        self.finished = True
        self._samples = []
        logger.info(f"Auto-tuning finished ({reason}) after {len(self.results)} trials")
