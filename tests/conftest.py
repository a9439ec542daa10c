"""
Shared pytest fixtures for the frame pacer test suite.

Provides simulated clocks, pacer factories and synthetic frame sources so the
controller and the auto-tuner can be exercised deterministically without
sleeping for real.
"""

import sys
import tempfile
from pathlib import Path
from typing import Callable, Generator

import numpy as np
import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from framepacer.core.frame_pacer import FramePacer
from framepacer.core.precision_clock import SimulatedClock

TARGET_60FPS_MS = 1000.0 / 60.0


class FixedGapClock(SimulatedClock):
    """
    Simulated clock whose waits are recorded but do not move time.

    Lets a test dictate the exact gap between two ``pace`` calls, independent
    of how long the pacer decided to sleep.
    """

    def wait(self, ms: float) -> None:
        if not ms > 0:
            return
        self.wait_count += 1
        self.total_waited_ms += ms
        self.last_wait_ms = ms


# =============================================================================
# Clock Fixtures
# =============================================================================


@pytest.fixture
def sim_clock() -> SimulatedClock:
    """Virtual clock starting at t=0."""
    return SimulatedClock()


@pytest.fixture
def fixed_gap_clock() -> FixedGapClock:
    """Virtual clock where the test controls every inter-frame gap."""
    return FixedGapClock()


# =============================================================================
# Pacer Fixtures
# =============================================================================


@pytest.fixture
def pacer(sim_clock) -> FramePacer:
    """Pacer with default gains on a simulated clock."""
    return FramePacer(clock=sim_clock)


@pytest.fixture
def run_frames() -> Callable[..., list]:
    """
    Drive a pacer with synthetic render work.

    Returns a function ``run(pacer, target_ms, frames, work_ms=None, jitter_ms=0.0, seed=0)``
    that renders ``work_ms`` (default: the target) of virtual work per frame
    and returns the commanded sleep after every frame.
    """

    def run(pacer, target_ms, frames, work_ms=None, jitter_ms=0.0, seed=0):
        rng = np.random.default_rng(seed)
        work = target_ms if work_ms is None else work_ms
        commitments = []
        for _ in range(frames):
            frame_work = work
            if jitter_ms > 0:
                frame_work = max(0.0, work + float(rng.uniform(-jitter_ms, jitter_ms)))
            pacer.clock.advance(frame_work)
            pacer.pace(target_ms)
            commitments.append(pacer.commanded_sleep_ms)
        return commitments

    return run


# =============================================================================
# Temporary Directory Fixtures
# =============================================================================


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


# =============================================================================
# Markers
# =============================================================================


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "realtime: marks tests that sleep on the real clock")
