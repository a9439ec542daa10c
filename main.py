#!/usr/bin/env python3
"""
Frame pacer demo host.

Runs a synthetic render loop paced by a FramePacer:
- Renders a fixed amount of synthetic work per frame, with optional jitter
- Paces each frame to the requested frame rate
- Optionally runs the gain auto-tuning search and reports the result
- Optionally writes a per-frame CSV pacing log

With --simulate the loop runs on a virtual clock, so a full auto-tuning
session completes in seconds instead of ten minutes.
"""

import argparse
import logging
import sys
from typing import Dict, Optional

import numpy as np

from framepacer.config import DEFAULT_CONFIG_PATH, PacerConfig, load_config_file
from framepacer.const import TARGET_CHANGE_THRESHOLD_MS
from framepacer.core.frame_pacer import FramePacer
from framepacer.core.precision_clock import PrecisionClock, SimulatedClock
from framepacer.utils.logging_utils import configure_logging
from framepacer.utils.pacing_log import PacingLogger, PacingSample

logger = logging.getLogger(__name__)


class RenderLoop:
    """Owns a pacer and drives it with synthetic frames."""

    def __init__(
        self,
        pacer: FramePacer,
        work_ms: float,
        jitter_ms: float = 0.0,
        seed: Optional[int] = None,
        pacing_logger: Optional[PacingLogger] = None,
        report_interval: int = 300,
    ):
        """
        Initialize render loop.

        Args:
            pacer: Pacer owned by this loop
            work_ms: Synthetic render work per frame in milliseconds
            jitter_ms: Half-width of uniform noise added to the work
            seed: Seed for the jitter generator
            pacing_logger: Optional CSV log receiving one row per frame
            report_interval: Frames between printed diagnostic lines
        """
        self.pacer = pacer
        self.work_ms = work_ms
        self.jitter_ms = jitter_ms
        self.pacing_logger = pacing_logger
        self.report_interval = max(1, report_interval)
        self._rng = np.random.default_rng(seed)
        self._last_target_ms: Optional[float] = None
        self.frames_rendered = 0

    def render(self) -> None:
        """Simulate one frame of render work."""
        work = self.work_ms
        if self.jitter_ms > 0:
            work = max(0.0, work + float(self._rng.uniform(-self.jitter_ms, self.jitter_ms)))
        clock = self.pacer.clock
        if isinstance(clock, SimulatedClock):
            clock.advance(work)
        else:
            clock.wait(work)

    def tick(self, target_frame_time_ms: float) -> None:
        """Render and pace one frame."""
        last_target_ms = self._last_target_ms
        if last_target_ms is not None and abs(target_frame_time_ms - last_target_ms) > TARGET_CHANGE_THRESHOLD_MS:
            logger.info(f"Target changed {last_target_ms:.2f}ms -> {target_frame_time_ms:.2f}ms, resetting pacer")
            self.pacer.reset()
        self._last_target_ms = target_frame_time_ms

        self.render()
        self.pacer.pace(target_frame_time_ms)
        self.frames_rendered += 1

        if self.pacing_logger is not None:
            self.pacing_logger.log(
                PacingSample.from_snapshot(self.frames_rendered, target_frame_time_ms, self.pacer.diagnostics())
            )

        if self.frames_rendered % self.report_interval == 0:
            print(f"[{self.frames_rendered}] {self.pacer.diagnostic_info()}")

    def run(self, target_frame_time_ms: float, max_frames: Optional[int] = None, until_tuned: bool = False) -> int:
        """
        Run frames until ``max_frames`` is reached or, with ``until_tuned``,
        until the auto-tuning session ends.

        Returns:
            Number of frames rendered
        """
        try:
            while max_frames is None or self.frames_rendered < max_frames:
                self.tick(target_frame_time_ms)
                if until_tuned and not self.pacer.is_tuning:
                    break
        except KeyboardInterrupt:
            logger.info("Render loop interrupted")
            if self.pacer.is_tuning:
                self.pacer.stop_tuning()
        return self.frames_rendered


def build_config(args: argparse.Namespace, file_config: Dict) -> PacerConfig:
    """Merge file configuration with command line overrides."""
    values = dict(file_config)
    for name in ("kp", "ki", "kd", "target_fps", "history_size"):
        value = getattr(args, name, None)
        if value is not None:
            values[name] = value
    return PacerConfig.from_dict(values)


def main(argv=None) -> int:
    """Main entry point."""

    # Parse just the config argument first to know which config file to load
    parser_config = argparse.ArgumentParser(add_help=False)
    parser_config.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="Path to configuration file")
    config_args, _ = parser_config.parse_known_args(argv)

    file_config = load_config_file(config_args.config)

    parser = argparse.ArgumentParser(description="Adaptive frame pacer demo")
    parser.add_argument("--config", default=config_args.config, help="Path to configuration file")
    parser.add_argument(
        "--debug", action="store_true", default=file_config.get("debug", False), help="Enable debug logging"
    )
    parser.add_argument("--verbose", action="store_true", help="Echo INFO logs to the console")
    parser.add_argument("--log-file", default=file_config.get("log_file"), help="Path to log file")
    parser.add_argument("--fps", dest="target_fps", type=float, default=None, help="Target frame rate")
    parser.add_argument("--kp", type=float, default=None, help="Proportional gain")
    parser.add_argument("--ki", type=float, default=None, help="Integral gain")
    parser.add_argument("--kd", type=float, default=None, help="Derivative gain")
    parser.add_argument("--history-size", type=int, default=None, help="Frames averaged by the smoother")
    parser.add_argument(
        "--work-ms", type=float, default=file_config.get("work_ms", 4.0), help="Synthetic render work per frame"
    )
    parser.add_argument(
        "--jitter-ms", type=float, default=file_config.get("jitter_ms", 0.5), help="Uniform noise on render work"
    )
    parser.add_argument("--seed", type=int, default=file_config.get("seed"), help="Jitter seed")
    parser.add_argument("--frames", type=int, default=None, help="Stop after this many frames")
    parser.add_argument("--autotune", action="store_true", help="Run the gain auto-tuning search")
    parser.add_argument("--simulate", action="store_true", help="Run on a virtual clock instead of real time")
    parser.add_argument(
        "--timing-log", default=file_config.get("timing_log"), help="Path to CSV file for per-frame pacing data"
    )
    parser.add_argument(
        "--report-interval", type=int, default=file_config.get("report_interval", 300), help="Frames between reports"
    )

    args = parser.parse_args(argv)

    configure_logging(
        debug=args.debug, log_file=args.log_file, console_level=logging.INFO if args.verbose else logging.WARNING
    )

    try:
        config = build_config(args, file_config)
    except (TypeError, ValueError) as e:
        logger.error(f"Invalid pacer configuration: {e}")
        return 2

    clock = SimulatedClock() if args.simulate else PrecisionClock()
    pacer = FramePacer.from_config(config, clock=clock)

    pacing_logger = None
    if args.timing_log:
        pacing_logger = PacingLogger(args.timing_log)
        if not pacing_logger.start():
            pacing_logger = None

    loop = RenderLoop(
        pacer,
        work_ms=args.work_ms,
        jitter_ms=args.jitter_ms,
        seed=args.seed,
        pacing_logger=pacing_logger,
        report_interval=args.report_interval,
    )

    if args.autotune:
        pacer.start_tuning()

    max_frames = args.frames
    if max_frames is None and not args.autotune:
        max_frames = int(config.target_fps * 10)

    try:
        frames = loop.run(config.target_frame_time_ms, max_frames=max_frames, until_tuned=args.autotune)
    finally:
        if pacing_logger is not None:
            pacing_logger.stop()

    print(f"Rendered {frames} frames")
    print(pacer.diagnostic_info())
    if args.autotune:
        if pacer.is_tuning:
            pacer.stop_tuning()
        status = pacer.tuning_status()
        kp, ki, kd = pacer.current_gains()
        print(f"Tuned gains: kp={kp:.4f} ki={ki:.4f} kd={kd:.4f}")
        if status.best is not None:
            print(
                f"Best trial: avg={status.best.average_error:.3f}ms max={status.best.max_error:.3f}ms "
                f"stability={status.best.stability:.3f} score={status.best.score:.4f}"
            )
    return 0


if __name__ == "__main__":
    sys.exit(main())
