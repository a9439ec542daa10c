"""
Frame pacer configuration.

Settings can come from a JSON file (see ``load_config_file``) and are then
overridden by command line arguments in ``main.py``.
"""

import json
import logging
import math
import os
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Optional

from .const import DEFAULT_KD, DEFAULT_KI, DEFAULT_KP, FRAME_HISTORY_SIZE

logger = logging.getLogger(__name__)

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DEFAULT_CONFIG_PATH = os.path.join(PROJECT_ROOT, "config", "config.json")


@dataclass
class PacerConfig:
    """Construction parameters for a FramePacer and its host loop."""

    kp: float = DEFAULT_KP
    ki: float = DEFAULT_KI
    kd: float = DEFAULT_KD
    history_size: int = FRAME_HISTORY_SIZE
    target_fps: float = 60.0
    log_interval_frames: int = 120  # Frames between periodic debug lines

    def __post_init__(self):
        for name in ("kp", "ki", "kd"):
            value = getattr(self, name)
            if not math.isfinite(value) or value < 0:
                raise ValueError(f"Gain {name} must be a finite non-negative number, got {value}")
        if not math.isfinite(self.target_fps) or self.target_fps <= 0:
            raise ValueError(f"target_fps must be a finite positive number, got {self.target_fps}")
        if self.history_size <= 0:
            raise ValueError("history_size must be positive")
        if self.log_interval_frames <= 0:
            raise ValueError("log_interval_frames must be positive")

    @property
    def target_frame_time_ms(self) -> float:
        return 1000.0 / self.target_fps

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PacerConfig":
        """Build a config from a mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.debug(f"Ignoring unknown pacer config keys: {unknown}")
        return cls(**{k: v for k, v in data.items() if k in known})

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_config_file(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from JSON file."""
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH
    config = {}
    if os.path.exists(config_path):
        try:
            with open(config_path, "r") as f:
                loaded_config = json.load(f)
                # Filter out comments and null values
                config = {k: v for k, v in loaded_config.items() if k != "comments" and v is not None}
            logger.info(f"Loaded configuration from {config_path}")
        except (OSError, ValueError, AttributeError) as e:
            logger.warning(f"Failed to load config file {config_path}: {e}")
    else:
        logger.warning(f"Config file not found: {config_path}")
    return config
