"""
Configuration loader utility

YAML is read into a plain dict by `load_config`, then converted once into a
typed `GazeConfig` whose fields are validated at construction.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from gaze_pointer import constants as const


class ConfigError(ValueError):
    """Invalid configuration value or unknown key."""


def load_config(config_path: str = 'config/config.yaml') -> Dict[str, Any]:
    """
    Load configuration from YAML file

    Args:
        config_path: Path to configuration file

    Returns:
        Dictionary with configuration values (empty for an empty file)
    """
    config_file = Path(config_path)

    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_file, 'r') as f:
        config = yaml.safe_load(f)

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigError(f"Configuration root must be a mapping: {config_path}")
    return config


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise ConfigError(message)


def _section(cls, data: Optional[Dict[str, Any]], name: str):
    """Build a config dataclass from one YAML section, rejecting unknown keys."""
    data = data or {}
    if not isinstance(data, dict):
        raise ConfigError(f"Section '{name}' must be a mapping")
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown key(s) in '{name}': {', '.join(unknown)}")
    return cls(**data)


@dataclass
class ExtractionConfig:
    head_pose_weight: float = 0.5
    min_landmarks: int = const.MIN_LANDMARKS

    def __post_init__(self):
        _require(0.0 <= self.head_pose_weight <= 1.0, "head_pose_weight must be in [0, 1]")
        _require(self.min_landmarks >= const.MIN_LANDMARKS,
                 f"min_landmarks must be at least {const.MIN_LANDMARKS}")


@dataclass
class StabilityConfig:
    kalman_process_noise: float = const.KALMAN_PROCESS_NOISE
    kalman_measurement_noise: float = const.KALMAN_MEASUREMENT_NOISE
    fixation_threshold: float = const.FIXATION_VELOCITY
    saccade_threshold: float = const.SACCADE_VELOCITY
    fixation_smoothing: float = const.FIXATION_SMOOTHING
    saccade_smoothing: float = const.SACCADE_SMOOTHING
    outlier_z_threshold: float = const.OUTLIER_Z_THRESHOLD
    outlier_min_std: float = const.OUTLIER_MIN_STD
    history_size: int = const.HISTORY_SIZE
    max_consecutive_rejections: int = const.MAX_CONSECUTIVE_REJECTIONS
    default_dt: float = const.DEFAULT_FRAME_DT

    def __post_init__(self):
        _require(self.kalman_process_noise > 0, "kalman_process_noise must be positive")
        _require(self.kalman_measurement_noise > 0, "kalman_measurement_noise must be positive")
        _require(self.fixation_threshold > 0, "fixation_threshold must be positive")
        _require(self.saccade_threshold > 0, "saccade_threshold must be positive")
        _require(self.fixation_threshold <= self.saccade_threshold,
                 "fixation_threshold must not exceed saccade_threshold")
        for name in ("fixation_smoothing", "saccade_smoothing"):
            value = getattr(self, name)
            _require(0.0 < value <= 1.0, f"{name} must be in (0, 1]")
        _require(self.outlier_z_threshold > 0, "outlier_z_threshold must be positive")
        _require(self.outlier_min_std >= 0, "outlier_min_std must not be negative")
        _require(self.history_size >= const.OUTLIER_MIN_SAMPLES,
                 f"history_size must be at least {const.OUTLIER_MIN_SAMPLES}")
        _require(self.default_dt > 0, "default_dt must be positive")
        _require(self.max_consecutive_rejections >= 0, "max_consecutive_rejections must not be negative")

    @property
    def transition_smoothing(self) -> float:
        return (self.fixation_smoothing + self.saccade_smoothing) / 2.0


@dataclass
class CalibrationConfig:
    idw_power: float = const.IDW_POWER
    exact_match_distance: float = const.EXACT_MATCH_DISTANCE
    range_margin: float = const.RANGE_MARGIN
    min_finalize_points: int = const.MIN_FINALIZE_POINTS
    calibrated_point_count: int = const.CALIBRATED_POINT_COUNT
    min_range_span: float = const.MIN_RANGE_SPAN
    default_min_gaze: float = const.DEFAULT_GAZE_MIN
    default_max_gaze: float = const.DEFAULT_GAZE_MAX
    storage_path: str = const.CALIBRATION_FILE
    namespace: str = const.CALIBRATION_NAMESPACE

    def __post_init__(self):
        _require(self.idw_power >= 0, "idw_power must not be negative")
        _require(self.exact_match_distance >= 0, "exact_match_distance must not be negative")
        _require(self.range_margin >= 0, "range_margin must not be negative")
        _require(self.min_finalize_points >= 1, "min_finalize_points must be at least 1")
        _require(self.calibrated_point_count >= 1, "calibrated_point_count must be at least 1")
        _require(self.min_range_span >= 0, "min_range_span must not be negative")
        _require(self.default_min_gaze < self.default_max_gaze,
                 "default_min_gaze must be below default_max_gaze")
        _require(bool(self.namespace), "namespace must not be empty")


@dataclass
class ScreenConfig:
    width: int = const.SCREEN_WIDTH
    height: int = const.SCREEN_HEIGHT

    def __post_init__(self):
        _require(self.width > 0 and self.height > 0, "screen dimensions must be positive")


@dataclass
class LoggingConfig:
    level: str = "INFO"
    log_directory: Optional[str] = None
    log_file: Optional[str] = None
    console_output: bool = True


@dataclass
class GazeConfig:
    """Complete pipeline configuration with defaults for every field."""
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    stability: StabilityConfig = field(default_factory=StabilityConfig)
    calibration: CalibrationConfig = field(default_factory=CalibrationConfig)
    screen: ScreenConfig = field(default_factory=ScreenConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "GazeConfig":
        """
        Build and validate a config from a `load_config` dict

        Raises:
            ConfigError: on unknown sections/keys or out-of-range values
        """
        data = data or {}
        sections = {
            "extraction": ExtractionConfig,
            "stability": StabilityConfig,
            "calibration": CalibrationConfig,
            "screen": ScreenConfig,
            "logging": LoggingConfig,
        }
        unknown = sorted(set(data) - set(sections))
        if unknown:
            raise ConfigError(f"Unknown configuration section(s): {', '.join(unknown)}")
        try:
            return cls(**{name: _section(section_cls, data.get(name), name)
                          for name, section_cls in sections.items()})
        except TypeError as e:
            raise ConfigError(str(e)) from e

    @classmethod
    def from_file(cls, config_path: str = 'config/config.yaml') -> "GazeConfig":
        return cls.from_dict(load_config(config_path))
