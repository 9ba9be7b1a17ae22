"""
Tests for YAML loading and typed configuration validation
"""

from pathlib import Path

import pytest

from gaze_pointer.utils.config_loader import (
    ConfigError,
    GazeConfig,
    StabilityConfig,
    load_config,
)


def write_yaml(tmp_path, text):
    path = tmp_path / "config.yaml"
    path.write_text(text)
    return str(path)


def test_missing_file_raises(tmp_path):
    """Missing config file raises FileNotFoundError"""
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "nope.yaml"))


def test_empty_file_gives_defaults(tmp_path):
    """An empty YAML file yields the default configuration"""
    config = GazeConfig.from_file(write_yaml(tmp_path, ""))
    assert config == GazeConfig()
    assert config.extraction.head_pose_weight == 0.5
    assert config.stability.history_size == 10
    assert config.calibration.calibrated_point_count == 5


def test_sections_override_defaults(tmp_path):
    """Values from YAML sections replace defaults"""
    path = write_yaml(tmp_path, """
extraction:
  head_pose_weight: 0.8
stability:
  kalman_process_noise: 0.002
  kalman_measurement_noise: 0.05
screen:
  width: 2560
  height: 1440
""")
    config = GazeConfig.from_file(path)
    assert config.extraction.head_pose_weight == 0.8
    assert config.stability.kalman_process_noise == 0.002
    assert config.stability.kalman_measurement_noise == 0.05
    assert (config.screen.width, config.screen.height) == (2560, 1440)
    assert config.stability.saccade_smoothing == 0.25


def test_shipped_config_is_valid():
    """The repository's default config file validates"""
    config = GazeConfig.from_file(str(Path(__file__).resolve().parent.parent / "config" / "config.yaml"))
    assert 0.0 <= config.extraction.head_pose_weight <= 1.0


def test_non_mapping_root(tmp_path):
    """A YAML list at the root is rejected"""
    with pytest.raises(ConfigError):
        load_config(write_yaml(tmp_path, "- 1\n- 2\n"))


class TestValidation:
    """Values are validated once, at construction"""

    @pytest.mark.parametrize("data", [
        {"extraction": {"head_pose_weight": 1.2}},
        {"extraction": {"head_pose_weight": -0.1}},
        {"stability": {"kalman_process_noise": 0}},
        {"stability": {"fixation_threshold": 0.1, "saccade_threshold": 0.05}},
        {"stability": {"saccade_smoothing": 1.5}},
        {"stability": {"history_size": 2}},
        {"stability": {"max_consecutive_rejections": -1}},
        {"calibration": {"range_margin": -0.1}},
        {"calibration": {"default_min_gaze": 0.6, "default_max_gaze": 0.4}},
        {"screen": {"width": 0}},
    ])
    def test_invalid_values(self, data):
        """Out-of-range values raise ConfigError"""
        with pytest.raises(ConfigError):
            GazeConfig.from_dict(data)

    def test_unknown_section(self):
        """Unknown top-level sections are rejected"""
        with pytest.raises(ConfigError, match="gaze_tracking"):
            GazeConfig.from_dict({"gaze_tracking": {}})

    def test_unknown_key(self):
        """Typos inside a section are rejected"""
        with pytest.raises(ConfigError, match="head_pose_wieght"):
            GazeConfig.from_dict({"extraction": {"head_pose_wieght": 0.5}})

    def test_wrong_type(self):
        """Non-numeric values are reported as ConfigError"""
        with pytest.raises(ConfigError):
            GazeConfig.from_dict({"stability": {"history_size": "ten"}})

    def test_transition_smoothing(self):
        """Transition factor is the midpoint of the two smoothing factors"""
        assert StabilityConfig().transition_smoothing == pytest.approx(0.165)
