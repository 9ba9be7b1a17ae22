"""
Shared fixtures for the gaze pointer tests
"""

import pytest

from landmark_factory import build_frame


@pytest.fixture
def make_frame():
    return build_frame


@pytest.fixture
def calibration_path(tmp_path):
    return str(tmp_path / "gaze_calibration.json")
