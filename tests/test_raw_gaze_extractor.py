"""
Tests for raw gaze extraction from face-mesh landmarks
"""

import math

import numpy as np
import pytest

from gaze_pointer import constants as const
from gaze_pointer.data_acquisition.landmark_frame import (
    InsufficientLandmarksError,
    InvalidGazeSampleError,
    LandmarkFrame,
)
from gaze_pointer.data_acquisition.raw_gaze_extractor import RawGazeExtractor, normalized_position

from landmark_factory import expected_raw


class TestNormalizedPosition:
    """Iris position between two bounds"""

    def test_midpoint(self):
        """Value halfway between bounds maps to 0.5"""
        assert normalized_position(0.35, 0.3, 0.4) == pytest.approx(0.5)

    def test_reversed_bounds(self):
        """Bounds given high-to-low still produce a fraction"""
        assert normalized_position(0.325, 0.35, 0.25) == pytest.approx(0.25)

    def test_clamped(self):
        """Values outside the bounds clamp to [0, 1]"""
        assert normalized_position(0.1, 0.3, 0.4) == 0.0
        assert normalized_position(0.9, 0.3, 0.4) == 1.0

    def test_degenerate_span(self):
        """Near-zero span yields the neutral 0.5"""
        assert normalized_position(0.9, 0.4, 0.4005) == 0.5

    def test_nan_not_clamped(self):
        """NaN positions are passed through instead of clamped to an edge"""
        assert math.isnan(normalized_position(math.nan, 0.3, 0.4))
        assert math.isnan(normalized_position(0.35, math.nan, 0.4))


class TestRawGazeExtractor:
    """Blend of mirrored iris gaze and head-pose proxy"""

    def test_short_frame_rejected(self, make_frame):
        """Fewer than 478 landmarks raises InsufficientLandmarksError"""
        extractor = RawGazeExtractor()
        with pytest.raises(InsufficientLandmarksError):
            extractor.extract(make_frame(count=468))

    def test_empty_frame_rejected(self):
        """An empty frame (no face) is rejected"""
        with pytest.raises(InsufficientLandmarksError):
            RawGazeExtractor().extract(LandmarkFrame.empty(0))

    @pytest.mark.parametrize("weight", [0.0, 0.5, 0.8, 0.85, 1.0])
    def test_blend(self, make_frame, weight):
        """Raw gaze is iris*(1-w) + head*w after mirroring"""
        extractor = RawGazeExtractor(head_pose_weight=weight)
        frame = make_frame(iris_x=0.25, iris_y=0.75, center=(0.4, 0.6))

        sample = extractor.extract(frame)

        ex, ey = expected_raw(0.25, 0.75, (0.4, 0.6), weight)
        assert sample.x == pytest.approx(ex)
        assert sample.y == pytest.approx(ey)

    @pytest.mark.parametrize("weight", [0.0, 0.5, 0.8])
    def test_iris_only_mirroring(self, make_frame, weight):
        """Iris looking toward the outer corner increases mirrored x"""
        extractor = RawGazeExtractor(head_pose_weight=weight)
        left = extractor.extract(make_frame(iris_x=0.1))
        right = extractor.extract(make_frame(iris_x=0.9))
        assert left.x > right.x

    def test_closed_eyes_give_neutral_iris(self, make_frame):
        """Collapsed eyelids produce 0.5 on the vertical axis"""
        frame = make_frame(iris_y=0.9)
        points = np.array(frame.points)
        for index in (const.LEFT_EYE_TOP, const.LEFT_EYE_BOTTOM, const.RIGHT_EYE_TOP, const.RIGHT_EYE_BOTTOM):
            points[index, 1] = 0.42
        closed = LandmarkFrame(points, 0)

        sample = RawGazeExtractor(head_pose_weight=0.0).extract(closed)

        assert sample.y == pytest.approx(0.5)

    def test_nan_rejected(self, make_frame):
        """NaN geometry raises InvalidGazeSampleError"""
        frame = make_frame(center=(math.nan, 0.5))
        with pytest.raises(InvalidGazeSampleError):
            RawGazeExtractor(head_pose_weight=0.5).extract(frame)

    @pytest.mark.parametrize("weight", [0.0, 0.5, 0.8])
    def test_nan_iris_rejected(self, make_frame, weight):
        """NaN iris centers drop the frame rather than pinning gaze to an edge"""
        points = np.array(make_frame().points)
        points[const.LEFT_IRIS_CENTER] = (math.nan, math.nan)
        points[const.RIGHT_IRIS_CENTER] = (math.nan, math.nan)
        with pytest.raises(InvalidGazeSampleError):
            RawGazeExtractor(head_pose_weight=weight).extract(LandmarkFrame(points, 0))

    def test_nan_eyelid_rejected(self, make_frame):
        """A NaN eyelid landmark drops the frame"""
        points = np.array(make_frame().points)
        points[const.LEFT_EYE_TOP, 1] = math.nan
        with pytest.raises(InvalidGazeSampleError):
            RawGazeExtractor(head_pose_weight=0.5).extract(LandmarkFrame(points, 0))

    def test_weight_validated(self):
        """Head-pose weight outside [0, 1] is rejected"""
        with pytest.raises(ValueError):
            RawGazeExtractor(head_pose_weight=1.5)


def test_landmark_frame_is_read_only(make_frame):
    """Landmark points cannot be modified after construction"""
    frame = make_frame()
    with pytest.raises(ValueError):
        frame.points[0, 0] = 0.0


def test_landmark_frame_from_points():
    """from_points drops extra coordinates such as z"""
    frame = LandmarkFrame.from_points([(0.1, 0.2, 0.3), (0.4, 0.5, 0.6)], 42)
    assert len(frame) == 2
    assert frame.point(1) == (0.4, 0.5)
    assert frame.timestamp_ms == 42
