"""
Raw Gaze Extractor
Turns one face-mesh landmark frame into a single 2-D gaze estimate:
- Iris position normalized against the eye corners and eyelids
- Both eyes averaged and mirrored for a front-facing camera
- Head-pose proxy blended in to compensate for head movement
"""

import logging
import math
from typing import Tuple

from gaze_pointer import constants as const
from gaze_pointer.data_acquisition.landmark_frame import (
    InsufficientLandmarksError,
    InvalidGazeSampleError,
    LandmarkFrame,
    RawGazeSample,
)

logger = logging.getLogger(__name__)


def normalized_position(value: float, lower: float, upper: float) -> float:
    """
    Position of `value` between two bounds, clamped to [0, 1].

    Returns the neutral 0.5 when the bounds nearly coincide (closed or
    degenerate eye). NaN input stays NaN so the frame can be dropped.
    """
    span = upper - lower
    if abs(span) < const.MIN_EYE_SPAN:
        return const.NEUTRAL_GAZE
    ratio = (value - lower) / span
    if math.isnan(ratio):
        return ratio
    return max(0.0, min(1.0, ratio))


class RawGazeExtractor:
    """
    Iris + head-pose gaze estimate from a LandmarkFrame.

    Args:
        head_pose_weight: Share of the head-pose proxy in the blend, in [0, 1]
        min_landmarks: Frames with fewer points are rejected
    """

    def __init__(self, head_pose_weight: float = 0.5, min_landmarks: int = const.MIN_LANDMARKS):
        if not 0.0 <= head_pose_weight <= 1.0:
            raise ValueError(f"head_pose_weight must be in [0, 1], got {head_pose_weight}")
        self.head_pose_weight = float(head_pose_weight)
        self.min_landmarks = int(min_landmarks)

    def iris_gaze(self, frame: LandmarkFrame) -> Tuple[float, float]:
        """Average normalized iris position of both eyes, before mirroring."""
        left_iris_x, left_iris_y = frame.point(const.LEFT_IRIS_CENTER)
        right_iris_x, right_iris_y = frame.point(const.RIGHT_IRIS_CENTER)

        # Corner order is mirrored between eyes so both grow in the same direction
        left_x = normalized_position(
            left_iris_x,
            frame.point(const.LEFT_EYE_OUTER)[0],
            frame.point(const.LEFT_EYE_INNER)[0],
        )
        right_x = normalized_position(
            right_iris_x,
            frame.point(const.RIGHT_EYE_INNER)[0],
            frame.point(const.RIGHT_EYE_OUTER)[0],
        )
        left_y = normalized_position(
            left_iris_y,
            frame.point(const.LEFT_EYE_TOP)[1],
            frame.point(const.LEFT_EYE_BOTTOM)[1],
        )
        right_y = normalized_position(
            right_iris_y,
            frame.point(const.RIGHT_EYE_TOP)[1],
            frame.point(const.RIGHT_EYE_BOTTOM)[1],
        )
        return (left_x + right_x) / 2.0, (left_y + right_y) / 2.0

    def head_pose(self, frame: LandmarkFrame) -> Tuple[float, float]:
        """Coarse gaze from the face center, mirrored horizontally."""
        center_x, center_y = frame.point(const.FACE_CENTER)
        return 1.0 - center_x, center_y

    def extract(self, frame: LandmarkFrame) -> RawGazeSample:
        """
        Compute the raw gaze sample for one frame.

        Raises:
            InsufficientLandmarksError: frame has fewer than `min_landmarks` points
            InvalidGazeSampleError: blended coordinate is NaN
        """
        if len(frame) < self.min_landmarks:
            raise InsufficientLandmarksError(len(frame), self.min_landmarks)

        iris_x, iris_y = self.iris_gaze(frame)
        # Front camera flips both axes
        iris_x = 1.0 - iris_x
        iris_y = 1.0 - iris_y

        head_x, head_y = self.head_pose(frame)
        w = self.head_pose_weight
        raw_x = iris_x * (1.0 - w) + head_x * w
        raw_y = iris_y * (1.0 - w) + head_y * w

        if math.isnan(raw_x) or math.isnan(raw_y):
            raise InvalidGazeSampleError(f"gaze blend produced NaN ({raw_x}, {raw_y})")
        return RawGazeSample(raw_x, raw_y)
