"""
Synthetic face-mesh frames with controllable iris and head position
"""

import numpy as np

from gaze_pointer import constants as const
from gaze_pointer.data_acquisition.landmark_frame import LandmarkFrame

# Eye boxes of the synthetic face
LEFT_OUTER_X, LEFT_INNER_X = 0.30, 0.40
RIGHT_INNER_X, RIGHT_OUTER_X = 0.60, 0.70
EYE_TOP_Y, EYE_BOTTOM_Y = 0.40, 0.44


def build_frame(iris_x=0.5, iris_y=0.5, center=(0.5, 0.5), timestamp_ms=0, count=const.MIN_LANDMARKS):
    """
    Frame whose irises sit at fraction (iris_x, iris_y) of both eye boxes.

    With this geometry the extractor's un-mirrored iris gaze equals
    (iris_x, iris_y) for values inside [0, 1].
    """
    points = np.full((count, 2), 0.5)
    if count < const.MIN_LANDMARKS:
        return LandmarkFrame(points, timestamp_ms)

    points[const.LEFT_EYE_OUTER] = (LEFT_OUTER_X, 0.42)
    points[const.LEFT_EYE_INNER] = (LEFT_INNER_X, 0.42)
    points[const.LEFT_EYE_TOP] = (0.35, EYE_TOP_Y)
    points[const.LEFT_EYE_BOTTOM] = (0.35, EYE_BOTTOM_Y)
    points[const.RIGHT_EYE_INNER] = (RIGHT_INNER_X, 0.42)
    points[const.RIGHT_EYE_OUTER] = (RIGHT_OUTER_X, 0.42)
    points[const.RIGHT_EYE_TOP] = (0.65, EYE_TOP_Y)
    points[const.RIGHT_EYE_BOTTOM] = (0.65, EYE_BOTTOM_Y)

    eye_y = EYE_TOP_Y + iris_y * (EYE_BOTTOM_Y - EYE_TOP_Y)
    points[const.LEFT_IRIS_CENTER] = (LEFT_OUTER_X + iris_x * (LEFT_INNER_X - LEFT_OUTER_X), eye_y)
    points[const.RIGHT_IRIS_CENTER] = (RIGHT_INNER_X + iris_x * (RIGHT_OUTER_X - RIGHT_INNER_X), eye_y)
    points[const.FACE_CENTER] = center
    return LandmarkFrame(points, timestamp_ms)


def expected_raw(iris_x, iris_y, center, weight):
    """Raw gaze the extractor should produce for `build_frame` arguments."""
    head_x, head_y = 1.0 - center[0], center[1]
    return (
        (1.0 - iris_x) * (1.0 - weight) + head_x * weight,
        (1.0 - iris_y) * (1.0 - weight) + head_y * weight,
    )
