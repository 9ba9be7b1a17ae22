"""
Data Acquisition Module
Landmark frames, raw gaze extraction and the detector adapter
"""

from gaze_pointer.data_acquisition.landmark_frame import (
    GazeInputError,
    InsufficientLandmarksError,
    InvalidGazeSampleError,
    LandmarkFrame,
    RawGazeSample,
)
from gaze_pointer.data_acquisition.raw_gaze_extractor import RawGazeExtractor

__all__ = [
    'GazeInputError',
    'InsufficientLandmarksError',
    'InvalidGazeSampleError',
    'LandmarkFrame',
    'RawGazeSample',
    'RawGazeExtractor',
]
