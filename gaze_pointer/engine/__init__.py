"""
Engine Module
Pipeline coordination, frame scheduling and the calibration workflow
"""

from gaze_pointer.engine.gaze_engine import GazeEngine, GazePoint
from gaze_pointer.engine.frame_worker import FrameWorker
from gaze_pointer.engine.calibration_manager import CalibrationManager, CalibrationResult, PointResult

__all__ = [
    'GazeEngine',
    'GazePoint',
    'FrameWorker',
    'CalibrationManager',
    'CalibrationResult',
    'PointResult',
]
