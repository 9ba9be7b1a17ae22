"""
Stabilization Module
Outlier rejection, Kalman filtering and adaptive smoothing
"""

from gaze_pointer.stabilization.scalar_kalman import ScalarKalmanFilter
from gaze_pointer.stabilization.stability_stage import SmoothedGaze, StabilityStage

__all__ = ['ScalarKalmanFilter', 'SmoothedGaze', 'StabilityStage']
