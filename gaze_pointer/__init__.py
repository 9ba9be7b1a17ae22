"""
Gaze pointer: calibrated on-screen gaze from face-mesh landmarks
"""

__version__ = "0.1.0"
