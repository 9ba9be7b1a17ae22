"""
Constants for the gaze pointer pipeline.
Landmark indices follow the MediaPipe 478-point face mesh (with irises).
"""

# Minimum landmark count for a usable frame (468 mesh points + 10 iris points)
MIN_LANDMARKS = 478

# Iris centers
LEFT_IRIS_CENTER = 468
RIGHT_IRIS_CENTER = 473

# Left eye bounds
LEFT_EYE_OUTER = 33
LEFT_EYE_INNER = 133
LEFT_EYE_TOP = 159
LEFT_EYE_BOTTOM = 145

# Right eye bounds
RIGHT_EYE_INNER = 362
RIGHT_EYE_OUTER = 263
RIGHT_EYE_TOP = 386
RIGHT_EYE_BOTTOM = 374

# Between the eyes, used as the head-pose proxy
FACE_CENTER = 168

# Eye span below this is treated as closed/degenerate
MIN_EYE_SPAN = 0.001
NEUTRAL_GAZE = 0.5

# Scalar Kalman filter
KALMAN_PROCESS_NOISE = 0.001
KALMAN_MEASUREMENT_NOISE = 0.03
KALMAN_INITIAL_COVARIANCE = 1.0

# Stability stage
HISTORY_SIZE = 10
OUTLIER_Z_THRESHOLD = 3.0
OUTLIER_MIN_SAMPLES = 3
OUTLIER_MIN_STD = 0.001
# Consecutive rejections before the outlier history is discarded (0 = never)
MAX_CONSECUTIVE_REJECTIONS = 10
FIXATION_VELOCITY = 0.015
SACCADE_VELOCITY = 0.05
FIXATION_SMOOTHING = 0.08
SACCADE_SMOOTHING = 0.25
DEFAULT_FRAME_DT = 0.033

# Calibration model
IDW_POWER = 2.0
EXACT_MATCH_DISTANCE = 0.001
RANGE_MARGIN = 0.15
MIN_FINALIZE_POINTS = 3
CALIBRATED_POINT_COUNT = 5
MIN_RANGE_SPAN = 0.01
DEFAULT_GAZE_MIN = 0.4
DEFAULT_GAZE_MAX = 0.6
CALIBRATION_NAMESPACE = "EyeTrackerCalibration"
CALIBRATION_FILE = "config/gaze_calibration.json"

# Calibration workflow: center first, then corners, then edge midpoints
CALIBRATION_TARGETS = [
    (0.5, 0.5),
    (0.15, 0.15), (0.85, 0.15),
    (0.15, 0.85), (0.85, 0.85),
    (0.5, 0.15), (0.5, 0.85),
    (0.15, 0.5), (0.85, 0.5),
]
MIN_SAMPLES_PER_POINT = 5
MAX_POINT_ATTEMPTS = 3

# Screen
SCREEN_WIDTH = 1920
SCREEN_HEIGHT = 1080
