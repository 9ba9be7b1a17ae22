"""
Landmark detector adapter.

Wraps MediaPipe's FaceLandmarker (VIDEO mode, one face, iris refinement) and
converts its output into LandmarkFrame objects. MediaPipe and OpenCV are
imported lazily so the pipeline itself runs without them.
"""

import logging
import os
import urllib.request
from typing import Any, Optional, Sequence

import numpy as np

from gaze_pointer.data_acquisition.landmark_frame import LandmarkFrame

logger = logging.getLogger(__name__)

MODEL_URL = (
    "https://storage.googleapis.com/mediapipe-models/face_landmarker/"
    "face_landmarker/float16/1/face_landmarker.task"
)


def frame_from_landmarks(landmarks: Optional[Sequence[Any]], timestamp_ms: int) -> LandmarkFrame:
    """
    Build a LandmarkFrame from objects exposing `.x` and `.y`.

    Works with MediaPipe NormalizedLandmark lists. None or an empty sequence
    gives an empty frame (no face).
    """
    if not landmarks:
        return LandmarkFrame.empty(timestamp_ms)
    points = np.array([(lm.x, lm.y) for lm in landmarks], dtype=float)
    return LandmarkFrame(points, timestamp_ms)


class FaceLandmarkSource:
    """
    MediaPipe FaceLandmarker producing LandmarkFrames from BGR images.

    Camera capture is left to the caller; pass each captured image to `detect`.
    """

    def __init__(self, model_path: str = "face_landmarker.task", min_confidence: float = 0.5):
        self.model_path = model_path
        self.min_confidence = min_confidence
        self.face_landmarker = None
        self.initialized = False

    def _ensure_model(self) -> None:
        if os.path.exists(self.model_path):
            return
        logger.info(f"Downloading MediaPipe model to {self.model_path}...")
        urllib.request.urlretrieve(MODEL_URL, self.model_path)
        logger.info("Model downloaded")

    def setup(self) -> bool:
        """Initialize MediaPipe. Returns False if it cannot be loaded."""
        try:
            from mediapipe.tasks import python
            from mediapipe.tasks.python import vision

            self._ensure_model()
            base_options = python.BaseOptions(
                model_asset_path=self.model_path,
                delegate=python.BaseOptions.Delegate.CPU,
            )
            options = vision.FaceLandmarkerOptions(
                base_options=base_options,
                running_mode=vision.RunningMode.VIDEO,
                num_faces=1,
                min_face_detection_confidence=self.min_confidence,
                min_face_presence_confidence=self.min_confidence,
                min_tracking_confidence=self.min_confidence,
            )
            self.face_landmarker = vision.FaceLandmarker.create_from_options(options)
            self.initialized = True
            logger.info("Face landmarker initialized")
            return True
        except (ImportError, OSError, RuntimeError, ValueError) as e:
            logger.error(f"MediaPipe init failed: {e}", exc_info=True)
            self.initialized = False
            return False

    def detect(self, frame_bgr: np.ndarray, timestamp_ms: int) -> LandmarkFrame:
        """
        Detect face landmarks in one BGR image.

        Args:
            frame_bgr: Image as captured by OpenCV
            timestamp_ms: Monotonic capture time; must increase between calls

        Returns:
            LandmarkFrame, empty when no face was found
        """
        if not self.initialized or self.face_landmarker is None:
            raise RuntimeError("FaceLandmarkSource.setup() must succeed before detect()")

        import cv2
        import mediapipe as mp

        rgb_frame = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=rgb_frame)
        results = self.face_landmarker.detect_for_video(mp_image, timestamp_ms)
        if not results.face_landmarks:
            return LandmarkFrame.empty(timestamp_ms)
        return frame_from_landmarks(results.face_landmarks[0], timestamp_ms)

    def close(self) -> None:
        if self.face_landmarker is not None:
            self.face_landmarker.close()
            self.face_landmarker = None
        self.initialized = False
