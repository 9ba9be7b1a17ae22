"""
Gaze Engine
Per-frame pipeline: landmarks -> raw gaze -> stability stage -> calibration
mapping -> clamped screen coordinate.
"""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass
from typing import Optional, Tuple

from gaze_pointer.data_acquisition.landmark_frame import GazeInputError, LandmarkFrame
from gaze_pointer.data_acquisition.raw_gaze_extractor import RawGazeExtractor
from gaze_pointer.stabilization.stability_stage import StabilityStage
from gaze_pointer.utils.config_loader import GazeConfig
from gaze_pointer.utils.gaze_calibration import CalibrationModel, MappingMode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GazePoint:
    """One emitted gaze coordinate."""
    x: float
    y: float
    gaze_x: float
    gaze_y: float
    timestamp_ms: int
    mode: str


class GazeEngine:
    """
    Owns one tracking session's pipeline state.

    `process_frame` must be driven from a single path (see FrameWorker); the
    calibration methods may be called from another thread and go through the
    calibration model's lock.

    Args:
        config: Pipeline configuration (defaults when omitted)
        calibration: Shared calibration model; created from config if omitted
        mapping_mode: TRANSFORMED for pointing, IDENTITY while capturing calibration
    """

    def __init__(
        self,
        config: Optional[GazeConfig] = None,
        calibration: Optional[CalibrationModel] = None,
        mapping_mode: MappingMode = MappingMode.TRANSFORMED,
    ):
        self.config = config or GazeConfig()
        self.extractor = RawGazeExtractor(
            head_pose_weight=self.config.extraction.head_pose_weight,
            min_landmarks=self.config.extraction.min_landmarks,
        )
        self.stability = StabilityStage(self.config.stability)
        self.calibration = calibration or CalibrationModel(self.config.calibration)
        self.mapping_mode = mapping_mode
        self._screen_lock = threading.Lock()
        self._screen_size = (float(self.config.screen.width), float(self.config.screen.height))
        self.last_point: Optional[GazePoint] = None

    @property
    def screen_size(self) -> Tuple[float, float]:
        with self._screen_lock:
            return self._screen_size

    def set_screen_size(self, width: float, height: float) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"screen size must be positive, got {width}x{height}")
        with self._screen_lock:
            self._screen_size = (float(width), float(height))

    def process_frame(self, frame: LandmarkFrame) -> Optional[GazePoint]:
        """
        Run one landmark frame through the pipeline.

        Returns:
            The new gaze point, or None if the frame was dropped at any stage
        """
        try:
            raw = self.extractor.extract(frame)
        except GazeInputError as e:
            logger.debug("Dropped frame at %d ms: %s", frame.timestamp_ms, e)
            self.stability.note_frame_time(frame.timestamp_ms)
            return None

        smoothed = self.stability.process(raw, frame.timestamp_ms)
        if smoothed is None:
            return None

        width, height = self.screen_size
        x, y = self.calibration.map_to_screen(smoothed.x, smoothed.y, width, height, self.mapping_mode)
        if not (math.isfinite(x) and math.isfinite(y)):
            logger.warning("Dropped non-finite gaze output (%s, %s)", x, y)
            return None

        point = GazePoint(
            x=max(0.0, min(width, x)),
            y=max(0.0, min(height, y)),
            gaze_x=smoothed.x,
            gaze_y=smoothed.y,
            timestamp_ms=frame.timestamp_ms,
            mode=smoothed.mode,
        )
        self.last_point = point
        return point

    def reset_tracking(self) -> None:
        """Start a fresh tracking session; calibration is kept."""
        self.stability = StabilityStage(self.config.stability)
        self.last_point = None
        logger.info("Tracking state reset")

    # Calibration control path

    def add_calibration_point(self, index, gaze_x, gaze_y, target_x=None, target_y=None) -> None:
        self.calibration.add_point(index, gaze_x, gaze_y, target_x, target_y)

    def finalize_calibration(self) -> bool:
        return self.calibration.finalize()

    def is_calibrated(self) -> bool:
        return self.calibration.is_calibrated()

    def clear_calibration(self) -> bool:
        return self.calibration.clear()
