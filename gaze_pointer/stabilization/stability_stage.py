"""
Stability stage: outlier rejection and velocity-adaptive smoothing

Raw gaze samples pass through a z-score outlier test against a short history,
a per-axis scalar Kalman filter, and an exponential blend whose factor depends
on how fast the gaze is moving (heavy during fixations, light during saccades).
"""

from __future__ import annotations

import logging
import math
from collections import deque
from dataclasses import dataclass
from typing import Deque, Optional, Tuple

import numpy as np

from gaze_pointer import constants as const
from gaze_pointer.data_acquisition.landmark_frame import RawGazeSample
from gaze_pointer.stabilization.scalar_kalman import ScalarKalmanFilter
from gaze_pointer.utils.config_loader import StabilityConfig

logger = logging.getLogger(__name__)

FIXATION = "fixation"
TRANSITION = "transition"
SACCADE = "saccade"


@dataclass(frozen=True)
class SmoothedGaze:
    """Stage output: smoothed normalized gaze plus how it was smoothed."""
    x: float
    y: float
    velocity: float
    mode: str
    smoothing: float


class StabilityStage:
    """
    Owns the history buffer, both axis filters and the running smoothed gaze.

    Not thread-safe: call `process` from a single processing path.
    """

    def __init__(self, config: Optional[StabilityConfig] = None):
        self.config = config or StabilityConfig()
        self._history: Deque[Tuple[float, float]] = deque(maxlen=self.config.history_size)
        self._filter_x = ScalarKalmanFilter(
            self.config.kalman_process_noise, self.config.kalman_measurement_noise
        )
        self._filter_y = ScalarKalmanFilter(
            self.config.kalman_process_noise, self.config.kalman_measurement_noise
        )
        self._smoothed_x = const.NEUTRAL_GAZE
        self._smoothed_y = const.NEUTRAL_GAZE
        self._prev_raw = (const.NEUTRAL_GAZE, const.NEUTRAL_GAZE)
        self._last_timestamp_ms: Optional[int] = None
        self.rejected_count = 0
        self._consecutive_rejections = 0

    @property
    def history(self) -> Tuple[Tuple[float, float], ...]:
        return tuple(self._history)

    @property
    def smoothed(self) -> Tuple[float, float]:
        return self._smoothed_x, self._smoothed_y

    def note_frame_time(self, timestamp_ms: int) -> None:
        """Record a frame that produced no sample, for the next velocity estimate."""
        self._last_timestamp_ms = int(timestamp_ms)

    def is_outlier(self, x: float, y: float) -> bool:
        """
        Z-score test against the accepted history.

        Needs at least three samples. An axis whose standard deviation is below
        the floor is treated as stable and cannot flag the sample.
        """
        if len(self._history) < const.OUTLIER_MIN_SAMPLES:
            return False

        history = np.asarray(self._history, dtype=float)
        mean = history.mean(axis=0)
        std = history.std(axis=0)

        for value, axis_mean, axis_std in zip((x, y), mean, std):
            if axis_std < self.config.outlier_min_std:
                continue
            if abs(value - axis_mean) / axis_std > self.config.outlier_z_threshold:
                return True
        return False

    def classify(self, velocity: float) -> Tuple[str, float]:
        """Map gaze velocity (normalized units per second) to a smoothing factor."""
        if velocity > self.config.saccade_threshold:
            return SACCADE, self.config.saccade_smoothing
        if velocity < self.config.fixation_threshold:
            return FIXATION, self.config.fixation_smoothing
        return TRANSITION, self.config.transition_smoothing

    def process(self, raw: RawGazeSample, timestamp_ms: int) -> Optional[SmoothedGaze]:
        """
        Run one raw sample through the stage.

        Args:
            raw: Raw gaze sample from the extractor
            timestamp_ms: Capture time in milliseconds

        Returns:
            Updated smoothed gaze, or None when the sample is rejected as an outlier
        """
        previous_ts = self._last_timestamp_ms
        self._last_timestamp_ms = int(timestamp_ms)

        if self.is_outlier(raw.x, raw.y):
            self.rejected_count += 1
            self._consecutive_rejections += 1
            logger.debug("Rejected outlier gaze sample (%.4f, %.4f)", raw.x, raw.y)
            limit = self.config.max_consecutive_rejections
            if limit and self._consecutive_rejections >= limit:
                # Gaze settled somewhere the history no longer describes
                logger.info("Discarding outlier history after %d consecutive rejections", limit)
                self._history.clear()
                self._consecutive_rejections = 0
            return None

        self._consecutive_rejections = 0
        self._history.append((raw.x, raw.y))

        dt = self.config.default_dt
        if previous_ts is not None:
            dt = (timestamp_ms - previous_ts) / 1000.0
        distance = math.hypot(raw.x - self._prev_raw[0], raw.y - self._prev_raw[1])
        velocity = distance / dt if dt > 0 else 0.0
        mode, factor = self.classify(velocity)

        filtered_x = self._filter_x.update(raw.x)
        filtered_y = self._filter_y.update(raw.y)
        self._smoothed_x += (filtered_x - self._smoothed_x) * factor
        self._smoothed_y += (filtered_y - self._smoothed_y) * factor

        self._prev_raw = (raw.x, raw.y)

        return SmoothedGaze(self._smoothed_x, self._smoothed_y, velocity, mode, factor)

    def reset(self) -> None:
        """Clear history and filters; used when tracking restarts."""
        self._history.clear()
        self._filter_x.reset()
        self._filter_y.reset()
        self._smoothed_x = const.NEUTRAL_GAZE
        self._smoothed_y = const.NEUTRAL_GAZE
        self._prev_raw = (const.NEUTRAL_GAZE, const.NEUTRAL_GAZE)
        self._last_timestamp_ms = None
        self.rejected_count = 0
        self._consecutive_rejections = 0
