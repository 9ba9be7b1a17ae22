"""
Calibration Manager

Drives a calibration session over the calibration model:
- Presents targets in a fixed order (center, corners, edge midpoints)
- Collects smoothed gaze samples for the current target
- Averages them into one reference point and scores its stability
- Retries points with too few samples, then skips them
- Finalizes and persists the model at the end
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np

from gaze_pointer import constants as const
from gaze_pointer.utils.gaze_calibration import CalibrationModel


@dataclass
class PointResult:
    """Outcome for one calibration target"""
    index: int
    target: Tuple[float, float]
    gaze: Optional[Tuple[float, float]]
    sample_count: int
    quality: float
    attempts: int
    success: bool = True


@dataclass
class CalibrationResult:
    """Summary of a finished calibration session"""
    points: List[PointResult] = field(default_factory=list)
    finalized: bool = False

    @property
    def quality(self) -> float:
        """Mean quality over all targets, 0-100. Skipped targets score zero."""
        scores = [p.quality if p.success else 0.0 for p in self.points]
        return float(np.mean(scores)) if scores else 0.0

    @property
    def captured_count(self) -> int:
        return sum(1 for p in self.points if p.success)


def point_quality(samples: Sequence[Tuple[float, float]]) -> float:
    """
    Stability score for one target's samples, 0-100.

    Uses the summed per-axis population variance; a total of 0.01 or more
    scores zero. Fewer than two samples score zero.
    """
    if len(samples) < 2:
        return 0.0
    data = np.asarray(samples, dtype=float)
    variance = float(data.var(axis=0).sum())
    return (1.0 - min(1.0, max(0.0, variance * 100.0))) * 100.0


class CalibrationManager:
    """
    Manages calibration procedures over a CalibrationModel

    Args:
        model: Calibration model receiving points
        targets: Normalized target positions in presentation order
        min_samples: Samples needed to accept a point
        max_attempts: Attempts per point before it is skipped
    """

    def __init__(
        self,
        model: CalibrationModel,
        targets: Sequence[Tuple[float, float]] = const.CALIBRATION_TARGETS,
        min_samples: int = const.MIN_SAMPLES_PER_POINT,
        max_attempts: int = const.MAX_POINT_ATTEMPTS,
    ):
        if not targets:
            raise ValueError("at least one calibration target is required")
        self.model = model
        self.targets = [tuple(t) for t in targets]
        self.min_samples = min_samples
        self.max_attempts = max_attempts
        self.logger = logging.getLogger(__name__)

        self._index = 0
        self._attempt = 0
        self._samples: List[Tuple[float, float]] = []
        self._result = CalibrationResult()
        self.active = False

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def current_target(self) -> Optional[Tuple[float, float]]:
        if not self.active or self._index >= len(self.targets):
            return None
        return self.targets[self._index]

    @property
    def finished(self) -> bool:
        return self._index >= len(self.targets)

    @property
    def sample_count(self) -> int:
        return len(self._samples)

    def start(self) -> None:
        """Begin a new session. Existing calibration is erased."""
        self.model.clear()
        self._index = 0
        self._attempt = 0
        self._samples = []
        self._result = CalibrationResult()
        self.active = True
        self.logger.info(f"Calibration started with {len(self.targets)} targets")

    def add_sample(self, gaze_x: float, gaze_y: float) -> None:
        """Record one smoothed gaze sample for the current target."""
        if not self.active or self.finished:
            raise RuntimeError("No calibration target is active")
        self._samples.append((float(gaze_x), float(gaze_y)))

    def complete_point(self) -> Optional[PointResult]:
        """
        Close the current target.

        Returns:
            The point result, or None if the attempt failed and will be retried
        """
        if not self.active or self.finished:
            raise RuntimeError("No calibration target is active")

        target = self.targets[self._index]
        self._attempt += 1

        if len(self._samples) < self.min_samples:
            self.logger.warning(
                f"Point {self._index} attempt {self._attempt}/{self.max_attempts}: "
                f"{len(self._samples)} samples, need {self.min_samples}"
            )
            self._samples = []
            if self._attempt < self.max_attempts:
                return None
            result = PointResult(self._index, target, None, 0, 0.0, self._attempt, success=False)
            self.logger.warning(f"Skipping calibration point {self._index}")
        else:
            gaze_x, gaze_y = np.asarray(self._samples, dtype=float).mean(axis=0)
            gaze = (float(gaze_x), float(gaze_y))
            quality = point_quality(self._samples)
            self.model.add_point(self._index, gaze[0], gaze[1], target[0], target[1])
            result = PointResult(self._index, target, gaze, len(self._samples), quality, self._attempt)
            self.logger.info(f"Point {self._index} captured: quality {quality:.0f}%")

        self._result.points.append(result)
        self._index += 1
        self._attempt = 0
        self._samples = []
        return result

    def finish(self) -> CalibrationResult:
        """Finalize the model with the captured points and end the session."""
        self.active = False
        self._result.finalized = self.model.finalize()
        self.logger.info(
            f"Calibration finished: {self._result.captured_count}/{len(self.targets)} points, "
            f"quality {self._result.quality:.0f}%"
        )
        return self._result
