"""
Frame-scoped data types passed between the detector and the gaze pipeline
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple

import numpy as np


class GazeInputError(Exception):
    """Base class for per-frame input defects. Never fatal: the frame is dropped."""


class InsufficientLandmarksError(GazeInputError):
    """Frame carries fewer landmarks than the face mesh requires."""

    def __init__(self, count: int, required: int):
        super().__init__(f"insufficient landmarks: got {count}, need {required}")
        self.count = count
        self.required = required


class InvalidGazeSampleError(GazeInputError):
    """Blended gaze geometry produced a non-numeric coordinate."""


@dataclass(frozen=True, eq=False)
class LandmarkFrame:
    """
    One detector result: normalized (x, y) landmark coordinates plus capture time.

    `points` is an (N, 2) float array and is made read-only on construction.
    An empty frame means no face was found.
    """
    points: np.ndarray
    timestamp_ms: int

    def __post_init__(self):
        points = np.array(self.points, dtype=float)
        if points.size == 0:
            points = points.reshape(0, 2)
        if points.ndim != 2 or points.shape[1] != 2:
            raise ValueError(f"landmark points must have shape (N, 2), got {points.shape}")
        points.setflags(write=False)
        object.__setattr__(self, "points", points)
        object.__setattr__(self, "timestamp_ms", int(self.timestamp_ms))

    @classmethod
    def from_points(cls, points: Iterable[Sequence[float]], timestamp_ms: int) -> "LandmarkFrame":
        return cls(np.array([tuple(p)[:2] for p in points], dtype=float), timestamp_ms)

    @classmethod
    def empty(cls, timestamp_ms: int) -> "LandmarkFrame":
        return cls(np.empty((0, 2)), timestamp_ms)

    def __len__(self) -> int:
        return int(self.points.shape[0])

    def point(self, index: int) -> Tuple[float, float]:
        x, y = self.points[index]
        return float(x), float(y)


@dataclass(frozen=True)
class RawGazeSample:
    """Per-frame gaze estimate in roughly [0, 1] on both axes."""
    x: float
    y: float
