"""
Gaze calibration model.

Maps smoothed normalized gaze onto screen coordinates:

- With reference points: inverse-distance-weighted (IDW) interpolation over
  {observed gaze -> target screen position} pairs, with an exact-match
  short-circuit.
- Without points: linear range mapping between the persisted min/max gaze
  values (0.4..0.6 before any calibration).

Points and ranges are persisted to a JSON file under a namespace key, using a
flat layout (`point_count`, `point_{i}_target_x`, ..., `min_gaze_x`, ...).
Floats round-trip exactly through JSON, so a reloaded model maps identically.
"""

from __future__ import annotations

import json
import logging
import math
import os
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from gaze_pointer import constants as const
from gaze_pointer.utils.config_loader import CalibrationConfig

logger = logging.getLogger(__name__)

_RANGE_KEYS = ("min_gaze_x", "max_gaze_x", "min_gaze_y", "max_gaze_y")


class CalibrationStorageError(Exception):
    """Calibration data could not be read from or written to storage."""


class MappingMode(Enum):
    TRANSFORMED = "transformed"
    # Pass gaze through unchanged, used while capturing calibration samples
    IDENTITY = "identity"


@dataclass(frozen=True)
class CalibrationPoint:
    target_x: float
    target_y: float
    gaze_x: float
    gaze_y: float


PLACEHOLDER_POINT = CalibrationPoint(
    const.NEUTRAL_GAZE, const.NEUTRAL_GAZE, const.NEUTRAL_GAZE, const.NEUTRAL_GAZE
)


class CalibrationStore:
    """
    JSON file holding one flat key/value dict per namespace.

    Other namespaces in the same file are preserved on save and clear.
    """

    def __init__(self, path: str = const.CALIBRATION_FILE, namespace: str = const.CALIBRATION_NAMESPACE):
        self.path = Path(path)
        self.namespace = namespace

    def _read_all(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise CalibrationStorageError(f"Cannot read calibration file {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise CalibrationStorageError(f"Calibration file {self.path} is not a JSON object")
        return data

    def _write_all(self, data: Dict[str, Any]) -> None:
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise CalibrationStorageError(f"Cannot write calibration file {self.path}: {e}") from e

    def load(self) -> Dict[str, Any]:
        section = self._read_all().get(self.namespace, {})
        return dict(section) if isinstance(section, dict) else {}

    def save(self, values: Dict[str, Any]) -> None:
        data = self._read_all()
        data[self.namespace] = dict(values)
        self._write_all(data)

    def clear(self) -> None:
        data = self._read_all()
        if self.namespace in data:
            del data[self.namespace]
            self._write_all(data)


class CalibrationModel:
    """
    Reference points plus derived gaze ranges, guarded by a single lock.

    Mapping and mutation may come from different threads; every public method
    holds the lock while touching points or ranges. Storage I/O happens outside
    the lock so mapping never waits on disk.

    Args:
        config: Calibration parameters
        store: Persistence backend (default: JSON file from config)
    """

    def __init__(self, config: Optional[CalibrationConfig] = None, store: Optional[CalibrationStore] = None):
        self.config = config or CalibrationConfig()
        self.store = store or CalibrationStore(self.config.storage_path, self.config.namespace)
        self._lock = threading.Lock()
        self._points: List[CalibrationPoint] = []
        self._gaze_array: Optional[np.ndarray] = None
        self._target_array: Optional[np.ndarray] = None
        self._reset_ranges()
        self.load()

    def _reset_ranges(self) -> None:
        self.min_gaze_x = self.config.default_min_gaze
        self.max_gaze_x = self.config.default_max_gaze
        self.min_gaze_y = self.config.default_min_gaze
        self.max_gaze_y = self.config.default_max_gaze

    def _invalidate(self) -> None:
        self._gaze_array = None
        self._target_array = None

    @property
    def points(self) -> Tuple[CalibrationPoint, ...]:
        with self._lock:
            return tuple(self._points)

    @property
    def point_count(self) -> int:
        with self._lock:
            return len(self._points)

    @property
    def ranges(self) -> Tuple[float, float, float, float]:
        """(min_gaze_x, max_gaze_x, min_gaze_y, max_gaze_y)"""
        with self._lock:
            return self.min_gaze_x, self.max_gaze_x, self.min_gaze_y, self.max_gaze_y

    def load(self) -> bool:
        """
        Replace in-memory state with the persisted calibration.

        Returns:
            True if a stored calibration was found and loaded
        """
        try:
            values = self.store.load()
        except CalibrationStorageError as e:
            logger.warning("Starting uncalibrated: %s", e)
            return False
        if not values:
            return False

        try:
            count = int(values.get("point_count", 0))
            points = [
                CalibrationPoint(
                    float(values[f"point_{i}_target_x"]),
                    float(values[f"point_{i}_target_y"]),
                    float(values[f"point_{i}_gaze_x"]),
                    float(values[f"point_{i}_gaze_y"]),
                )
                for i in range(count)
            ]
            ranges = {key: float(values.get(key, default)) for key, default in zip(
                _RANGE_KEYS,
                (self.config.default_min_gaze, self.config.default_max_gaze) * 2,
            )}
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Ignoring malformed calibration data in %s: %s", self.store.path, e)
            return False

        with self._lock:
            self._points = points
            for key, value in ranges.items():
                setattr(self, key, value)
            self._invalidate()
        logger.info("Loaded calibration with %d points", count)
        return True

    def add_point(
        self,
        index: int,
        gaze_x: float,
        gaze_y: float,
        target_x: Optional[float] = None,
        target_y: Optional[float] = None,
    ) -> None:
        """
        Set the reference point at `index`.

        Overwrites an existing point; otherwise pads with neutral placeholder
        points up to `index` and appends. Missing targets default to 0.5.
        """
        if index < 0:
            raise ValueError(f"calibration point index must not be negative, got {index}")
        point = CalibrationPoint(
            const.NEUTRAL_GAZE if target_x is None else float(target_x),
            const.NEUTRAL_GAZE if target_y is None else float(target_y),
            float(gaze_x),
            float(gaze_y),
        )
        with self._lock:
            if index < len(self._points):
                self._points[index] = point
            else:
                self._points.extend([PLACEHOLDER_POINT] * (index - len(self._points)))
                self._points.append(point)
            self._invalidate()
        logger.debug("Calibration point %d: gaze=(%.4f, %.4f) target=(%.3f, %.3f)",
                     index, point.gaze_x, point.gaze_y, point.target_x, point.target_y)

    def finalize(self) -> bool:
        """
        Derive gaze ranges from the points and persist everything.

        Returns:
            False if there are too few points (ranges unchanged) or saving failed
        """
        with self._lock:
            if len(self._points) < self.config.min_finalize_points:
                logger.warning(
                    "Cannot finalize calibration: %d points, need at least %d",
                    len(self._points), self.config.min_finalize_points,
                )
                return False

            gaze = np.array([(p.gaze_x, p.gaze_y) for p in self._points], dtype=float)
            lows = gaze.min(axis=0)
            highs = gaze.max(axis=0)
            margins = (highs - lows) * self.config.range_margin
            self.min_gaze_x, self.min_gaze_y = (float(v) for v in lows - margins)
            self.max_gaze_x, self.max_gaze_y = (float(v) for v in highs + margins)
            values = self._snapshot()

        try:
            self.store.save(values)
        except CalibrationStorageError as e:
            logger.error("Calibration kept in memory only: %s", e)
            return False

        logger.info(
            "Calibration finalized with %d points: x=[%.3f, %.3f] y=[%.3f, %.3f]",
            values["point_count"], values["min_gaze_x"], values["max_gaze_x"],
            values["min_gaze_y"], values["max_gaze_y"],
        )
        return True

    def _snapshot(self) -> Dict[str, Any]:
        values: Dict[str, Any] = {"point_count": len(self._points)}
        for key in _RANGE_KEYS:
            values[key] = getattr(self, key)
        for i, p in enumerate(self._points):
            values[f"point_{i}_target_x"] = p.target_x
            values[f"point_{i}_target_y"] = p.target_y
            values[f"point_{i}_gaze_x"] = p.gaze_x
            values[f"point_{i}_gaze_y"] = p.gaze_y
        return values

    def is_calibrated(self) -> bool:
        """True if the persisted point count reaches the calibrated threshold."""
        try:
            values = self.store.load()
        except CalibrationStorageError as e:
            logger.warning("Cannot read calibration state: %s", e)
            return False
        try:
            count = int(values.get("point_count", 0))
        except (TypeError, ValueError):
            return False
        return count >= self.config.calibrated_point_count

    def clear(self) -> bool:
        """
        Drop all points, restore default ranges and erase stored calibration.

        Returns:
            False if the stored calibration could not be erased
        """
        with self._lock:
            self._points = []
            self._reset_ranges()
            self._invalidate()
        try:
            self.store.clear()
        except CalibrationStorageError as e:
            logger.error("Failed to erase stored calibration: %s", e)
            return False
        logger.info("Calibration cleared")
        return True

    def map_to_screen(
        self,
        gaze_x: float,
        gaze_y: float,
        screen_width: float,
        screen_height: float,
        mode: MappingMode = MappingMode.TRANSFORMED,
    ) -> Tuple[float, float]:
        """
        Map normalized gaze to screen coordinates.

        Args:
            gaze_x, gaze_y: Smoothed normalized gaze
            screen_width, screen_height: Output space size
            mode: IDENTITY returns the gaze unchanged

        Returns:
            (x, y) in [0, screen_width] x [0, screen_height] for TRANSFORMED mode
        """
        if mode is MappingMode.IDENTITY:
            return gaze_x, gaze_y

        with self._lock:
            if not self._points:
                return self._map_by_range(gaze_x, gaze_y, screen_width, screen_height)
            if self._gaze_array is None:
                self._gaze_array = np.array([(p.gaze_x, p.gaze_y) for p in self._points], dtype=float)
                self._target_array = np.array([(p.target_x, p.target_y) for p in self._points], dtype=float)
            gaze_array = self._gaze_array
            target_array = self._target_array

        return self._map_by_idw(gaze_array, target_array, gaze_x, gaze_y, screen_width, screen_height)

    def _map_by_range(self, gaze_x, gaze_y, screen_width, screen_height) -> Tuple[float, float]:
        def axis(value, low, high, size):
            span = high - low
            if span <= self.config.min_range_span:
                return size / 2.0
            return max(0.0, min(1.0, (value - low) / span)) * size

        return (
            axis(gaze_x, self.min_gaze_x, self.max_gaze_x, screen_width),
            axis(gaze_y, self.min_gaze_y, self.max_gaze_y, screen_height),
        )

    def _map_by_idw(self, gaze_array, target_array, gaze_x, gaze_y, screen_width, screen_height):
        distances = np.hypot(gaze_array[:, 0] - gaze_x, gaze_array[:, 1] - gaze_y)

        exact = np.flatnonzero(distances < self.config.exact_match_distance)
        if exact.size:
            target_x, target_y = target_array[exact[0]]
            return float(target_x) * screen_width, float(target_y) * screen_height

        weights = 1.0 / np.power(distances, self.config.idw_power)
        total = float(weights.sum())
        if total <= 0.0 or not math.isfinite(total):
            return screen_width / 2.0, screen_height / 2.0

        x = float(np.dot(weights, target_array[:, 0]) / total) * screen_width
        y = float(np.dot(weights, target_array[:, 1]) / total) * screen_height
        return max(0.0, min(float(screen_width), x)), max(0.0, min(float(screen_height), y))
