from __future__ import annotations

import logging
import os

from .base import Sensor
from ..domain.errors import SensorError

logger = logging.getLogger(__name__)

# Preferred first: processed lux, then raw counts (scaled when a scale file exists)
READING_FILES = ("in_illuminance_input", "in_illuminance_raw", "in_intensity_both_raw")


class IIOLightSensor(Sensor):
    """Ambient light sensor exposed through the Linux IIO sysfs interface."""

    def __init__(self, device_path: str, sensor_id: str = "als_iio") -> None:
        self._device_path = device_path
        self._sensor_id = sensor_id
        self._reading_path = None
        self._scale = 1.0
        self._offset = 0.0

    @property
    def sensor_id(self) -> str:
        return self._sensor_id

    def _discover(self) -> str:
        for name in READING_FILES:
            path = os.path.join(self._device_path, name)
            if os.path.exists(path):
                prefix = name.rsplit("_", 1)[0]
                self._scale = self._read_optional(f"{prefix}_scale", 1.0)
                self._offset = self._read_optional(f"{prefix}_offset", 0.0)
                logger.info(
                    "IIO sensor: using %s (scale=%s offset=%s)", path, self._scale, self._offset
                )
                return path
        raise SensorError(f"No illuminance reading found under {self._device_path}")

    def _read_optional(self, name: str, default: float) -> float:
        path = os.path.join(self._device_path, name)
        try:
            with open(path, "r", encoding="utf-8") as handle:
                return float(handle.read().strip())
        except (OSError, ValueError):
            return default

    def get(self) -> int:
        if self._reading_path is None:
            self._reading_path = self._discover()
        try:
            with open(self._reading_path, "r", encoding="utf-8") as handle:
                raw = float(handle.read().strip())
        except (OSError, ValueError) as exc:
            raise SensorError(f"IIO read failed on {self._reading_path}: {exc}") from exc
        return max(0, round((raw + self._offset) * self._scale))
