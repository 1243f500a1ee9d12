from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional


class Sensor(ABC):
    """Ambient light sensor seen by the controller."""

    @property
    @abstractmethod
    def sensor_id(self) -> str:
        ...

    @abstractmethod
    def get(self) -> int:
        """Return a raw reading in sensor units. Raise SensorError on failure."""
        ...


class LuminanceSource(ABC):
    """Per-cycle on-screen content brightness, 0-100."""

    @abstractmethod
    def get(self) -> Optional[int]:
        ...


class NoLuminance(LuminanceSource):
    def get(self) -> Optional[int]:
        return None
