from __future__ import annotations

from threading import Lock
from typing import Optional

import mss
from mss.exception import ScreenShotError
import numpy as np

from .base import LuminanceSource
from ..domain.errors import SensorError

# Rec.601 luma weights
LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float32)


class SimulatedLuminance(LuminanceSource):
    def __init__(self, value: Optional[int] = 50) -> None:
        self._lock = Lock()
        self._value = value

    def set(self, value: Optional[int]) -> None:
        with self._lock:
            self._value = value

    def get(self) -> Optional[int]:
        with self._lock:
            return self._value


class ScreenLuminance(LuminanceSource):
    """Average luma of the captured monitor as a 0-100 percentage."""

    def __init__(self, monitor: int = 1, downscale: int = 8) -> None:
        self._monitor = monitor
        self._downscale = max(1, downscale)

    def get(self) -> Optional[int]:
        try:
            with mss.mss() as sct:
                shot = sct.grab(sct.monitors[self._monitor])
        except (ScreenShotError, IndexError) as exc:
            raise SensorError(f"Screen capture failed: {exc}") from exc

        # BGRA -> RGB, sampled every n-th pixel
        img = np.asarray(shot)[:: self._downscale, :: self._downscale, :3][..., ::-1]
        return luma_percent(img)


def luma_percent(rgb: np.ndarray) -> int:
    if rgb.size == 0:
        return 0
    luma = rgb.astype(np.float32) @ LUMA_WEIGHTS
    return int(round(float(luma.mean()) / 255.0 * 100.0))
