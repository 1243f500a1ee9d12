from __future__ import annotations

import math
import random
import time
from dataclasses import dataclass
from threading import Lock

from .base import Sensor
from ..domain.errors import SensorError


@dataclass
class PatternConfig:
    type: str = "sine"     # sine|step|ramp|random
    baseline: float = 300
    amplitude: float = 200
    period_s: float = 600
    noise: float = 5

    step_low: float = 50
    step_high: float = 800
    step_period_s: float = 120

    ramp_min: float = 0
    ramp_max: float = 1000
    ramp_period_s: float = 600


class SimulatedLuxSensor(Sensor):
    """Stand-in ambient light sensor driven manually or by a pattern.

    The API thread changes the mode while the sensing loop reads from the
    executor, hence the lock.
    """

    def __init__(self, sensor_id: str = "als_sim"):
        self._sensor_id = sensor_id
        self._lock = Lock()
        self._enabled = True
        self._mode = "manual"   # manual|pattern
        self._manual_lux = 300.0
        self._pattern = PatternConfig()

    @property
    def sensor_id(self) -> str:
        return self._sensor_id

    def enable(self) -> None:
        with self._lock:
            self._enabled = True

    def disable(self) -> None:
        with self._lock:
            self._enabled = False

    def set_manual(self, lux: float) -> None:
        with self._lock:
            self._mode = "manual"
            self._manual_lux = float(lux)

    def set_pattern(self, cfg: PatternConfig) -> None:
        with self._lock:
            self._mode = "pattern"
            self._pattern = cfg

    def status(self) -> dict:
        with self._lock:
            return {
                "enabled": self._enabled,
                "mode": self._mode,
                "manual_lux": self._manual_lux,
                "pattern": self._pattern.__dict__,
            }

    def get(self) -> int:
        with self._lock:
            if not self._enabled:
                raise SensorError("Simulated sensor disabled")

            if self._mode == "manual":
                return round(self._manual_lux)

            cfg = self._pattern

        t = time.time()

        if cfg.type == "sine":
            phase = (t % cfg.period_s) / cfg.period_s * 2.0 * math.pi
            v = cfg.baseline + cfg.amplitude * math.sin(phase)

        elif cfg.type == "step":
            half = cfg.step_period_s / 2.0
            v = cfg.step_high if (t % cfg.step_period_s) < half else cfg.step_low

        elif cfg.type == "ramp":
            frac = (t % cfg.ramp_period_s) / cfg.ramp_period_s
            v = cfg.ramp_min + (cfg.ramp_max - cfg.ramp_min) * frac

        elif cfg.type == "random":
            v = cfg.baseline + random.uniform(-cfg.amplitude, cfg.amplitude)

        else:
            v = cfg.baseline

        if cfg.noise > 0:
            v += random.uniform(-cfg.noise, cfg.noise)

        return round(max(0.0, v))
