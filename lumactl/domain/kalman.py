from __future__ import annotations
from typing import Optional


class Kalman:
    """Scalar Kalman filter for raw ambient light readings.

    q is the process noise variance, r the measurement noise variance and
    covariance the initial estimate uncertainty. The first measurement seeds
    the estimate; ``initialized()`` turns true once ``warmup`` measurements
    have been processed.
    """

    def __init__(self, q: float, r: float, covariance: float, warmup: int = 1) -> None:
        self.q = q
        self.r = r
        self.covariance = covariance
        self.warmup = max(1, warmup)
        self.value: Optional[float] = None
        self.count = 0

    def process(self, measurement: float) -> float:
        self.count += 1
        if self.value is None:
            self.value = float(measurement)
            return self.value

        p = self.covariance + self.q
        gain = p / (p + self.r)
        self.value += gain * (measurement - self.value)
        self.covariance = (1 - gain) * p
        return self.value

    def initialized(self) -> bool:
        return self.count >= self.warmup
