from __future__ import annotations

import pytest

from lumactl.domain.controller import BrightnessController
from lumactl.domain.errors import DeviceError, PersistenceError
from lumactl.domain.kalman import Kalman

COOLDOWN = 15


class FakeBacklight:
    device_id = "backlight_fake"

    def __init__(self, value: int = 0) -> None:
        self.value = value
        self.sets: list[int] = []
        self.fail = False
        self.fail_after: int | None = None

    async def get(self) -> int:
        if self.fail:
            raise DeviceError("backlight gone")
        return self.value

    async def set(self, value: int) -> None:
        if self.fail:
            raise DeviceError("backlight gone")
        if self.fail_after is not None and len(self.sets) >= self.fail_after:
            raise DeviceError("backlight gone mid-ramp")
        self.sets.append(value)
        self.value = value


class FakeAls:
    sensor_id = "als_fake"

    def __init__(self, value: int = 100) -> None:
        self.value = value
        self.error: Exception | None = None

    def get(self) -> int:
        if self.error is not None:
            raise self.error
        return self.value


class MemoryRepository:
    def __init__(self, samples=None) -> None:
        self.samples = list(samples or [])
        self.saved: list[list] = []
        self.fail = False

    async def init(self) -> None:
        pass

    async def load(self):
        return list(self.samples)

    async def save(self, samples) -> None:
        if self.fail:
            raise PersistenceError("disk full")
        self.saved.append(list(samples))
        self.samples = list(samples)


class SleepRecorder:
    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def backlight() -> FakeBacklight:
    return FakeBacklight()


@pytest.fixture
def als() -> FakeAls:
    return FakeAls()


@pytest.fixture
def repo() -> MemoryRepository:
    return MemoryRepository()


@pytest.fixture
def sleeps() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def make_controller(backlight, als, sleeps):
    def _make(**kwargs) -> BrightnessController:
        kwargs.setdefault("kalman", Kalman(1.0, 20.0, 10.0))
        kwargs.setdefault("pending_cooldown", COOLDOWN)
        kwargs.setdefault("transition_ms", 200)
        return BrightnessController(backlight, als, sleep=sleeps, **kwargs)

    return _make


@pytest.fixture
def controller(make_controller) -> BrightnessController:
    return make_controller()
