from __future__ import annotations
from typing import Protocol, Optional, runtime_checkable
from .models import Sample


@runtime_checkable
class AmbientLightSensor(Protocol):
    sensor_id: str

    def get(self) -> int:
        ...


@runtime_checkable
class BrightnessDevice(Protocol):
    device_id: str

    async def get(self) -> int:
        ...

    async def set(self, value: int) -> None:
        ...


@runtime_checkable
class LuminanceSource(Protocol):
    def get(self) -> Optional[int]:
        ...


@runtime_checkable
class SampleRepository(Protocol):
    async def init(self) -> None:
        ...

    async def load(self) -> list[Sample]:
        ...

    async def save(self, samples: list[Sample]) -> None:
        ...
