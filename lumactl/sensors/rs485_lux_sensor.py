from __future__ import annotations

from dataclasses import dataclass
import logging

from .base import Sensor
from ..domain.errors import SensorError
from ..drivers.rs485_modbus import RS485ModbusRTU

logger = logging.getLogger(__name__)


@dataclass
class LuxRegisterSpec:
    functioncode: int = 3  # 3=holding, 4=input
    address: int = 2
    count: int = 2
    scale: float = 0.001   # raw = (hi<<16)|lo, lux = raw/1000


class RS485LuxSensor(Sensor):
    def __init__(
        self,
        driver: RS485ModbusRTU,
        spec: LuxRegisterSpec = LuxRegisterSpec(),
        sensor_id: str = "lux_rs485",
    ):
        self._driver = driver
        self._spec = spec
        self._sensor_id = sensor_id

    @property
    def sensor_id(self) -> str:
        return self._sensor_id

    def get(self) -> int:
        regs = self._driver.read_registers(self._spec.functioncode, self._spec.address, self._spec.count)
        if not regs:
            raise SensorError("No registers returned")

        # Combine registers into a single value (big-endian, hi word first)
        raw = 0
        for r in regs:
            raw = (raw << 16) | r

        lux = round(raw * self._spec.scale)
        logger.debug("RS485 lux: regs=%s raw=%d scale=%s lux=%d", regs, raw, self._spec.scale, lux)
        return lux
