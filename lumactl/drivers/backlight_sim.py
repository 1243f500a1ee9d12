from __future__ import annotations
import logging

logger = logging.getLogger(__name__)


class SimulatedBacklight:
    device_id = "backlight_sim_01"

    def __init__(self, max_brightness: int = 255, value: int = 128) -> None:
        self.max_brightness = max_brightness
        self._value = value

    async def get(self) -> int:
        return self._value

    async def set(self, value: int) -> None:
        self._value = max(0, min(self.max_brightness, int(value)))
        logger.debug("BACKLIGHT set=%d", self._value)

    def user_set(self, value: int) -> None:
        """Simulate the user moving the brightness slider."""
        self._value = max(0, min(self.max_brightness, int(value)))
        logger.info("BACKLIGHT user set=%d", self._value)
