from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.config import settings
from ..core.timeutil import now_utc
from ..domain.controller import BrightnessController
from ..domain.errors import DeviceError, PersistenceError, SensorError
from ..domain.interfaces import LuminanceSource


logger = logging.getLogger(__name__)


@dataclass
class LiveState:
    output: str = ""
    last_cycle_utc: Optional[datetime] = None
    last_decision: Optional[str] = None
    lux: Optional[int] = None
    luminance: Optional[int] = None
    brightness: Optional[int] = None
    target: Optional[int] = None
    sensor_ok: bool = True
    last_error: Optional[str] = None
    fatal_error: Optional[str] = None
    running: bool = False


class SensingLoop:
    """Drives one controller: one adjust() per sensing cycle, never concurrently."""

    def __init__(
        self,
        controller: BrightnessController,
        luminance: Optional[LuminanceSource] = None,
        output: str = "",
        delay_success_ms: Optional[int] = None,
        delay_failure_ms: Optional[int] = None,
        device_failure_fatal: Optional[bool] = None,
    ) -> None:
        self._controller = controller
        self._luminance = luminance
        self._delay_success = (settings.delay_success_ms if delay_success_ms is None else delay_success_ms) / 1000
        self._delay_failure = (settings.delay_failure_ms if delay_failure_ms is None else delay_failure_ms) / 1000
        self._device_failure_fatal = (
            settings.device_failure_fatal if device_failure_fatal is None else device_failure_fatal
        )

        self._task: Optional[asyncio.Task] = None
        self._stop = asyncio.Event()
        self.live = LiveState(output=output)

    @property
    def controller(self) -> BrightnessController:
        return self._controller

    async def start(self) -> None:
        self._stop.clear()
        self._task = asyncio.create_task(self.run(), name="sensing_loop")

    async def stop(self) -> None:
        self._stop.set()
        if self._task:
            await asyncio.wait([self._task])
            if not self._task.cancelled() and self._task.exception() is not None:
                # already logged and recorded in live.fatal_error
                logger.info("Sensing loop had ended with: %s", self._task.exception())
            self._task = None

    async def cycle(self) -> bool:
        """Run one cycle. Returns False when it failed and should back off.

        Raises DeviceError (when device failures are fatal) and
        PersistenceError.
        """
        try:
            luminance = None
            if self._luminance is not None:
                loop = asyncio.get_running_loop()
                luminance = await loop.run_in_executor(None, self._luminance.get)

            decision = await self._controller.adjust(luminance)

        except SensorError as e:
            self.live.sensor_ok = False
            self.live.last_error = str(e)
            logger.warning("Sensor read failed, skipping cycle: %s", e)
            return False

        except DeviceError as e:
            self.live.last_error = str(e)
            if self._device_failure_fatal:
                raise
            logger.warning("Backlight access failed, skipping cycle: %s", e)
            return False

        self.live.last_cycle_utc = now_utc()
        self.live.sensor_ok = True
        self.live.last_decision = decision.action
        self.live.lux = decision.lux
        self.live.luminance = decision.luminance
        self.live.brightness = decision.brightness
        self.live.target = decision.target
        return True

    async def run(self) -> None:
        logger.info(
            "Sensing loop started (output=%s delay_success=%.3fs delay_failure=%.3fs)",
            self.live.output,
            self._delay_success,
            self._delay_failure,
        )
        self.live.running = True

        try:
            while not self._stop.is_set():
                ok = await self.cycle()
                delay = self._delay_success if ok else self._delay_failure

                # sleep with cancellation awareness
                try:
                    await asyncio.wait_for(self._stop.wait(), timeout=delay)
                except asyncio.TimeoutError:
                    pass

        except (DeviceError, PersistenceError) as e:
            self.live.fatal_error = str(e)
            logger.critical("Sensing loop stopped on fatal error: %s", e)
            raise

        except Exception as e:
            self.live.fatal_error = str(e)
            logger.exception("Sensing loop error: %s", e)
            raise

        finally:
            self.live.running = False

        logger.info("Sensing loop stopped")
