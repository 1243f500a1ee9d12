from __future__ import annotations
import asyncio
import logging
import math
from dataclasses import dataclass, replace
from typing import Awaitable, Callable, Optional

from .interfaces import AmbientLightSensor, BrightnessDevice, SampleRepository
from .kalman import Kalman
from .models import ControlDecision, Phase, Sample, compare, compare_luminance
from ..core.config import settings

logger = logging.getLogger(__name__)


# Which existing samples survive a commit, keyed by how the existing sample's
# (lux, luminance) compares to the pending one:
#
# |                 | darker env      | same env         | brighter env     |
# | darker screen   | any             | same or brighter | same or brighter |
# | same screen     | same or dimmer  | none             | same or brighter |
# | brighter screen | same or dimmer  | same or dimmer   | any              |
ANY, NONE, DIMMER, BRIGHTER = "any", "none", "dimmer", "brighter"

RETAIN_RULES = {
    (-1, -1): ANY,
    (-1, 0): DIMMER,
    (-1, 1): DIMMER,
    (0, -1): BRIGHTER,
    (0, 0): NONE,
    (0, 1): DIMMER,
    (1, -1): BRIGHTER,
    (1, 0): BRIGHTER,
    (1, 1): ANY,
}


def retains(existing: Sample, pending: Sample) -> bool:
    rule = RETAIN_RULES[(
        compare(existing.lux, pending.lux),
        compare_luminance(existing.luminance, pending.luminance),
    )]
    if rule == ANY:
        return True
    if rule == DIMMER:
        return existing.brightness <= pending.brightness
    if rule == BRIGHTER:
        return existing.brightness >= pending.brightness
    return False


@dataclass
class ControllerState:
    last_brightness: int = 0
    pending: Optional[Sample] = None
    cooldown: int = 0

    @property
    def phase(self) -> Phase:
        return Phase.IDLE if self.pending is None else Phase.PENDING


class BrightnessController:
    def __init__(
        self,
        brightness: BrightnessDevice,
        als: AmbientLightSensor,
        repository: Optional[SampleRepository] = None,
        persistent: bool = False,
        kalman: Optional[Kalman] = None,
        pending_cooldown: Optional[int] = None,
        transition_ms: Optional[int] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if persistent and repository is None:
            raise ValueError("Persistent mode needs a sample repository")
        if transition_ms is not None and transition_ms <= 0:
            raise ValueError("transition_ms must be positive")

        self._brightness = brightness
        self._als = als
        self._repository = repository
        self._kalman = kalman or Kalman(
            settings.kalman_q,
            settings.kalman_r,
            settings.kalman_covariance,
            warmup=settings.kalman_warmup,
        )
        self._pending_cooldown = settings.pending_cooldown if pending_cooldown is None else pending_cooldown
        self._transition_ms = settings.transition_ms if transition_ms is None else transition_ms
        self._sleep = sleep
        self._samples: list[Sample] = []
        self.persistent = persistent
        self.state = ControllerState()

    @property
    def samples(self) -> tuple[Sample, ...]:
        return tuple(self._samples)

    async def load(self) -> None:
        if not self.persistent:
            return
        self._samples = await self._repository.load()
        logger.info("Loaded %d learned samples", len(self._samples))

    async def adjust(self, luminance: Optional[int] = None) -> ControlDecision:
        """Run one sensing cycle.

        Raises SensorError when the ambient light read fails and DeviceError
        when the backlight cannot be read or written.
        """
        loop = asyncio.get_running_loop()
        raw = await loop.run_in_executor(None, self._als.get)
        lux = math.floor(self._kalman.process(raw) + 0.5)
        brightness = await self._brightness.get()

        if not self._kalman.initialized():
            self.state.last_brightness = brightness
            return ControlDecision("WARMUP", lux, luminance, brightness)

        return await self.process(lux, luminance, brightness)

    async def process(self, lux: int, luminance: Optional[int], brightness: int) -> ControlDecision:
        st = self.state
        user_changed_brightness = brightness != st.last_brightness
        no_data = not self._samples and st.pending is None

        st.last_brightness = brightness

        if user_changed_brightness or no_data:
            if st.pending is None:
                # First edit of a streak freezes lux and luminance...
                st.pending = Sample(lux, luminance, brightness)
                logger.info("Brightness edit captured: lux=%d luminance=%s brightness=%d", lux, luminance, brightness)
            else:
                # ...later edits only move the brightness the user is settling on
                st.pending = replace(st.pending, brightness=brightness)
            st.cooldown = self._pending_cooldown
            return ControlDecision("CAPTURE", lux, luminance, brightness)

        if st.cooldown > 0:
            st.cooldown -= 1
            logger.debug("Pending sample cooldown=%d", st.cooldown)
            return ControlDecision("DEBOUNCE", lux, luminance, brightness)

        if st.pending is not None:
            await self.learn()
            return ControlDecision("COMMIT", lux, luminance, brightness)

        target = self.predict(lux, luminance)
        await self.change_brightness(brightness, target)
        st.last_brightness = target
        return ControlDecision("ADJUST", lux, luminance, brightness, target)

    async def learn(self) -> None:
        pending = self.state.pending
        if pending is None:
            raise RuntimeError("No pending sample to learn")
        self.state.pending = None

        before = len(self._samples)
        self._samples = [s for s in self._samples if retains(s, pending)]
        self._samples.append(pending)
        logger.info(
            "Learned %s (dropped %d contradicted samples, %d total)",
            pending, before - len(self._samples) + 1, len(self._samples),
        )

        if self.persistent:
            await self._repository.save(list(self._samples))

    def predict(self, lux: int, luminance: Optional[int]) -> int:
        """Inverse distance weighted brightness for the given conditions.

        Weights are w_i = prod(d_j for j != i), i.e. 1/d_i scaled by the
        product of all distances. Distances are divided by the longest one
        first so the products stay within float range.
        A query matching exactly one sample returns its brightness; matching
        several at once is undefined and yields 0.
        """
        if not self._samples:
            return 0
        if len(self._samples) == 1:
            return self._samples[0].brightness

        luma = luminance or 0
        distances = [
            math.hypot(lux - s.lux, luma - (s.luminance or 0))
            for s in self._samples
        ]

        exact = [s for s, d in zip(self._samples, distances) if d == 0]
        if len(exact) == 1:
            return exact[0].brightness
        if exact:
            logger.warning("lux=%d luminance=%s matches %d samples, predicting 0", lux, luminance, len(exact))
            return 0

        # distances scaled to at most 1 so the products cannot overflow
        longest = max(distances)
        scaled = [d / longest for d in distances]
        weights = [math.prod(scaled[:i] + scaled[i + 1:]) for i in range(len(scaled))]
        total_weight = sum(weights)
        if total_weight == 0:
            # products underflowed, same weights up to a common factor
            weights = [1.0 / d for d in distances]
            total_weight = sum(weights)

        total = sum(s.brightness * w for s, w in zip(self._samples, weights))
        return math.floor(total / total_weight)

    async def change_brightness(self, current: int, target: int) -> None:
        if current == target:
            return

        diff = abs(target - current)
        direction = 1 if target > current else -1
        if diff >= self._transition_ms:
            step, tick_ms = diff // self._transition_ms, 1
        else:
            step, tick_ms = 1, self._transition_ms // diff

        logger.info("Ramping brightness %d -> %d (step=%d tick=%dms)", current, target, step, tick_ms)
        while current != target:
            current += direction * step
            if direction * (current - target) > 0:
                current = target
            await self._brightness.set(current)
            self.state.last_brightness = current
            await self._sleep(tick_ms / 1000)
