from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..core.config import settings
from ..domain.controller import BrightnessController
from ..drivers.backlight_sim import SimulatedBacklight
from ..sensors.luminance import SimulatedLuminance
from ..sensors.simulated_lux_sensor import PatternConfig, SimulatedLuxSensor
from ..services.sensing import SensingLoop
from .schemas import (
    SampleOut,
    SimBrightnessRequest,
    SimLuminanceRequest,
    SimManualRequest,
    SimPatternRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Dependency getters ---
# main.py points these at the real objects via app.dependency_overrides.
def get_sensing() -> SensingLoop:  # overridden in main
    raise RuntimeError("Sensing loop dependency not configured")

def get_controller() -> BrightnessController:  # overridden in main
    raise RuntimeError("Controller dependency not configured")

def get_sim_sensor() -> SimulatedLuxSensor:  # overridden in main
    raise RuntimeError("Simulated sensor dependency not configured")

def get_sim_backlight() -> SimulatedBacklight:  # overridden in main
    raise RuntimeError("Simulated backlight dependency not configured")

def get_sim_luminance() -> SimulatedLuminance:  # overridden in main
    raise RuntimeError("Simulated luminance dependency not configured")


@router.get("/live")
async def get_live(
    svc: SensingLoop = Depends(get_sensing),
    ctrl: BrightnessController = Depends(get_controller),
):
    live = svc.live
    st = ctrl.state
    return {
        "app": settings.app_name,
        "output": live.output,
        "running": live.running,
        "last_cycle_utc": live.last_cycle_utc.isoformat() if live.last_cycle_utc else None,
        "last_decision": live.last_decision,
        "lux": live.lux,
        "luminance": live.luminance,
        "brightness": live.brightness,
        "target": live.target,
        "sensor_ok": live.sensor_ok,
        "last_error": live.last_error,
        "fatal_error": live.fatal_error,
        "controller": {
            "phase": st.phase.value,
            "last_brightness": st.last_brightness,
            "cooldown": st.cooldown,
            "pending": SampleOut(**st.pending.__dict__).model_dump() if st.pending else None,
            "persistent": ctrl.persistent,
            "samples": len(ctrl.samples),
        },
    }


@router.get("/samples")
async def get_samples(ctrl: BrightnessController = Depends(get_controller)):
    return {"samples": [SampleOut(**s.__dict__).model_dump() for s in ctrl.samples]}


@router.get("/predict")
async def predict(
    lux: int = Query(ge=0),
    luminance: Optional[int] = Query(default=None, ge=0, le=100),
    ctrl: BrightnessController = Depends(get_controller),
):
    return {"lux": lux, "luminance": luminance, "brightness": ctrl.predict(lux, luminance)}


# --- Simulation endpoints ---
@router.get("/sim/status")
async def sim_status(sensor: SimulatedLuxSensor = Depends(get_sim_sensor)):
    return sensor.status()


@router.post("/sim/enable")
async def sim_enable(sensor: SimulatedLuxSensor = Depends(get_sim_sensor)):
    sensor.enable()
    return {"ok": True, "enabled": True}


@router.post("/sim/disable")
async def sim_disable(sensor: SimulatedLuxSensor = Depends(get_sim_sensor)):
    sensor.disable()
    return {"ok": True, "enabled": False}


@router.post("/sim/lux/manual")
async def sim_set_manual(req: SimManualRequest, sensor: SimulatedLuxSensor = Depends(get_sim_sensor)):
    sensor.set_manual(req.lux)
    return {"ok": True, "mode": "manual", "lux": req.lux}


@router.post("/sim/lux/pattern")
async def sim_set_pattern(req: SimPatternRequest, sensor: SimulatedLuxSensor = Depends(get_sim_sensor)):
    cfg = PatternConfig(**req.model_dump())
    sensor.set_pattern(cfg)
    return {"ok": True, "pattern": cfg.__dict__}


@router.post("/sim/brightness")
async def sim_set_brightness(
    req: SimBrightnessRequest,
    backlight: SimulatedBacklight = Depends(get_sim_backlight),
):
    backlight.user_set(req.brightness)
    return {"ok": True, "brightness": await backlight.get()}


@router.post("/sim/luminance")
async def sim_set_luminance(
    req: SimLuminanceRequest,
    source: SimulatedLuminance = Depends(get_sim_luminance),
):
    source.set(req.luminance)
    return {"ok": True, "luminance": req.luminance}
