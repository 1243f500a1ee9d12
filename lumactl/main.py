from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException

from .core.config import settings
from .core.log import configure_logging

from .api.routes import router as api_router
import lumactl.api.routes as routes_module

from .domain.controller import BrightnessController
from .domain.interfaces import AmbientLightSensor, BrightnessDevice, LuminanceSource
from .drivers.backlight_sim import SimulatedBacklight
from .drivers.backlight_sysfs import SysfsBacklight
from .drivers.rs485_modbus import RS485ModbusRTU, ModbusRtuConfig
from .sensors.base import NoLuminance
from .sensors.iio_als import IIOLightSensor
from .sensors.luminance import ScreenLuminance, SimulatedLuminance
from .sensors.rs485_lux_sensor import RS485LuxSensor, LuxRegisterSpec
from .sensors.simulated_lux_sensor import SimulatedLuxSensor
from .services.sensing import SensingLoop
from .storage.sqlite_repo import SQLiteSampleRepository


logger = logging.getLogger(__name__)


sim_sensor: SimulatedLuxSensor | None = None
sim_backlight: SimulatedBacklight | None = None
sim_luminance: SimulatedLuminance | None = None
rs485_driver: RS485ModbusRTU | None = None


def build_sensor() -> AmbientLightSensor:
    global sim_sensor, rs485_driver

    mode = settings.sensor_mode.lower()
    if mode == "rs485":
        rs485_driver = RS485ModbusRTU(
            ModbusRtuConfig(
                port=settings.rs485_port,
                baudrate=settings.rs485_baudrate,
                slave_id=settings.rs485_slave_id,
            )
        )
        spec = LuxRegisterSpec(
            functioncode=settings.lux_functioncode,
            address=settings.lux_register_address,
            count=settings.lux_register_count,
            scale=settings.lux_scale,
        )
        return RS485LuxSensor(driver=rs485_driver, spec=spec, sensor_id="lux_rs485")

    if mode == "iio":
        return IIOLightSensor(settings.iio_device_path)

    # default to sim
    sim_sensor = SimulatedLuxSensor()
    return sim_sensor


def build_brightness() -> BrightnessDevice:
    global sim_backlight

    if settings.brightness_mode.lower() == "sysfs":
        return SysfsBacklight.from_settings(settings.backlight_path)

    sim_backlight = SimulatedBacklight(max_brightness=settings.sim_max_brightness)
    return sim_backlight


def build_luminance() -> LuminanceSource:
    global sim_luminance

    mode = settings.luminance_mode.lower()
    if mode == "screen":
        return ScreenLuminance(monitor=settings.screen_monitor)
    if mode == "sim":
        sim_luminance = SimulatedLuminance()
        return sim_luminance
    return NoLuminance()


# --- Singletons ---
sensor = build_sensor()
backlight = build_brightness()
luminance = build_luminance()
repo = SQLiteSampleRepository(settings.sqlite_path, settings.output_name)
controller = BrightnessController(
    brightness=backlight,
    als=sensor,
    repository=repo,
    persistent=settings.persistent,
)
sensing: SensingLoop | None = None


def get_sensing() -> SensingLoop:
    assert sensing is not None
    return sensing


def get_controller() -> BrightnessController:
    return controller


def get_sim_sensor() -> SimulatedLuxSensor:
    if sim_sensor is None:
        raise HTTPException(status_code=404, detail="Sim sensor not available (sensor_mode is not 'sim').")
    return sim_sensor


def get_sim_backlight() -> SimulatedBacklight:
    if sim_backlight is None:
        raise HTTPException(status_code=404, detail="Sim backlight not available (brightness_mode is not 'sim').")
    return sim_backlight


def get_sim_luminance() -> SimulatedLuminance:
    if sim_luminance is None:
        raise HTTPException(status_code=404, detail="Sim luminance not available (luminance_mode is not 'sim').")
    return sim_luminance


async def prepare() -> SensingLoop:
    """Load learned data and build the sensing loop for the configured output."""
    if settings.persistent:
        await repo.init()
        await controller.load()

    return SensingLoop(
        controller=controller,
        luminance=luminance,
        output=settings.output_name,
    )


def shutdown_drivers() -> None:
    if rs485_driver is not None:
        rs485_driver.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info(
        "Starting %s (output=%s sensor=%s brightness=%s luminance=%s persistent=%s)",
        settings.app_name, settings.output_name, settings.sensor_mode,
        settings.brightness_mode, settings.luminance_mode, settings.persistent,
    )

    global sensing
    sensing = await prepare()
    await sensing.start()

    try:
        yield
    finally:
        if sensing:
            await sensing.stop()

        shutdown_drivers()

        logger.info("Shutdown complete")


app = FastAPI(title=settings.app_name, lifespan=lifespan)

# Make the dependency functions in routes resolve to the real ones
app.dependency_overrides[routes_module.get_sensing] = get_sensing
app.dependency_overrides[routes_module.get_controller] = get_controller
app.dependency_overrides[routes_module.get_sim_sensor] = get_sim_sensor
app.dependency_overrides[routes_module.get_sim_backlight] = get_sim_backlight
app.dependency_overrides[routes_module.get_sim_luminance] = get_sim_luminance

app.include_router(api_router, prefix="/api")
