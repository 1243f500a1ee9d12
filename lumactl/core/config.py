from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = "lumactl"
    output_name: str = "eDP-1"

    # Logging
    log_file: str = "lumactl.log"
    log_level: str = "INFO"

    # Ambient light sensor: "sim", "iio" or "rs485"
    sensor_mode: str = "sim"
    iio_device_path: str = "/sys/bus/iio/devices/iio:device0"

    # RS485 / Modbus RTU
    rs485_port: str = "/dev/ttyUSB0"      # Windows example: "COM3"
    rs485_baudrate: int = 9600
    rs485_slave_id: int = 1

    # Lux register definition
    lux_functioncode: int = 3             # 3=holding, 4=input
    lux_register_address: int = 0
    lux_register_count: int = 1
    lux_scale: float = 1.0

    # Brightness device: "sim" or "sysfs"
    brightness_mode: str = "sim"
    backlight_path: str = ""              # empty = first usable /sys/class/backlight/*
    sim_max_brightness: int = 255

    # Content luminance: "none", "sim" or "screen"
    luminance_mode: str = "none"
    screen_monitor: int = 1               # mss monitor index, 0 = all monitors

    # Learning
    kalman_q: float = 1.0
    kalman_r: float = 20.0
    kalman_covariance: float = 10.0
    kalman_warmup: int = Field(default=1, ge=1)
    pending_cooldown: int = Field(default=15, ge=0)  # sensing cycles without edits before commit
    transition_ms: int = Field(default=200, gt=0)

    # Sensing loop
    delay_success_ms: int = Field(default=100, ge=0)
    delay_failure_ms: int = Field(default=1000, ge=0)

    # Safety: stop the loop when the backlight cannot be read or written
    device_failure_fatal: bool = True

    # Storage
    persistent: bool = True
    sqlite_path: str = Field(default="lumactl.db")


settings = Settings()
