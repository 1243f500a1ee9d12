from __future__ import annotations


class LumactlError(Exception):
    """Base class for failures surfaced by the control loop."""


class SensorError(LumactlError):
    """Ambient light or luminance read failed. Transient, skip the cycle."""


class DeviceError(LumactlError):
    """Backlight get/set failed. Fatal unless device_failure_fatal is off."""


class PersistenceError(LumactlError):
    """Learned samples could not be saved."""
