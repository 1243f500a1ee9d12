from __future__ import annotations

import glob
import logging
import os
from typing import Optional

from ..domain.errors import DeviceError

logger = logging.getLogger(__name__)

BACKLIGHT_ROOT = "/sys/class/backlight"


class SysfsBacklight:
    """Backlight driver writing raw values to /sys/class/backlight/<name>."""

    def __init__(self, directory: str) -> None:
        self._directory = directory
        self._brightness_path = os.path.join(directory, "brightness")
        self.device_id = os.path.basename(directory.rstrip("/"))
        self.max_brightness = self._read_int(os.path.join(directory, "max_brightness"))

    @classmethod
    def auto_detect(cls, root: str = BACKLIGHT_ROOT) -> "SysfsBacklight":
        """First backlight with readable brightness and max_brightness."""
        for directory in sorted(glob.glob(os.path.join(root, "*"))):
            try:
                backlight = cls(directory)
            except DeviceError:
                continue
            logger.info("Using backlight %s (max=%d)", directory, backlight.max_brightness)
            return backlight
        raise DeviceError(f"No usable backlight under {root}")

    @classmethod
    def from_settings(cls, path: Optional[str]) -> "SysfsBacklight":
        return cls(path) if path else cls.auto_detect()

    async def get(self) -> int:
        return self._read_int(self._brightness_path)

    async def set(self, value: int) -> None:
        raw = max(0, min(self.max_brightness, int(value)))
        try:
            with open(self._brightness_path, "w", encoding="utf-8") as handle:
                handle.write(f"{raw}\n")
        except OSError as exc:
            raise DeviceError(
                f"Cannot write {self._brightness_path}: {exc}. "
                "Grant write access (udev rule) or run with sufficient privileges."
            ) from exc

    @staticmethod
    def _read_int(path: str) -> int:
        try:
            with open(path, "r", encoding="utf-8") as handle:
                return int(handle.read().strip())
        except (OSError, ValueError) as exc:
            raise DeviceError(f"Cannot read {path}: {exc}") from exc
