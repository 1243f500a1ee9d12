from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class Sample:
    lux: int
    luminance: Optional[int]  # 0-100, None without a luminance source
    brightness: int


class Phase(str, Enum):
    IDLE = "idle"
    PENDING = "pending"


@dataclass(frozen=True)
class ControlDecision:
    action: str  # "WARMUP" | "CAPTURE" | "DEBOUNCE" | "COMMIT" | "ADJUST"
    lux: Optional[int]
    luminance: Optional[int]
    brightness: int
    target: Optional[int] = None


def compare(a: int, b: int) -> int:
    return (a > b) - (a < b)


def compare_luminance(a: Optional[int], b: Optional[int]) -> int:
    """Order luminance values with None below every measured value.

    None is equal only to None. Distance computations read None as 0
    separately; this ordering is only for pruning.
    """
    if a is None or b is None:
        return (a is not None) - (b is not None)
    return compare(a, b)
