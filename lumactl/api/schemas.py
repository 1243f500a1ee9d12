from __future__ import annotations
from pydantic import BaseModel, Field
from typing import Optional, Literal


class SampleOut(BaseModel):
    lux: int
    luminance: Optional[int]
    brightness: int


class SimManualRequest(BaseModel):
    lux: float = Field(ge=0)


class SimPatternRequest(BaseModel):
    type: Literal["sine", "step", "ramp", "random"]
    baseline: float = 300
    amplitude: float = 200
    period_s: float = Field(default=600, gt=0)
    noise: float = 5
    step_low: float = 50
    step_high: float = 800
    step_period_s: float = Field(default=120, gt=0)
    ramp_min: float = 0
    ramp_max: float = 1000
    ramp_period_s: float = Field(default=600, gt=0)


class SimBrightnessRequest(BaseModel):
    brightness: int = Field(ge=0)


class SimLuminanceRequest(BaseModel):
    luminance: Optional[int] = Field(default=None, ge=0, le=100)
