import math
from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from engine.solar.position import Location
from engine.solar.pv_string import PanelStringConfig
from engine.weather.radiation import RadiationSeries


class LocationIn(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    timezone_offset: float = Field(default=0.0, ge=-18, le=18)
    elevation: float = 20.0
    pressure: float = Field(default=1013.0, gt=0)  # mbar
    temperature: float = 5.0

    model_config = {"allow_inf_nan": False}

    def to_engine(self) -> Location:
        return Location(
            latitude=self.latitude,
            longitude=self.longitude,
            timezone_offset=self.timezone_offset,
            elevation=self.elevation,
            pressure=self.pressure,
            temperature=self.temperature,
        )


class PanelStringIn(BaseModel):
    name: str = Field(min_length=1, max_length=64)
    panel_count: int = Field(gt=0)
    nominal_power_w: float = Field(gt=0)
    panel_efficiency: float = Field(gt=0, le=1)
    overall_efficiency: float = Field(default=0.85, gt=0, le=1)
    panel_area_m2: float = Field(gt=0)
    slope_deg: float = Field(ge=0, le=90)
    azimuth_deg: float = Field(ge=0, lt=360)

    model_config = {"allow_inf_nan": False}

    def to_engine(self) -> PanelStringConfig:
        return PanelStringConfig(
            name=self.name,
            panel_count=self.panel_count,
            nominal_power=self.nominal_power_w,
            panel_efficiency=self.panel_efficiency,
            overall_efficiency=self.overall_efficiency,
            panel_area=self.panel_area_m2,
            slope=self.slope_deg,
            azimuth=self.azimuth_deg,
        )


class DaySimulationRequest(BaseModel):
    day: date
    location: LocationIn
    strings: list[PanelStringIn] = Field(min_length=1)
    radiation: dict[int, float] = Field(
        default_factory=dict,
        description="Hour of day (0-23) -> irradiance in W/m². Missing hours are 0.",
    )
    step_minutes: int = Field(default=60, gt=0, le=1440)
    position_method: Literal["spa", "spencer"] = "spa"

    model_config = {"allow_inf_nan": False}

    @field_validator("radiation")
    @classmethod
    def _check_radiation(cls, v: dict[int, float]) -> dict[int, float]:
        for hour, value in v.items():
            if not 0 <= hour <= 23:
                raise ValueError(f"radiation hour must be in [0, 23], got {hour}")
            if not math.isfinite(value) or value < 0:
                raise ValueError(f"radiation for hour {hour} must be finite and >= 0, got {value}")
        return v

    @field_validator("step_minutes")
    @classmethod
    def _check_step(cls, v: int) -> int:
        if 1440 % v != 0:
            raise ValueError(f"step_minutes must divide 1440, got {v}")
        return v

    @field_validator("strings")
    @classmethod
    def _check_unique_names(cls, v: list[PanelStringIn]) -> list[PanelStringIn]:
        names = [s.name for s in v]
        if len(set(names)) != len(names):
            raise ValueError(f"string names must be unique, got {names}")
        return v

    def radiation_series(self) -> RadiationSeries:
        return RadiationSeries(self.radiation)


class StringFrameOut(BaseModel):
    name: str
    orientation_factor: float
    nominal_power_w: float
    irradiance_power_w: float

    model_config = {"from_attributes": True}


class SimulationFrameOut(BaseModel):
    timestamp: datetime
    azimuth: float
    zenith: float
    altitude: float
    irradiance: float
    strings: list[StringFrameOut]


class SunEventOut(BaseModel):
    kind: Literal["sunrise", "sunset"]
    timestamp: datetime
    azimuth: float


class StringEnergyOut(BaseModel):
    nominal_wh: float
    irradiance_wh: float


class DaySimulationResponse(BaseModel):
    run_id: str
    status: Literal["completed", "failed"]
    error_message: str | None = None
    day: date
    frames: list[SimulationFrameOut]
    events: list[SunEventOut]
    has_sun_transitions: bool
    energy: dict[str, StringEnergyOut] = Field(default_factory=dict)
    summary: str = ""
