from __future__ import annotations

import math
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _lenient_number(value: Any) -> Any:
    if value is None:
        return 0
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0
    return number if math.isfinite(number) else 0


class RawObservation(BaseModel):
    """Current conditions as reported by the forecast provider.

    Units follow Open-Meteo's defaults: Celsius, millimetres, km/h and percent.
    Absent or unreadable values are treated as 0 rather than rejected.
    """

    model_config = ConfigDict(extra="ignore")

    temperature_2m: float = 0.0
    precipitation: float = 0.0
    windspeed_10m: float = 0.0
    relativehumidity_2m: float = 0.0
    hour: int = 0

    @field_validator(
        "temperature_2m",
        "precipitation",
        "windspeed_10m",
        "relativehumidity_2m",
        mode="before",
    )
    @classmethod
    def default_missing_numbers(cls, value: Any) -> Any:
        return _lenient_number(value)

    @field_validator("hour", mode="before")
    @classmethod
    def default_missing_hour(cls, value: Any) -> Any:
        number = _lenient_number(value)
        if isinstance(number, float):
            return int(number)
        return number


class NormalizedWeather(BaseModel):
    model_config = ConfigDict(extra="ignore")

    temperature: int
    is_rainy: bool
    wind_speed: int
    humidity: int
    hour: int
    perceived_temperature: int


class CoatReason(str, Enum):
    COLD = "cold"
    RAINY = "rainy"
    WINDY = "windy"
    NIGHT_AND_COOL = "night_and_cool"


class Decision(BaseModel):
    model_config = ConfigDict(extra="ignore")

    take_coat: bool
    reasons: list[CoatReason] = Field(default_factory=list)


class Location(BaseModel):
    model_config = ConfigDict(extra="ignore")

    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)
    name: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        text = value.strip()
        if not text:
            raise ValueError("location name must not be empty")
        return text


class GeolocationOutcome(BaseModel):
    """What the browser's geolocation request produced."""

    model_config = ConfigDict(extra="ignore")

    status: Literal["ok", "permission_denied", "unsupported", "unavailable"] = "ok"
    lat: float | None = Field(default=None, ge=-90, le=90)
    lon: float | None = Field(default=None, ge=-180, le=180)

    @model_validator(mode="after")
    def validate_coordinates(self) -> GeolocationOutcome:
        if self.status == "ok" and (self.lat is None or self.lon is None):
            raise ValueError("lat and lon are required when status is 'ok'")
        return self


class CheckRequest(GeolocationOutcome):
    hour: int | None = Field(default=None, ge=0, le=23)
