from __future__ import annotations

import json
import logging
from http.client import HTTPException
from typing import Any
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from ...domain.models import RawObservation
from .base import WeatherAdapterError

LOGGER = logging.getLogger(__name__)

OPEN_METEO_FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
DEFAULT_TIMEOUT_SECONDS = 10
USER_AGENT = "coatcheck/0.1"

CURRENT_VARIABLES = (
    "temperature_2m",
    "precipitation",
    "windspeed_10m",
    "relativehumidity_2m",
    "is_day",
)


def _fetch_json(url: str, *, timeout: float) -> dict[str, Any]:
    request = Request(url, headers={"User-Agent": USER_AGENT, "Accept": "application/json"})
    try:
        with urlopen(request, timeout=timeout) as response:
            payload = json.loads(response.read().decode("utf-8"))
    except (OSError, HTTPException, json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise WeatherAdapterError("Failed to fetch weather data from Open-Meteo") from exc

    if not isinstance(payload, dict):
        raise WeatherAdapterError("Unexpected Open-Meteo response shape")
    return payload


class OpenMeteoWeatherAdapter:
    def __init__(
        self,
        *,
        base_url: str = OPEN_METEO_FORECAST_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._base_url = base_url
        self._timeout_seconds = timeout_seconds

    def build_url(self, lat: float, lon: float) -> str:
        params = {
            "latitude": f"{lat:.5f}",
            "longitude": f"{lon:.5f}",
            "current": ",".join(CURRENT_VARIABLES),
        }
        return f"{self._base_url}?{urlencode(params)}"

    def get_observation(self, lat: float, lon: float, *, hour: int) -> RawObservation:
        payload = _fetch_json(self.build_url(lat, lon), timeout=self._timeout_seconds)
        current = payload.get("current")
        if not isinstance(current, dict):
            raise WeatherAdapterError("Open-Meteo response did not include current conditions")

        LOGGER.debug("Open-Meteo current conditions for (%.3f, %.3f): %s", lat, lon, current)
        return RawObservation(
            temperature_2m=current.get("temperature_2m"),
            precipitation=current.get("precipitation"),
            windspeed_10m=current.get("windspeed_10m"),
            relativehumidity_2m=current.get("relativehumidity_2m"),
            hour=hour,
        )
