from __future__ import annotations

import logging
from datetime import datetime

from .adapters.weather import OpenMeteoWeatherAdapter, WeatherAdapter, WeatherAdapterError
from .domain.comfort import decide, normalize
from .domain.models import GeolocationOutcome
from .domain.state import CoatCheckState
from .location.service import LocationUnavailableError, resolve_location
from .settings import AppSettings

LOGGER = logging.getLogger(__name__)

WEATHER_FETCH_FAILED_MESSAGE = "Failed to fetch weather data"


def build_weather_adapter(settings: AppSettings) -> OpenMeteoWeatherAdapter:
    weather = settings.yaml.weather
    return OpenMeteoWeatherAdapter(
        base_url=weather.forecast_url,
        timeout_seconds=weather.timeout_seconds,
    )


def current_hour(settings: AppSettings) -> int:
    return datetime.now(settings.timezone).hour


def run_coat_check(
    settings: AppSettings,
    outcome: GeolocationOutcome,
    *,
    hour: int | None = None,
    adapter: WeatherAdapter | None = None,
    state: CoatCheckState | None = None,
) -> CoatCheckState:
    state = state if state is not None else CoatCheckState()
    generation = state.begin()
    geocoding = settings.yaml.geocoding

    try:
        location = resolve_location(
            outcome,
            base_url=geocoding.reverse_url,
            language=geocoding.language,
            timeout=geocoding.timeout_seconds,
        )
    except LocationUnavailableError as exc:
        LOGGER.warning("Location unavailable (%s)", exc.reason)
        state.fail(generation, exc.message)
        return state

    observation_hour = hour if hour is not None else current_hour(settings)
    try:
        weather_adapter = adapter if adapter is not None else build_weather_adapter(settings)
        observation = weather_adapter.get_observation(
            location.lat,
            location.lon,
            hour=observation_hour,
        )
    except WeatherAdapterError:
        LOGGER.exception("Weather fetch failed for %s", location.name)
        state.fail(generation, WEATHER_FETCH_FAILED_MESSAGE)
        return state

    weather = normalize(observation)
    decision = decide(weather)
    applied = state.succeed(generation, location=location, weather=weather, decision=decision)
    if applied:
        LOGGER.info(
            "Coat check for %s: feels like %s°C, take coat=%s",
            location.name,
            weather.perceived_temperature,
            decision.take_coat,
        )
    else:
        LOGGER.debug("Discarded stale coat check result for %s", location.name)
    return state
