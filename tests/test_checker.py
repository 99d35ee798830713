from __future__ import annotations

from typing import Any

import pytest

from coatcheck import checker
from coatcheck.adapters.weather import OpenMeteoWeatherAdapter, WeatherAdapterError, open_meteo
from coatcheck.checker import WEATHER_FETCH_FAILED_MESSAGE, build_weather_adapter, run_coat_check
from coatcheck.domain.models import CoatReason, GeolocationOutcome, RawObservation
from coatcheck.domain.state import CoatCheckState
from coatcheck.location import service
from coatcheck.settings import AppSettings

from .conftest import BrokenResponse, FakeResponse


class _StaticAdapter:
    def __init__(self, **readings: float) -> None:
        self.readings = readings
        self.calls: list[tuple[float, float, int]] = []

    def get_observation(self, lat: float, lon: float, *, hour: int) -> RawObservation:
        self.calls.append((lat, lon, hour))
        return RawObservation(hour=hour, **self.readings)


class _FailingAdapter:
    def get_observation(self, lat: float, lon: float, *, hour: int) -> RawObservation:
        raise WeatherAdapterError("Failed to fetch weather data from Open-Meteo")


@pytest.fixture(autouse=True)
def geocoder(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
    calls: list[dict[str, Any]] = []

    def fake_fetch(url: str, *, timeout: float) -> dict[str, Any]:
        calls.append({"url": url, "timeout": timeout})
        return {"results": [{"name": "Innsbruck", "admin1": "Tyrol"}]}

    monkeypatch.setattr(service, "_fetch_json", fake_fetch)
    return calls


def _ok(lat: float = 47.26, lon: float = 11.39) -> GeolocationOutcome:
    return GeolocationOutcome(status="ok", lat=lat, lon=lon)


def test_cold_windy_check(app_settings: AppSettings, geocoder) -> None:
    adapter = _StaticAdapter(temperature_2m=10, windspeed_10m=30, relativehumidity_2m=50)

    state = run_coat_check(app_settings, _ok(), hour=14, adapter=adapter)

    assert state.error is None
    assert state.loading is False
    assert state.location.name == "Innsbruck, Tyrol"
    assert state.weather.perceived_temperature == 9
    assert state.decision.take_coat is True
    assert state.decision.reasons == [CoatReason.COLD, CoatReason.WINDY]
    assert adapter.calls == [(47.26, 11.39, 14)]
    assert geocoder[0]["url"].startswith("https://geo.test/v1/reverse?")
    assert geocoder[0]["timeout"] == 2


def test_hour_defaults_to_configured_clock(
    app_settings: AppSettings, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(checker, "current_hour", lambda settings: 23)
    adapter = _StaticAdapter(temperature_2m=19)

    state = run_coat_check(app_settings, _ok(), adapter=adapter)

    assert adapter.calls[0][2] == 23
    assert state.weather.perceived_temperature == 17
    assert state.decision.reasons == [CoatReason.NIGHT_AND_COOL]


@pytest.mark.parametrize(
    "status, message",
    [
        ("permission_denied", "Unable to retrieve your location"),
        ("unsupported", "Geolocation is not supported by your browser"),
    ],
)
def test_location_failures_skip_weather_fetch(
    app_settings: AppSettings, status: str, message: str
) -> None:
    adapter = _StaticAdapter(temperature_2m=10)

    state = run_coat_check(app_settings, GeolocationOutcome(status=status), hour=12, adapter=adapter)

    assert state.error == message
    assert state.location is None
    assert state.loading is False
    assert adapter.calls == []


def test_weather_failure_keeps_no_partial_state(app_settings: AppSettings) -> None:
    state = run_coat_check(app_settings, _ok(), hour=12, adapter=_FailingAdapter())

    assert state.error == WEATHER_FETCH_FAILED_MESSAGE
    assert state.location is None
    assert state.weather is None
    assert state.decision is None


def test_geocoding_outage_still_produces_a_result(
    app_settings: AppSettings, monkeypatch: pytest.MonkeyPatch
) -> None:
    def failing_fetch(url: str, *, timeout: float) -> dict[str, Any]:
        raise service.ReverseGeocodingError("Geocoding request timed out")

    monkeypatch.setattr(service, "_fetch_json", failing_fetch)

    state = run_coat_check(
        app_settings,
        _ok(lat=47.2692, lon=11.4041),
        hour=12,
        adapter=_StaticAdapter(temperature_2m=25),
    )

    assert state.location.name == "47.27°N, 11.40°E"
    assert state.decision.take_coat is False


def test_second_trigger_during_fetch_wins(app_settings: AppSettings) -> None:
    state = CoatCheckState()

    class _ReentrantAdapter:
        def get_observation(self, lat: float, lon: float, *, hour: int) -> RawObservation:
            # The user presses the button again while this fetch is outstanding.
            run_coat_check(
                app_settings,
                _ok(lat=60.17, lon=24.94),
                hour=hour,
                adapter=_StaticAdapter(temperature_2m=-3),
                state=state,
            )
            return RawObservation(temperature_2m=25, hour=hour)

    result = run_coat_check(app_settings, _ok(), hour=12, adapter=_ReentrantAdapter(), state=state)

    assert result is state
    assert state.generation == 2
    assert state.location.lat == 60.17
    assert state.weather.temperature == -3
    assert state.decision.take_coat is True


def test_build_weather_adapter_uses_configured_endpoint(app_settings: AppSettings) -> None:
    adapter = build_weather_adapter(app_settings)

    assert isinstance(adapter, OpenMeteoWeatherAdapter)
    assert adapter.build_url(1.0, 2.0).startswith("https://weather.test/v1/forecast?")


def test_non_finite_upstream_reading_still_produces_a_result(
    app_settings: AppSettings, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(
        open_meteo,
        "urlopen",
        lambda request, timeout: FakeResponse(
            b'{"current": {"temperature_2m": NaN, "precipitation": 0, '
            b'"windspeed_10m": 4, "relativehumidity_2m": 60}}'
        ),
    )

    state = run_coat_check(app_settings, _ok(), hour=12)

    assert state.error is None
    assert state.weather.temperature == 0
    assert state.decision.reasons == [CoatReason.COLD]


def test_dropped_weather_connection_reports_fetch_failure(
    app_settings: AppSettings, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(
        open_meteo,
        "urlopen",
        lambda request, timeout: BrokenResponse(ConnectionResetError("reset by peer")),
    )

    state = run_coat_check(app_settings, _ok(), hour=12)

    assert state.error == WEATHER_FETCH_FAILED_MESSAGE
    assert state.weather is None
