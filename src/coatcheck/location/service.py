from __future__ import annotations

import json
import logging
from http.client import HTTPException
from typing import Any
from urllib.error import HTTPError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from ..domain.models import GeolocationOutcome, Location

LOGGER = logging.getLogger(__name__)

OPEN_METEO_REVERSE_GEOCODING_URL = "https://geocoding-api.open-meteo.com/v1/reverse"
DEFAULT_TIMEOUT_SECONDS = 5
USER_AGENT = "coatcheck/0.1"

LOCATION_UNAVAILABLE_MESSAGE = "Unable to retrieve your location"
GEOLOCATION_UNSUPPORTED_MESSAGE = "Geolocation is not supported by your browser"


class LocationUnavailableError(RuntimeError):
    """Raised when the browser could not provide a position."""

    def __init__(self, message: str, *, reason: str) -> None:
        super().__init__(message)
        self.message = message
        self.reason = reason


class ReverseGeocodingError(RuntimeError):
    """Raised when a reverse geocoding request cannot be completed."""


def _fetch_json(url: str, *, timeout: float) -> dict[str, Any]:
    request = Request(url, headers={"User-Agent": USER_AGENT, "Accept": "application/json"})
    try:
        with urlopen(request, timeout=timeout) as response:
            payload = json.loads(response.read().decode("utf-8"))
    except HTTPError as exc:
        raise ReverseGeocodingError(f"Geocoding API failed with status: {exc.code}") from exc
    except TimeoutError as exc:
        raise ReverseGeocodingError("Geocoding request timed out") from exc
    except (OSError, HTTPException) as exc:
        raise ReverseGeocodingError("Network error when fetching location data") from exc
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ReverseGeocodingError("Geocoding response was not valid JSON") from exc

    if not isinstance(payload, dict):
        raise ReverseGeocodingError("Unexpected geocoding response shape")
    return payload


def format_coordinates(lat: float, lon: float) -> str:
    lat_dir = "N" if lat >= 0 else "S"
    lon_dir = "E" if lon >= 0 else "W"
    return f"{abs(lat):.2f}°{lat_dir}, {abs(lon):.2f}°{lon_dir}"


def _text(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    text = value.strip()
    return text or None


def _label_from_result(result: Any) -> str | None:
    if not isinstance(result, dict):
        return None

    parts = [
        text
        for text in (_text(result.get(key)) for key in ("name", "admin3", "admin1"))
        if text is not None
    ]
    if not parts:
        country = _text(result.get("country"))
        if country is not None:
            parts.append(country)

    if not parts:
        return None
    return ", ".join(parts[:2])


def get_location_name(
    lat: float,
    lon: float,
    *,
    base_url: str = OPEN_METEO_REVERSE_GEOCODING_URL,
    language: str = "en",
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> str:
    params = urlencode({"latitude": lat, "longitude": lon, "language": language})
    try:
        payload = _fetch_json(f"{base_url}?{params}", timeout=timeout)
    except ReverseGeocodingError as exc:
        LOGGER.warning("Reverse geocoding failed for (%.3f, %.3f): %s", lat, lon, exc)
        return format_coordinates(lat, lon)

    results = payload.get("results")
    if isinstance(results, list) and results:
        label = _label_from_result(results[0])
        if label is not None:
            return label

    return format_coordinates(lat, lon)


def resolve_location(
    outcome: GeolocationOutcome,
    *,
    base_url: str = OPEN_METEO_REVERSE_GEOCODING_URL,
    language: str = "en",
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> Location:
    if outcome.status == "unsupported":
        raise LocationUnavailableError(GEOLOCATION_UNSUPPORTED_MESSAGE, reason=outcome.status)
    if outcome.status != "ok" or outcome.lat is None or outcome.lon is None:
        raise LocationUnavailableError(LOCATION_UNAVAILABLE_MESSAGE, reason=outcome.status)

    name = get_location_name(
        outcome.lat,
        outcome.lon,
        base_url=base_url,
        language=language,
        timeout=timeout,
    )
    return Location(lat=outcome.lat, lon=outcome.lon, name=name)
