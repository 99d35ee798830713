from __future__ import annotations

from typing import Protocol

from ...domain.models import RawObservation


class WeatherAdapterError(RuntimeError):
    """Raised when a weather provider request cannot be completed."""


class WeatherAdapter(Protocol):
    def get_observation(self, lat: float, lon: float, *, hour: int) -> RawObservation:
        """Fetch the current conditions for the provided coordinates."""
