from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from .models import Decision, Location, NormalizedWeather


class CoatCheckState(BaseModel):
    """Fields the page shows for one location/weather check.

    Every trigger bumps ``generation``; a completion carrying an older
    generation is dropped so the latest trigger always wins.
    """

    model_config = ConfigDict(validate_assignment=True)

    location: Location | None = None
    weather: NormalizedWeather | None = None
    decision: Decision | None = None
    loading: bool = False
    error: str | None = None
    generation: int = 0

    def begin(self) -> int:
        self.generation += 1
        self.loading = True
        self.error = None
        return self.generation

    def is_current(self, generation: int) -> bool:
        return generation == self.generation

    def succeed(
        self,
        generation: int,
        *,
        location: Location,
        weather: NormalizedWeather,
        decision: Decision,
    ) -> bool:
        if not self.is_current(generation):
            return False
        self.location = location
        self.weather = weather
        self.decision = decision
        self.error = None
        self.loading = False
        return True

    def fail(self, generation: int, message: str) -> bool:
        if not self.is_current(generation):
            return False
        self.location = None
        self.weather = None
        self.decision = None
        self.error = message
        self.loading = False
        return True
