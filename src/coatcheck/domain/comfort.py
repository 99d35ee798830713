"""Perceived temperature and the take-a-coat heuristic.

The feels-like value uses a simple additive model: a linear wind penalty above
``HIGH_WIND_THRESHOLD``, a linear humidity term above ``HIGH_HUMIDITY_THRESHOLD``
whose sign depends on whether it is warm, and a flat penalty outside daytime
hours. Values are rounded once, after all adjustments.
"""

from __future__ import annotations

import math

from .models import CoatReason, Decision, NormalizedWeather, RawObservation

HIGH_WIND_THRESHOLD = 20  # km/h
HIGH_HUMIDITY_THRESHOLD = 70  # percent
MORNING_HOUR = 6
EVENING_HOUR = 18

WARM_TEMPERATURE = 20
WIND_CHILL_PER_KMH = 0.1
HUMID_HEAT_PER_PERCENT = 0.1
HUMID_COLD_PER_PERCENT = 0.05
NIGHT_PENALTY = 2

COLD_BELOW = 15
WINDY_COOL_BELOW = 20
NIGHT_COOL_BELOW = 18

REASON_LABELS = {
    CoatReason.COLD: "It feels cold",
    CoatReason.RAINY: "It might rain",
    CoatReason.WINDY: "It is windy and cool",
    CoatReason.NIGHT_AND_COOL: "It is dark out and cool",
}


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def is_night(hour: int) -> bool:
    return hour < MORNING_HOUR or hour > EVENING_HOUR


def perceived_temperature(
    temperature: float,
    wind_speed: float,
    humidity: float,
    hour: int,
) -> float:
    """Return the unrounded feels-like temperature in Celsius."""
    perceived = temperature

    if wind_speed > HIGH_WIND_THRESHOLD:
        perceived -= (wind_speed - HIGH_WIND_THRESHOLD) * WIND_CHILL_PER_KMH

    if humidity > HIGH_HUMIDITY_THRESHOLD:
        excess = humidity - HIGH_HUMIDITY_THRESHOLD
        if temperature > WARM_TEMPERATURE:
            perceived += excess * HUMID_HEAT_PER_PERCENT
        else:
            perceived -= excess * HUMID_COLD_PER_PERCENT

    if is_night(hour):
        perceived -= NIGHT_PENALTY

    return perceived


def normalize(raw: RawObservation) -> NormalizedWeather:
    perceived = perceived_temperature(
        raw.temperature_2m,
        raw.windspeed_10m,
        raw.relativehumidity_2m,
        raw.hour,
    )
    return NormalizedWeather(
        temperature=round_half_up(raw.temperature_2m),
        is_rainy=raw.precipitation > 0,
        wind_speed=round_half_up(raw.windspeed_10m),
        humidity=round_half_up(raw.relativehumidity_2m),
        hour=raw.hour,
        perceived_temperature=round_half_up(perceived),
    )


def decide(weather: NormalizedWeather) -> Decision:
    feels = weather.perceived_temperature
    conditions = (
        (CoatReason.COLD, feels < COLD_BELOW),
        (CoatReason.RAINY, weather.is_rainy),
        (CoatReason.WINDY, weather.wind_speed > HIGH_WIND_THRESHOLD and feels < WINDY_COOL_BELOW),
        (CoatReason.NIGHT_AND_COOL, is_night(weather.hour) and feels < NIGHT_COOL_BELOW),
    )
    reasons = [reason for reason, fired in conditions if fired]
    return Decision(take_coat=bool(reasons), reasons=reasons)


def headline(decision: Decision) -> str:
    if decision.take_coat:
        return "Yes, take your coat!"
    return "No, you don't need a coat!"


def rain_label(weather: NormalizedWeather) -> str:
    return "It might rain" if weather.is_rainy else "No rain expected"


def reason_labels(decision: Decision) -> list[str]:
    return [REASON_LABELS[reason] for reason in decision.reasons]
