from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal
from urllib.parse import urlparse
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _validate_http_url(value: str, *, field_name: str) -> str:
    text = value.strip()
    parsed = urlparse(text)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"{field_name} must be an absolute http(s) URL")
    return text


class UiSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: str = "Should You Take Your Coat?"
    description: str = "Find out if you need a coat based on your location's weather"

    @field_validator("title")
    @classmethod
    def validate_title(cls, value: str) -> str:
        text = value.strip()
        if not text:
            raise ValueError("ui.title must not be empty")
        return text


class WeatherSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    provider: Literal["open_meteo"] = "open_meteo"
    forecast_url: str = "https://api.open-meteo.com/v1/forecast"
    timeout_seconds: float = Field(default=10.0, gt=0, le=60)

    @field_validator("forecast_url")
    @classmethod
    def validate_forecast_url(cls, value: str) -> str:
        return _validate_http_url(value, field_name="weather.forecast_url")


class GeocodingSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    reverse_url: str = "https://geocoding-api.open-meteo.com/v1/reverse"
    language: str = "en"
    timeout_seconds: float = Field(default=5.0, gt=0, le=60)

    @field_validator("reverse_url")
    @classmethod
    def validate_reverse_url(cls, value: str) -> str:
        return _validate_http_url(value, field_name="geocoding.reverse_url")

    @field_validator("language")
    @classmethod
    def validate_language(cls, value: str) -> str:
        text = value.strip().lower()
        if not text:
            raise ValueError("geocoding.language must not be empty")
        return text


class CoatCheckYamlSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    ui: UiSettings = Field(default_factory=UiSettings)
    weather: WeatherSettings = Field(default_factory=WeatherSettings)
    geocoding: GeocodingSettings = Field(default_factory=GeocodingSettings)


class EnvSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    coatcheck_env: Literal["dev", "test", "prod"] = "dev"
    coatcheck_timezone: str = "Europe/Berlin"
    coatcheck_config_path: Path = Path("config/coatcheck.yaml")
    coatcheck_log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @field_validator("coatcheck_timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except ZoneInfoNotFoundError as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @field_validator("coatcheck_log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper()
        return value


class AppSettings(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    env: EnvSettings
    yaml: CoatCheckYamlSettings
    project_root: Path
    config_path: Path
    timezone: ZoneInfo


def _resolve_project_path(path: Path) -> Path:
    if path.is_absolute():
        return path
    return (PROJECT_ROOT / path).resolve()


def _load_yaml_settings(path: Path) -> CoatCheckYamlSettings:
    if not path.exists():
        raise FileNotFoundError(f"Coat check config file not found: {path}")

    raw_config = yaml.safe_load(path.read_text(encoding="utf-8"))
    if raw_config is None:
        raw_config = {}
    if not isinstance(raw_config, dict):
        raise ValueError("Coat check config must be a YAML mapping/object at the top level")
    return CoatCheckYamlSettings.model_validate(raw_config)


@lru_cache(maxsize=1)
def load_settings() -> AppSettings:
    env = EnvSettings()
    config_path = _resolve_project_path(env.coatcheck_config_path)
    yaml_settings = _load_yaml_settings(config_path)
    return AppSettings(
        env=env,
        yaml=yaml_settings,
        project_root=PROJECT_ROOT,
        config_path=config_path,
        timezone=ZoneInfo(env.coatcheck_timezone),
    )
