from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from coatcheck import main
from coatcheck.settings import AppSettings, load_settings

TEST_CONFIG = """
ui:
  title: "Coat or no coat?"
weather:
  forecast_url: "https://weather.test/v1/forecast"
  timeout_seconds: 3
geocoding:
  reverse_url: "https://geo.test/v1/reverse"
  timeout_seconds: 2
"""


@pytest.fixture()
def config_path(tmp_path: Path) -> Path:
    path = tmp_path / "coatcheck.yaml"
    path.write_text(TEST_CONFIG, encoding="utf-8")
    return path


@pytest.fixture()
def app_settings(config_path: Path, monkeypatch: pytest.MonkeyPatch) -> AppSettings:
    monkeypatch.setenv("COATCHECK_ENV", "test")
    monkeypatch.setenv("COATCHECK_TIMEZONE", "UTC")
    monkeypatch.setenv("COATCHECK_CONFIG_PATH", str(config_path))
    load_settings.cache_clear()
    settings = load_settings()
    yield settings
    load_settings.cache_clear()


@pytest.fixture()
def client(app_settings: AppSettings, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(main, "load_settings", lambda: app_settings)
    with TestClient(main.app) as test_client:
        yield test_client


class FakeResponse:
    def __init__(self, body: bytes) -> None:
        self._body = body

    def read(self) -> bytes:
        return self._body

    def __enter__(self) -> FakeResponse:
        return self

    def __exit__(self, *exc_info) -> bool:
        return False


class BrokenResponse(FakeResponse):
    def __init__(self, error: Exception) -> None:
        super().__init__(b"")
        self._error = error

    def read(self) -> bytes:
        raise self._error
