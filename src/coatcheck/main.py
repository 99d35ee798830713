from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from .checker import run_coat_check
from .domain.comfort import headline, rain_label, reason_labels
from .domain.models import CheckRequest
from .domain.state import CoatCheckState
from .logging_config import setup_logging
from .settings import AppSettings, load_settings

BASE_DIR = Path(__file__).resolve().parent
WEB_DIR = BASE_DIR / "web"
TEMPLATES_DIR = WEB_DIR / "templates"
STATIC_DIR = WEB_DIR / "static"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def _get_settings(request: Request) -> AppSettings:
    return request.app.state.settings


def _build_result_context(state: CoatCheckState) -> dict[str, Any]:
    context: dict[str, Any] = {
        "result_available": False,
        "result_error": state.error,
        "result_headline": None,
        "result_take_coat": False,
        "result_reasons": [],
        "result_location_name": None,
        "result_temperature": None,
        "result_perceived_temperature": None,
        "result_wind_speed": None,
        "result_humidity": None,
        "result_rain_label": None,
    }

    if state.weather is None or state.decision is None:
        return context

    context.update(
        {
            "result_available": True,
            "result_headline": headline(state.decision),
            "result_take_coat": state.decision.take_coat,
            "result_reasons": reason_labels(state.decision),
            "result_location_name": state.location.name if state.location else None,
            "result_temperature": state.weather.temperature,
            "result_perceived_temperature": state.weather.perceived_temperature,
            "result_wind_speed": state.weather.wind_speed,
            "result_humidity": state.weather.humidity,
            "result_rain_label": rain_label(state.weather),
        }
    )
    return context


def _state_payload(state: CoatCheckState) -> dict[str, Any]:
    payload = state.model_dump(mode="json", exclude={"loading", "generation"})
    payload["headline"] = headline(state.decision) if state.decision else None
    payload["reason_labels"] = reason_labels(state.decision) if state.decision else []
    return payload


@asynccontextmanager
async def lifespan(application: FastAPI):
    settings = load_settings()
    setup_logging(settings.env.coatcheck_log_level)

    application.state.settings = settings
    application.state.started_at_utc = datetime.now(timezone.utc)
    yield


app = FastAPI(title="Coat Check", version="0.1.0", lifespan=lifespan)
app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")


@app.get("/", response_class=HTMLResponse)
async def coat_check_page(request: Request) -> HTMLResponse:
    settings = _get_settings(request)
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "title": settings.yaml.ui.title,
            "description": settings.yaml.ui.description,
            "environment": settings.env.coatcheck_env,
        },
    )


# Sync handlers: FastAPI runs them in its threadpool while the HTTP calls block.
@app.post("/api/check", response_class=JSONResponse)
def api_check(request: Request, body: CheckRequest) -> JSONResponse:
    settings = _get_settings(request)
    state = run_coat_check(settings, body, hour=body.hour)
    return JSONResponse(_state_payload(state))


@app.post("/partials/check", response_class=HTMLResponse)
def partial_check(request: Request, body: CheckRequest) -> HTMLResponse:
    settings = _get_settings(request)
    state = run_coat_check(settings, body, hour=body.hour)
    return templates.TemplateResponse(
        request,
        "components/coat_result.html",
        _build_result_context(state),
    )


@app.get("/health", response_class=JSONResponse)
async def health(request: Request) -> JSONResponse:
    settings = _get_settings(request)
    return JSONResponse(
        {
            "status": "ok",
            "service": "coatcheck",
            "environment": settings.env.coatcheck_env,
            "timezone": settings.env.coatcheck_timezone,
            "started_at_utc": request.app.state.started_at_utc.isoformat(),
            "timestamp_utc": datetime.now(timezone.utc).isoformat(),
        }
    )
