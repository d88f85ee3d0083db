from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Callable

from fastapi import APIRouter, FastAPI, Form, HTTPException, Query, Request
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from .adapters.events import EventStoreClient, HttpEventStoreClient
from .domain.models import format_event_timestamp
from .settings import AppSettings, load_settings
from .ui.grid import WEEKDAY_LABELS
from .ui.state import CalendarState

LOGGER = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent
WEB_DIR = BASE_DIR / "web"
TEMPLATES_DIR = WEB_DIR / "templates"
STATIC_DIR = WEB_DIR / "static"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def _get_settings(request: Request) -> AppSettings:
    return request.app.state.settings


def _get_state(request: Request) -> CalendarState:
    return request.app.state.calendar


def _get_client(request: Request) -> EventStoreClient:
    return request.app.state.event_client


def _today(request: Request) -> date:
    return request.app.state.today()


def _format_selected_date(value: date | None) -> str | None:
    if value is None:
        return None
    return f"{value:%A}, {value:%B} {value.day}, {value.year}"


def _build_calendar_context(request: Request) -> dict[str, Any]:
    settings = _get_settings(request)
    state = _get_state(request)
    grid = state.grid(today=_today(request), timezone=settings.timezone)
    return {
        "title": settings.yaml.ui.title,
        "grid": grid,
        "weekday_labels": WEEKDAY_LABELS,
        "loading": state.loading,
        "load_error": state.load_error,
        "event_count": len(state.events),
        "modal_open": state.modal_open,
        "modal_date_iso": state.selected_date.isoformat() if state.selected_date else None,
        "modal_date_label": _format_selected_date(state.selected_date),
        "modal_error": state.modal_error,
        "pending_title": state.pending_title,
        "pending_color": state.pending_color,
        "palette": state.palette,
    }


def _calendar_response(request: Request) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "components/calendar_view.html",
        _build_calendar_context(request),
    )


router = APIRouter()


@router.get("/", response_class=HTMLResponse)
async def calendar_page(request: Request) -> HTMLResponse:
    settings = _get_settings(request)
    _get_state(request).begin_load()
    return templates.TemplateResponse(
        request,
        "calendar.html",
        {
            "title": settings.yaml.ui.title,
            "environment": settings.env.eventcal_env,
        },
    )


@router.get("/partials/calendar", response_class=HTMLResponse)
def partial_calendar(request: Request) -> HTMLResponse:
    state = _get_state(request)
    if state.loading:
        state.load(_get_client(request))
    return _calendar_response(request)


@router.post("/calendar/previous", response_class=HTMLResponse)
async def previous_month(request: Request) -> HTMLResponse:
    _get_state(request).go_previous()
    return _calendar_response(request)


@router.post("/calendar/next", response_class=HTMLResponse)
async def next_month(request: Request) -> HTMLResponse:
    _get_state(request).go_next()
    return _calendar_response(request)


@router.post("/calendar/today", response_class=HTMLResponse)
async def current_month(request: Request) -> HTMLResponse:
    _get_state(request).go_today(_today(request))
    return _calendar_response(request)


@router.get("/modals/add-event", response_class=HTMLResponse)
async def open_add_event_modal(
    request: Request,
    raw_date: str = Query(alias="date"),
) -> HTMLResponse:
    try:
        selected = datetime.strptime(raw_date, "%Y-%m-%d").date()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Invalid date") from exc
    _get_state(request).open_modal(selected)
    return _calendar_response(request)


@router.post("/modals/add-event", response_class=HTMLResponse)
def submit_add_event_modal(
    request: Request,
    title: str = Form(default=""),
    color: str = Form(default=""),
) -> HTMLResponse:
    _get_state(request).add_event(_get_client(request), title=title, color=color)
    return _calendar_response(request)


@router.post("/modals/close", response_class=HTMLResponse)
async def close_modal(request: Request) -> HTMLResponse:
    _get_state(request).close_modal()
    return _calendar_response(request)


@router.get("/health", response_class=JSONResponse)
async def health(request: Request) -> JSONResponse:
    settings = _get_settings(request)
    state = _get_state(request)
    return JSONResponse(
        {
            "status": "OK",
            "service": "eventcal-ui",
            "environment": settings.env.eventcal_env,
            "timezone": settings.env.eventcal_timezone,
            "event_service_url": settings.yaml.service.base_url,
            "events_loaded": len(state.events),
            "load_error": state.load_error,
            "started_at_utc": format_event_timestamp(request.app.state.started_at_utc),
        }
    )


def create_app(
    settings: AppSettings | None = None,
    *,
    client: EventStoreClient | None = None,
    today: Callable[[], date] | None = None,
) -> FastAPI:
    """Build the calendar UI; run with ``uvicorn --factory eventcal.main:create_app``."""
    resolved = settings or load_settings()

    def _local_today() -> date:
        return datetime.now(resolved.timezone).date()

    @asynccontextmanager
    async def lifespan(application: FastAPI):
        today_provider = today or _local_today
        application.state.settings = resolved
        application.state.today = today_provider
        application.state.event_client = client or HttpEventStoreClient(
            base_url=resolved.yaml.service.base_url,
            timeout_seconds=resolved.yaml.service.timeout_seconds,
        )
        application.state.calendar = CalendarState.for_today(
            today_provider(),
            palette=tuple(resolved.yaml.events.palette),
            default_color=resolved.yaml.events.default_color,
        )
        application.state.started_at_utc = datetime.now(timezone.utc)
        LOGGER.info("Calendar UI talking to event service at %s", resolved.yaml.service.base_url)
        yield

    application = FastAPI(title=resolved.yaml.ui.title, version="0.1.0", lifespan=lifespan)
    application.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")
    application.include_router(router)
    return application
