from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any

from fastapi import APIRouter, FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .domain.models import (
    Event,
    EventCreate,
    EventUpdate,
    format_event_timestamp,
    normalize_color,
    parse_event_datetime,
)
from .settings import AppSettings, load_settings
from .storage import (
    EventStoreWriteError,
    ensure_data_file,
    find_event_index,
    next_event_id,
    parse_events,
    read_records,
    write_records,
)

LOGGER = logging.getLogger(__name__)

EVENT_NOT_FOUND = "Event not found"

router = APIRouter(prefix="/api")


def _get_settings(request: Request) -> AppSettings:
    return request.app.state.settings


def _dump(events: list[Event]) -> list[dict[str, Any]]:
    return [event.model_dump(mode="json") for event in events]


def _clean_text(value: str | None) -> str | None:
    if value is None:
        return None
    text = value.strip()
    return text or None


def _resolve_color(value: str | None, settings: AppSettings) -> str | None:
    if not value:
        return None
    try:
        return normalize_color(value, settings.yaml.events.palette)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _resolve_date(value: str, settings: AppSettings) -> datetime:
    try:
        return parse_event_datetime(value, settings.timezone)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid date: {value}") from exc


def _index_or_404(records: list[Any], raw_id: str) -> int:
    # Non-numeric ids can never match a stored event.
    try:
        event_id = int(raw_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=EVENT_NOT_FOUND) from exc

    index = find_event_index(records, event_id)
    if index is None:
        raise HTTPException(status_code=404, detail=EVENT_NOT_FOUND)
    return index


@router.get("/events", response_class=JSONResponse)
async def list_events(request: Request) -> JSONResponse:
    settings = _get_settings(request)
    records = read_records(settings.data_path)
    return JSONResponse(_dump(parse_events(records, source=settings.data_path)))


@router.get("/events/range", response_class=JSONResponse)
async def list_events_in_range(
    request: Request,
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
) -> JSONResponse:
    settings = _get_settings(request)
    events = parse_events(read_records(settings.data_path), source=settings.data_path)
    if not start_date or not end_date:
        return JSONResponse(_dump(events))

    try:
        start_dt = parse_event_datetime(start_date, settings.timezone)
        end_dt = parse_event_datetime(end_date, settings.timezone, end_of_day=True)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Invalid date range") from exc

    filtered = [event for event in events if start_dt <= event.date <= end_dt]
    return JSONResponse(_dump(filtered))


@router.get("/events/{event_id}", response_class=JSONResponse)
async def get_event(request: Request, event_id: str) -> JSONResponse:
    settings = _get_settings(request)
    records = read_records(settings.data_path)
    index = _index_or_404(records, event_id)
    # A stored record that no longer validates is hidden from listings too.
    found = parse_events([records[index]], source=settings.data_path)
    if not found:
        raise HTTPException(status_code=404, detail=EVENT_NOT_FOUND)
    return JSONResponse(found[0].model_dump(mode="json"))


@router.post("/events", response_class=JSONResponse, status_code=201)
async def create_event(request: Request, payload: EventCreate) -> JSONResponse:
    settings = _get_settings(request)
    title = _clean_text(payload.title)
    raw_date = _clean_text(payload.date)
    if title is None or raw_date is None:
        raise HTTPException(status_code=400, detail="Title and date are required")

    event_date = _resolve_date(raw_date, settings)
    color = _resolve_color(payload.color, settings) or settings.yaml.events.default_color

    records = read_records(settings.data_path)
    event = Event(id=next_event_id(records), title=title, date=event_date, color=color)
    records.append(event.model_dump(mode="json"))
    try:
        write_records(settings.data_path, records)
    except EventStoreWriteError as exc:
        raise HTTPException(status_code=500, detail="Failed to create event") from exc

    LOGGER.info("Created event %d '%s'", event.id, event.title)
    return JSONResponse(event.model_dump(mode="json"), status_code=201)


@router.put("/events/{event_id}", response_class=JSONResponse)
async def update_event(request: Request, event_id: str, payload: EventUpdate) -> JSONResponse:
    settings = _get_settings(request)
    records = read_records(settings.data_path)
    index = _index_or_404(records, event_id)

    changes: dict[str, Any] = {}
    title = _clean_text(payload.title)
    if title is not None:
        changes["title"] = title
    raw_date = _clean_text(payload.date)
    if raw_date is not None:
        changes["date"] = format_event_timestamp(_resolve_date(raw_date, settings))
    color = _resolve_color(payload.color, settings)
    if color is not None:
        changes["color"] = color

    # Keys the model does not know about stay on the stored record.
    merged = {**records[index], **changes}
    try:
        updated = Event.model_validate(merged)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail="Invalid event data") from exc

    records[index] = {**merged, **updated.model_dump(mode="json")}
    try:
        write_records(settings.data_path, records)
    except EventStoreWriteError as exc:
        raise HTTPException(status_code=500, detail="Failed to update event") from exc

    LOGGER.info("Updated event %d (%s)", updated.id, ", ".join(sorted(changes)) or "no changes")
    return JSONResponse(updated.model_dump(mode="json"))


@router.delete("/events/{event_id}", response_class=JSONResponse)
async def delete_event(request: Request, event_id: str) -> JSONResponse:
    settings = _get_settings(request)
    records = read_records(settings.data_path)
    index = _index_or_404(records, event_id)
    removed = records.pop(index)
    try:
        write_records(settings.data_path, records)
    except EventStoreWriteError as exc:
        raise HTTPException(status_code=500, detail="Failed to delete event") from exc

    LOGGER.info("Deleted event %d '%s'", removed["id"], removed.get("title"))
    return JSONResponse({"message": "Event deleted successfully"})


@router.get("/health", response_class=JSONResponse)
async def health() -> JSONResponse:
    return JSONResponse({"status": "OK", "message": "Server is running"})


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse({"error": exc.detail}, status_code=exc.status_code)


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    LOGGER.warning("Rejected malformed request to %s: %s", request.url.path, exc.errors())
    return JSONResponse({"error": "Invalid request body"}, status_code=400)


async def _unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    LOGGER.exception("Unhandled error while serving %s", request.url.path)
    return JSONResponse({"error": "Internal server error"}, status_code=500)


def create_app(settings: AppSettings | None = None) -> FastAPI:
    """Build the event store service; run with ``uvicorn --factory eventcal.service:create_app``."""
    resolved = settings or load_settings()

    @asynccontextmanager
    async def lifespan(application: FastAPI):
        ensure_data_file(resolved.data_path, resolved.timezone)
        application.state.settings = resolved
        LOGGER.info("Event store service using data file '%s'", resolved.data_path)
        yield

    application = FastAPI(title="Event Store Service", version="0.1.0", lifespan=lifespan)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=resolved.yaml.service.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.add_exception_handler(StarletteHTTPException, _http_error_handler)
    application.add_exception_handler(RequestValidationError, _validation_error_handler)
    application.add_exception_handler(Exception, _unexpected_error_handler)
    application.include_router(router)
    return application
