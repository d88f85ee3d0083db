from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict, field_serializer, field_validator

DEFAULT_COLOR = "#4285f4"
EVENT_COLORS: tuple[str, ...] = (
    "#4285f4",
    "#ea4335",
    "#34a853",
    "#fbbc04",
    "#9b51e0",
    "#00bcd4",
)


def format_event_timestamp(value: datetime) -> str:
    """Render a timestamp as UTC with millisecond precision, e.g. 2025-11-05T00:00:00.000Z."""
    utc_value = value.astimezone(timezone.utc)
    millis = utc_value.microsecond // 1000
    return f"{utc_value.year:04d}-{utc_value:%m-%dT%H:%M:%S}.{millis:03d}Z"


def _is_date_only(text: str) -> bool:
    return "T" not in text.upper() and " " not in text


def parse_event_datetime(value: str, local_timezone: ZoneInfo, *, end_of_day: bool = False) -> datetime:
    """Parse an ISO-8601 date or datetime into an aware UTC datetime.

    Bare dates and naive datetimes are interpreted in ``local_timezone``. With
    ``end_of_day`` a bare date resolves to the last microsecond of that day
    instead of midnight.
    """
    text = value.strip()
    if not text:
        raise ValueError("date must not be empty")
    try:
        return _parse_utc(text, local_timezone, end_of_day)
    except OverflowError as exc:
        raise ValueError(f"date is out of range: {text}") from exc


def _parse_utc(text: str, local_timezone: ZoneInfo, end_of_day: bool) -> datetime:
    if _is_date_only(text):
        parsed_date = date.fromisoformat(text)
        local_dt = datetime.combine(parsed_date, time.min, tzinfo=local_timezone)
        if end_of_day:
            local_dt = local_dt + timedelta(days=1) - timedelta(microseconds=1)
        return local_dt.astimezone(timezone.utc)

    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=local_timezone)
    return parsed.astimezone(timezone.utc)


def normalize_color(value: str, palette: tuple[str, ...] | list[str] = EVENT_COLORS) -> str:
    color = value.strip().lower()
    if color not in palette:
        raise ValueError(f"color must be one of {', '.join(palette)}")
    return color


class Event(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    title: str
    date: datetime
    color: str = DEFAULT_COLOR

    @field_validator("title")
    @classmethod
    def validate_title(cls, value: str) -> str:
        text = value.strip()
        if not text:
            raise ValueError("event title must not be empty")
        return text

    @field_validator("date")
    @classmethod
    def validate_date(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        try:
            return value.astimezone(timezone.utc)
        except OverflowError as exc:
            raise ValueError("event date is out of range") from exc

    @field_validator("color", mode="before")
    @classmethod
    def validate_color(cls, value: object) -> object:
        if not value:
            return DEFAULT_COLOR
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_serializer("date")
    def serialize_date(self, value: datetime) -> str:
        return format_event_timestamp(value)

    def local_day(self, local_timezone: ZoneInfo) -> date:
        return self.date.astimezone(local_timezone).date()


class EventCreate(BaseModel):
    """Body of a create request. Required fields are checked by the handler."""

    model_config = ConfigDict(extra="ignore")

    title: str | None = None
    date: str | None = None
    color: str | None = None


class EventUpdate(BaseModel):
    """Body of a partial update. Empty values leave the stored field as is."""

    model_config = ConfigDict(extra="ignore")

    title: str | None = None
    date: str | None = None
    color: str | None = None
