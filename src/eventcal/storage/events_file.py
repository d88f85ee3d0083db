from __future__ import annotations

import json
import logging
from datetime import date, datetime, time
from pathlib import Path
from typing import Any, Iterable
from zoneinfo import ZoneInfo

from pydantic import ValidationError

from ..domain.models import Event

LOGGER = logging.getLogger(__name__)

SEED_EVENTS: tuple[tuple[str, date, str], ...] = (
    ("Team Meeting", date(2025, 11, 5), "#4285f4"),
    ("Project Deadline", date(2025, 11, 10), "#ea4335"),
    ("Birthday Party", date(2025, 11, 15), "#34a853"),
    ("Conference", date(2025, 11, 20), "#fbbc04"),
)


class EventStoreWriteError(RuntimeError):
    """Raised when the events file cannot be written."""


def seed_events(local_timezone: ZoneInfo) -> list[Event]:
    return [
        Event(
            id=index,
            title=title,
            date=datetime.combine(event_date, time.min, tzinfo=local_timezone),
            color=color,
        )
        for index, (title, event_date, color) in enumerate(SEED_EVENTS, start=1)
    ]


def ensure_data_file(path: Path, local_timezone: ZoneInfo) -> None:
    """Create the events file with the seed events if it does not exist yet."""
    data_path = Path(path)
    if data_path.exists():
        return
    data_path.parent.mkdir(parents=True, exist_ok=True)
    write_events(data_path, seed_events(local_timezone))
    LOGGER.info("Seeded events file '%s' with %d events", data_path, len(SEED_EVENTS))


def read_records(path: Path) -> list[Any]:
    """Return the stored records untouched, so a rewrite keeps what it did not change."""
    try:
        raw_records = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        LOGGER.exception("Error reading events from '%s'", path)
        return []

    if not isinstance(raw_records, list):
        LOGGER.error("Events file '%s' does not hold a JSON array", path)
        return []
    return raw_records


def parse_events(records: Iterable[Any], *, source: Path | str = "<records>") -> list[Event]:
    events: list[Event] = []
    for item in records:
        try:
            events.append(Event.model_validate(item))
        except ValidationError:
            LOGGER.warning("Skipping malformed event record in '%s': %r", source, item)
    return events


def read_events(path: Path) -> list[Event]:
    return parse_events(read_records(path), source=path)


def write_records(path: Path, records: Iterable[Any]) -> None:
    payload = json.dumps(list(records), indent=2, ensure_ascii=False)
    try:
        Path(path).write_text(payload, encoding="utf-8")
    except OSError as exc:
        LOGGER.exception("Error writing events to '%s'", path)
        raise EventStoreWriteError(f"Unable to write events file: {path}") from exc


def write_events(path: Path, events: Iterable[Event]) -> None:
    write_records(path, [event.model_dump(mode="json") for event in events])


def _record_id(record: Any) -> int | None:
    if not isinstance(record, dict):
        return None
    value = record.get("id")
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def next_event_id(records: Iterable[Any]) -> int:
    ids = (_record_id(record) for record in records)
    return max((value for value in ids if value is not None), default=0) + 1


def find_event_index(records: list[Any], event_id: int) -> int | None:
    for index, record in enumerate(records):
        if _record_id(record) == event_id:
            return index
    return None
