from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest

from eventcal.domain.models import Event
from eventcal.storage import (
    EventStoreWriteError,
    ensure_data_file,
    find_event_index,
    next_event_id,
    read_events,
    read_records,
    seed_events,
    write_events,
    write_records,
)

BERLIN = ZoneInfo("Europe/Berlin")


def _event(event_id: int, title: str = "Test") -> Event:
    return Event(id=event_id, title=title, date=datetime(2025, 11, 5, tzinfo=timezone.utc))


def test_ensure_data_file_seeds_once(tmp_path: Path) -> None:
    data_path = tmp_path / "nested" / "events.json"

    ensure_data_file(data_path, BERLIN)
    raw = json.loads(data_path.read_text(encoding="utf-8"))
    assert [item["title"] for item in raw] == [
        "Team Meeting",
        "Project Deadline",
        "Birthday Party",
        "Conference",
    ]
    assert raw[3] == {
        "id": 4,
        "title": "Conference",
        "date": "2025-11-19T23:00:00.000Z",
        "color": "#fbbc04",
    }

    write_events(data_path, [_event(7, "Kept")])
    ensure_data_file(data_path, BERLIN)
    assert [event.title for event in read_events(data_path)] == ["Kept"]


def test_file_is_indented_json_array(tmp_path: Path) -> None:
    data_path = tmp_path / "events.json"
    write_events(data_path, seed_events(BERLIN))
    text = data_path.read_text(encoding="utf-8")
    assert text.startswith("[\n  {")


def test_read_preserves_insertion_order(tmp_path: Path) -> None:
    data_path = tmp_path / "events.json"
    write_events(data_path, [_event(3), _event(1), _event(2)])
    assert [event.id for event in read_events(data_path)] == [3, 1, 2]


def test_read_missing_file_is_empty(tmp_path: Path) -> None:
    assert read_events(tmp_path / "missing.json") == []


def test_read_non_array_is_empty(tmp_path: Path) -> None:
    data_path = tmp_path / "events.json"
    data_path.write_text('{"id": 1}', encoding="utf-8")
    assert read_events(data_path) == []


def test_read_skips_malformed_records(tmp_path: Path) -> None:
    data_path = tmp_path / "events.json"
    data_path.write_text(
        json.dumps(
            [
                {"id": 1, "title": "Good", "date": "2025-11-05T00:00:00.000Z"},
                {"id": 2, "title": "", "date": "2025-11-05T00:00:00.000Z"},
                {"title": "No id", "date": "2025-11-05T00:00:00.000Z"},
            ]
        ),
        encoding="utf-8",
    )
    events = read_events(data_path)
    assert [event.id for event in events] == [1]
    assert events[0].color == "#4285f4"


def test_write_failure_raises(tmp_path: Path) -> None:
    with pytest.raises(EventStoreWriteError):
        write_events(tmp_path, [_event(1)])


def test_read_records_keeps_malformed_and_extra_fields(tmp_path: Path) -> None:
    data_path = tmp_path / "events.json"
    stored = [
        {"id": 1, "title": "Good", "date": "2025-11-05T00:00:00.000Z", "notes": "bring slides"},
        {"id": 51, "title": ""},
    ]
    write_records(data_path, stored)

    assert read_records(data_path) == stored
    assert [event.id for event in read_events(data_path)] == [1]


def test_next_event_id() -> None:
    assert next_event_id([]) == 1
    assert next_event_id([{"id": 3}, {"id": 7}, {"id": 5}]) == 8
    assert next_event_id([{"id": 2}, {"id": "40"}, {"id": True}, "junk"]) == 3


def test_find_event_index() -> None:
    records = [{"id": 4}, "junk", {"id": 9}]
    assert find_event_index(records, 9) == 2
    assert find_event_index(records, 5) is None
    assert find_event_index([{"id": True}], 1) is None
