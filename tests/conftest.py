from __future__ import annotations

from datetime import date, datetime, time
from pathlib import Path
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from eventcal.adapters.events import EventStoreClientError
from eventcal.domain.models import Event
from eventcal.service import create_app as create_service_app
from eventcal.settings import AppSettings, EnvSettings, EventcalYamlSettings, build_settings


@pytest.fixture
def settings(tmp_path: Path) -> AppSettings:
    env = EnvSettings(
        eventcal_env="test",
        eventcal_timezone="Europe/Berlin",
        eventcal_data_path=tmp_path / "data" / "events.json",
    )
    return build_settings(env, EventcalYamlSettings())


@pytest.fixture
def service_client(settings: AppSettings) -> Iterator[TestClient]:
    with TestClient(create_service_app(settings)) as client:
        yield client


class FakeEventClient:
    """In-memory stand-in for the HTTP event store client."""

    def __init__(
        self,
        events: list[Event] | None = None,
        *,
        fail_list: bool = False,
        fail_create: bool = False,
    ) -> None:
        self.events = list(events or [])
        self.fail_list = fail_list
        self.fail_create = fail_create
        self.list_calls = 0
        self.created: list[Event] = []

    def list_events(self) -> list[Event]:
        self.list_calls += 1
        if self.fail_list:
            raise EventStoreClientError("Unable to reach event service")
        return list(self.events)

    def create_event(self, *, title: str, event_date: date, color: str) -> Event:
        if self.fail_create:
            raise EventStoreClientError("POST /api/events failed: Failed to create event")
        event = Event(
            id=1000 + len(self.created),
            title=title,
            date=datetime.combine(event_date, time.min),
            color=color,
        )
        self.created.append(event)
        self.events.append(event)
        return event


@pytest.fixture
def make_fake_client():
    def _create(
        events: list[Event] | None = None,
        *,
        fail_list: bool = False,
        fail_create: bool = False,
    ) -> FakeEventClient:
        return FakeEventClient(events, fail_list=fail_list, fail_create=fail_create)

    return _create
