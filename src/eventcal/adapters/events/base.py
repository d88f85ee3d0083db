from __future__ import annotations

from datetime import date
from typing import Protocol

from ...domain.models import Event


class EventStoreClientError(RuntimeError):
    """Raised when the event store service cannot complete a request."""


class EventStoreClient(Protocol):
    def list_events(self) -> list[Event]:
        """Return the full event collection in insertion order."""

    def create_event(self, *, title: str, event_date: date, color: str) -> Event:
        """Create an event and return the stored record with its assigned id."""
