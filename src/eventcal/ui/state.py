from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from zoneinfo import ZoneInfo

from ..adapters.events import EventStoreClient, EventStoreClientError
from ..domain.models import DEFAULT_COLOR, EVENT_COLORS, Event
from .grid import MonthGrid, build_month_grid, shift_month

LOGGER = logging.getLogger(__name__)

LOAD_ERROR_MESSAGE = (
    "Could not load events. The event service may be unreachable; "
    "check that it is running and reload the page."
)
CREATE_ERROR_MESSAGE = "Could not save the event. Please try again."
TITLE_REQUIRED_MESSAGE = "Please enter a title for the event."


@dataclass
class CalendarState:
    """In-memory state behind the calendar page.

    Every change goes through one of the methods below; callers never assign
    the fields directly.
    """

    year: int
    month: int
    palette: tuple[str, ...] = EVENT_COLORS
    default_color: str = DEFAULT_COLOR
    events: list[Event] = field(default_factory=list)
    loading: bool = False
    load_error: str | None = None
    modal_open: bool = False
    selected_date: date | None = None
    pending_title: str = ""
    pending_color: str = DEFAULT_COLOR
    modal_error: str | None = None

    @classmethod
    def for_today(
        cls,
        today: date,
        *,
        palette: tuple[str, ...] = EVENT_COLORS,
        default_color: str = DEFAULT_COLOR,
    ) -> CalendarState:
        return cls(
            year=today.year,
            month=today.month,
            palette=palette,
            default_color=default_color,
            pending_color=default_color,
        )

    def begin_load(self) -> None:
        self.loading = True

    def load(self, client: EventStoreClient) -> None:
        try:
            events = client.list_events()
        except EventStoreClientError as exc:
            LOGGER.warning("Loading events failed: %s", exc)
            self.events = []
            self.load_error = LOAD_ERROR_MESSAGE
        else:
            self.events = events
            self.load_error = None
        finally:
            self.loading = False

    def go_previous(self) -> None:
        self.year, self.month = shift_month(self.year, self.month, -1)

    def go_next(self) -> None:
        self.year, self.month = shift_month(self.year, self.month, 1)

    def go_today(self, today: date) -> None:
        self.year, self.month = today.year, today.month

    def open_modal(self, day: date) -> None:
        self.selected_date = day
        self.pending_title = ""
        self.pending_color = self.default_color
        self.modal_error = None
        self.modal_open = True

    def close_modal(self) -> None:
        self.modal_open = False
        self.selected_date = None
        self.pending_title = ""
        self.pending_color = self.default_color
        self.modal_error = None

    def add_event(self, client: EventStoreClient, *, title: str, color: str | None = None) -> Event | None:
        """Create an event for the selected date; returns it, or None if nothing was added."""
        if not self.modal_open or self.selected_date is None:
            return None

        self.pending_title = title
        normalized_color = (color or "").strip().lower()
        self.pending_color = normalized_color if normalized_color in self.palette else self.default_color

        cleaned_title = title.strip()
        if not cleaned_title:
            self.modal_error = TITLE_REQUIRED_MESSAGE
            return None

        try:
            created = client.create_event(
                title=cleaned_title,
                event_date=self.selected_date,
                color=self.pending_color,
            )
        except EventStoreClientError as exc:
            LOGGER.warning("Creating event on %s failed: %s", self.selected_date, exc)
            self.modal_error = CREATE_ERROR_MESSAGE
            return None

        self.events = [*self.events, created]
        self.close_modal()
        return created

    def grid(self, *, today: date, timezone: ZoneInfo) -> MonthGrid:
        return build_month_grid(self.year, self.month, self.events, today=today, timezone=timezone)
