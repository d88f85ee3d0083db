from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable
from zoneinfo import ZoneInfo

from ..domain.models import Event

MONTH_NAMES = tuple(calendar.month_name[1:])
WEEKDAY_LABELS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


@dataclass(slots=True)
class DayCell:
    date: date
    is_today: bool
    events: list[Event] = field(default_factory=list)

    @property
    def day(self) -> int:
        return self.date.day


@dataclass(slots=True)
class MonthGrid:
    year: int
    month: int
    leading_blanks: int
    days: list[DayCell]

    @property
    def label(self) -> str:
        return f"{MONTH_NAMES[self.month - 1]} {self.year}"

    @property
    def trailing_blanks(self) -> int:
        return (-(self.leading_blanks + len(self.days))) % 7


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    """Move ``delta`` months away from (year, month), rolling the year over as needed."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def first_weekday_offset(year: int, month: int) -> int:
    """Weekday of day 1 with Sunday as 0, i.e. the number of blank cells before it."""
    monday_based, _ = calendar.monthrange(year, month)
    return (monday_based + 1) % 7


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def build_month_grid(
    year: int,
    month: int,
    events: Iterable[Event],
    *,
    today: date,
    timezone: ZoneInfo,
) -> MonthGrid:
    events_by_day: dict[date, list[Event]] = {}
    for event in events:
        events_by_day.setdefault(event.local_day(timezone), []).append(event)

    days: list[DayCell] = []
    for day_number in range(1, days_in_month(year, month) + 1):
        cell_date = date(year, month, day_number)
        days.append(
            DayCell(
                date=cell_date,
                is_today=cell_date == today,
                events=events_by_day.get(cell_date, []),
            )
        )

    return MonthGrid(
        year=year,
        month=month,
        leading_blanks=first_weekday_offset(year, month),
        days=days,
    )
