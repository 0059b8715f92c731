"""Date windows, client-side style filtering and day bucketing for the calendar.

Everything here is pure: functions take match rows and dates and return new
values without touching the database.
"""
from __future__ import annotations

import calendar
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta

from django.db import models

from .records import MatchRow

__all__ = [
    "ViewMode",
    "DateWindow",
    "ALL_DISCIPLINES",
    "WINDOW_PADDING_MONTHS",
    "add_months",
    "start_of_month",
    "end_of_month",
    "start_of_week",
    "end_of_week",
    "visible_window",
    "fetch_window_for",
    "parse_discipline_filter",
    "filter_matches",
    "matches_on",
    "bucket_by_day",
    "sort_upcoming",
]


ALL_DISCIPLINES = "all"
WINDOW_PADDING_MONTHS = 3


class ViewMode(models.TextChoices):
    MONTH = "month", "Mes"
    WEEK = "week", "Semana"


@dataclass(frozen=True)
class DateWindow:
    """An inclusive range of calendar days."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError("Window start must not be after its end.")

    def contains(self, other: "DateWindow") -> bool:
        return self.start <= other.start and other.end <= self.end

    def includes(self, day: date) -> bool:
        return self.start <= day <= self.end

    def days(self) -> list[date]:
        span = (self.end - self.start).days
        return [self.start + timedelta(days=offset) for offset in range(span + 1)]

    def to_session(self) -> dict[str, str]:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}

    @classmethod
    def from_session(cls, data: dict[str, str] | None) -> "DateWindow | None":
        if not data:
            return None
        try:
            return cls(date.fromisoformat(data["start"]), date.fromisoformat(data["end"]))
        except (KeyError, TypeError, ValueError):
            return None


def add_months(value: date, months: int) -> date:
    """Shift a date by whole months, clamping the day to the target month."""

    month_index = value.year * 12 + (value.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return value.replace(year=year, month=month, day=min(value.day, last_day))


def start_of_month(value: date) -> date:
    return value.replace(day=1)


def end_of_month(value: date) -> date:
    return value.replace(day=calendar.monthrange(value.year, value.month)[1])


def start_of_week(value: date) -> date:
    """Monday of the week containing ``value``."""

    return value - timedelta(days=value.weekday())


def end_of_week(value: date) -> date:
    """Sunday of the week containing ``value``."""

    return start_of_week(value) + timedelta(days=6)


def visible_window(anchor: date, mode: str = ViewMode.MONTH) -> DateWindow:
    """Return the days painted by the grid for the given anchor and mode.

    Month mode covers complete Monday-start weeks, so overflow days from the
    neighbouring months are part of the window.
    """

    if mode == ViewMode.WEEK:
        return DateWindow(start_of_week(anchor), end_of_week(anchor))
    return DateWindow(
        start_of_week(start_of_month(anchor)),
        end_of_week(end_of_month(anchor)),
    )


def fetch_window_for(anchor: date, mode: str = ViewMode.MONTH) -> DateWindow:
    """Return the rolling window read from the database around a view."""

    visible = visible_window(anchor, mode)
    return DateWindow(
        start_of_month(add_months(visible.start, -WINDOW_PADDING_MONTHS)),
        end_of_month(add_months(start_of_month(visible.end), WINDOW_PADDING_MONTHS)),
    )


def parse_discipline_filter(value: object) -> int | None:
    """Return the discipline id selected by a filter value, ``None`` for all.

    Raises ``ValueError`` for values that are neither ``"all"`` nor numeric.
    """

    if value in (None, "", ALL_DISCIPLINES):
        return None
    if isinstance(value, bool):
        raise ValueError("Invalid discipline filter.")
    if isinstance(value, int):
        return value
    return int(str(value).strip())


def filter_matches(
    rows: Iterable[MatchRow],
    discipline: object = ALL_DISCIPLINES,
    mode: str = ViewMode.MONTH,
    anchor: date | None = None,
) -> list[MatchRow]:
    """Derive the matches visible for a discipline filter and view."""

    try:
        discipline_id = parse_discipline_filter(discipline)
    except ValueError:
        return []
    window = visible_window(anchor or date.today(), mode)
    return [
        row
        for row in rows
        if (discipline_id is None or row.discipline_id == discipline_id)
        and window.includes(row.match_date)
    ]


def matches_on(rows: Iterable[MatchRow], day: date) -> list[MatchRow]:
    return [row for row in rows if row.match_date == day]


def bucket_by_day(rows: Iterable[MatchRow]) -> dict[date, list[MatchRow]]:
    """Group rows by date, keeping first-seen date order and row order."""

    grouped: dict[date, list[MatchRow]] = {}
    for row in rows:
        grouped.setdefault(row.match_date, []).append(row)
    return grouped


def sort_upcoming(rows: Iterable[MatchRow]) -> list[MatchRow]:
    """Order rows by date then kick-off time; rows without a time go first."""

    return sorted(
        rows,
        key=lambda row: (row.match_date, row.match_time is not None, row.match_time or ""),
    )
