"""Per-mount calendar state kept in the user's session.

A full page load of the calendar creates a *mount*; the HTMX requests that
follow carry its id so navigation, filters and the range cache survive
between fragments the way they would inside a single page.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any
from uuid import uuid4

from django.conf import settings
from django.http import HttpRequest

from .cache import RangeCache, WindowLoader
from .records import MatchRow
from .windowing import (
    ALL_DISCIPLINES,
    ViewMode,
    add_months,
    filter_matches,
    matches_on,
    visible_window,
)

STATE_SESSION_PREFIX = "calendario.state."
MOUNTS_SESSION_KEY = "calendario.mounts"
DEFAULT_MOUNT_LIMIT = 5

NAVIGATION_ACTIONS = ("prev", "next", "today")


@dataclass
class CalendarState:
    mount_id: str
    anchor: date
    view_mode: str = ViewMode.MONTH
    discipline: str = ALL_DISCIPLINES
    deep_link_date: date | None = None
    deep_link_handled: bool = False
    cache: RangeCache = field(default_factory=RangeCache)

    @classmethod
    def mount(
        cls,
        *,
        today: date,
        deep_link_date: date | None = None,
        anchor: date | None = None,
        view_mode: str | None = None,
        discipline: str | None = None,
    ) -> "CalendarState":
        return cls(
            mount_id=uuid4().hex,
            anchor=anchor or deep_link_date or today,
            view_mode=_clean_view_mode(view_mode),
            discipline=_clean_discipline(discipline),
            deep_link_date=deep_link_date,
        )

    def navigate(self, action: str, today: date) -> None:
        """Move the anchor one month/week back or forward, or to today."""

        if action == "today":
            self.anchor = today
            return
        step = -1 if action == "prev" else 1 if action == "next" else 0
        if not step:
            return
        if self.view_mode == ViewMode.WEEK:
            self.anchor = self.anchor + timedelta(weeks=step)
        else:
            self.anchor = add_months(self.anchor, step)

    def set_view_mode(self, value: str | None) -> None:
        if value:
            self.view_mode = _clean_view_mode(value)

    def set_discipline(self, value: str | None) -> None:
        if value is not None:
            self.discipline = _clean_discipline(value)

    def refresh(self, loader: WindowLoader, version: int | None = None) -> bool:
        return self.cache.refresh(self.anchor, self.view_mode, loader, version)

    @property
    def window(self):
        return visible_window(self.anchor, self.view_mode)

    def visible_rows(self) -> list[MatchRow]:
        return filter_matches(self.cache.rows, self.discipline, self.view_mode, self.anchor)

    def rows_for_day(self, day: date) -> list[MatchRow]:
        return matches_on(self.visible_rows(), day)

    def consume_deep_link(self) -> list[MatchRow] | None:
        """Return the matches to open for the deep-linked day, once per mount.

        Deferred while the cache is still empty; a day without matches uses up
        the one shot without opening anything.
        """

        if self.deep_link_date is None or self.deep_link_handled:
            return None
        if not self.cache.rows:
            return None
        self.deep_link_handled = True
        rows = matches_on(self.cache.rows, self.deep_link_date)
        return rows or None

    def to_session(self) -> dict[str, Any]:
        return {
            "anchor": self.anchor.isoformat(),
            "view_mode": str(self.view_mode),
            "discipline": self.discipline,
            "deep_link_date": self.deep_link_date.isoformat() if self.deep_link_date else None,
            "deep_link_handled": self.deep_link_handled,
            "cache": self.cache.to_session(),
        }

    @classmethod
    def from_session(cls, mount_id: str, data: dict[str, Any]) -> "CalendarState":
        raw_deep_link = data.get("deep_link_date")
        return cls(
            mount_id=mount_id,
            anchor=date.fromisoformat(data["anchor"]),
            view_mode=_clean_view_mode(data.get("view_mode")),
            discipline=_clean_discipline(data.get("discipline")),
            deep_link_date=date.fromisoformat(raw_deep_link) if raw_deep_link else None,
            deep_link_handled=bool(data.get("deep_link_handled")),
            cache=RangeCache.from_session(data.get("cache")),
        )


def _clean_view_mode(value: str | None) -> str:
    if value in ViewMode.values:
        return value
    return ViewMode.MONTH


def _clean_discipline(value: str | None) -> str:
    text = str(value).strip() if value is not None else ""
    if text.isdigit():
        return text
    return ALL_DISCIPLINES


def _mount_limit() -> int:
    return max(1, getattr(settings, "CALENDARIO_MOUNT_LIMIT", DEFAULT_MOUNT_LIMIT))


def load_state(request: HttpRequest, mount_id: str | None) -> CalendarState | None:
    """Fetch a mount's state from the session, ``None`` when unknown."""

    if not mount_id:
        return None
    data = request.session.get(f"{STATE_SESSION_PREFIX}{mount_id}")
    if not isinstance(data, dict):
        return None
    try:
        return CalendarState.from_session(mount_id, data)
    except (KeyError, TypeError, ValueError):
        return None


def save_state(request: HttpRequest, state: CalendarState) -> None:
    """Persist a mount, dropping the oldest mounts beyond the limit."""

    mounts = [
        mount for mount in request.session.get(MOUNTS_SESSION_KEY, []) if mount != state.mount_id
    ]
    mounts.insert(0, state.mount_id)
    limit = _mount_limit()
    for stale in mounts[limit:]:
        request.session.pop(f"{STATE_SESSION_PREFIX}{stale}", None)
    request.session[MOUNTS_SESSION_KEY] = mounts[:limit]
    request.session[f"{STATE_SESSION_PREFIX}{state.mount_id}"] = state.to_session()
    request.session.modified = True
