"""Rolling range cache of match rows for a calendar mount."""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from django.db import DatabaseError

from .records import MatchRow
from .windowing import DateWindow, ViewMode, fetch_window_for, visible_window

logger = logging.getLogger(__name__)

WindowLoader = Callable[[DateWindow], Iterable[MatchRow]]


@dataclass
class RangeCache:
    """Last rolling window read from the database and the rows inside it.

    ``version`` is the global matches version the rows were read at; a
    different current version marks the rows as stale.
    """

    window: DateWindow | None = None
    rows: list[MatchRow] = field(default_factory=list)
    version: int | None = None

    def covers(self, required: DateWindow, version: int | None = None) -> bool:
        if self.window is None or not self.window.contains(required):
            return False
        return version is None or self.version == version

    def refresh(
        self,
        anchor: date,
        mode: str,
        loader: WindowLoader,
        version: int | None = None,
    ) -> bool:
        """Make sure the rows for the view at ``anchor`` are cached.

        Returns ``True`` when the loader was called and the cache replaced.
        A failed read keeps the previous window and rows.
        """

        required = visible_window(anchor, mode or ViewMode.MONTH)
        if self.covers(required, version):
            return False

        target = fetch_window_for(anchor, mode or ViewMode.MONTH)
        try:
            rows = list(loader(target))
        except DatabaseError as exc:
            logger.warning(
                "calendar window %s..%s could not be read: %s", target.start, target.end, exc
            )
            return False

        self.window = target
        self.rows = rows
        self.version = version
        return True

    def invalidate(self) -> None:
        """Forget the cached window so the next refresh reads again."""

        self.window = None

    def to_session(self) -> dict[str, Any]:
        return {
            "window": self.window.to_session() if self.window else None,
            "rows": [row.to_session() for row in self.rows],
            "version": self.version,
        }

    @classmethod
    def from_session(cls, data: dict[str, Any] | None) -> "RangeCache":
        if not isinstance(data, dict):
            return cls()
        rows: list[MatchRow] = []
        for raw in data.get("rows") or []:
            try:
                rows.append(MatchRow.from_session(raw))
            except (KeyError, TypeError, ValueError):
                continue
        return cls(
            window=DateWindow.from_session(data.get("window")),
            rows=rows,
            version=data.get("version"),
        )
