"""Shareable calendar links.

A link carries exactly one of: a match (``partido``), a day (``fecha``) or a
date range (``desde``/``hasta``).
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date
from urllib.parse import urlencode

PARAM_MATCH = "partido"
PARAM_DATE = "fecha"
PARAM_DATE_ALIAS = "date"
PARAM_RANGE_START = "desde"
PARAM_RANGE_END = "hasta"


@dataclass(frozen=True)
class ShareTarget:
    match_id: int | None = None
    day: date | None = None
    range_start: date | None = None
    range_end: date | None = None

    @property
    def is_empty(self) -> bool:
        return self.match_id is None and self.day is None and self.range_start is None


def _as_iso(value: date | str) -> str:
    if isinstance(value, date):
        return value.isoformat()
    return date.fromisoformat(str(value)).isoformat()


def encode_share_params(
    *,
    match_id: int | None = None,
    day: date | str | None = None,
    range_start: date | str | None = None,
    range_end: date | str | None = None,
) -> dict[str, str]:
    """Return the query parameters for a share link.

    Raises ``ValueError`` unless exactly one parameter group is provided.
    """

    if (range_start is None) != (range_end is None):
        raise ValueError("A shared range needs both a start and an end date.")

    groups = [match_id is not None, day is not None, range_start is not None]
    if sum(groups) != 1:
        raise ValueError("Share a single match, a single date or a date range.")

    if match_id is not None:
        return {PARAM_MATCH: str(int(match_id))}
    if day is not None:
        return {PARAM_DATE: _as_iso(day)}

    start, end = _as_iso(range_start), _as_iso(range_end)
    if start > end:
        raise ValueError("The range start must not be after its end.")
    return {PARAM_RANGE_START: start, PARAM_RANGE_END: end}


def encode_share_url(base_url: str, **target) -> str:
    """Append the single share parameter group to the calendar URL."""

    params = encode_share_params(**target)
    separator = "&" if "?" in base_url else "?"
    return f"{base_url}{separator}{urlencode(params)}"


def _parse_date(value: object) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        return None


def decode_share_params(params: Mapping[str, object]) -> ShareTarget:
    """Read a share target back from query parameters, ignoring bad values."""

    raw_match = params.get(PARAM_MATCH)
    if raw_match:
        try:
            return ShareTarget(match_id=int(str(raw_match)))
        except ValueError:
            pass

    day = _parse_date(params.get(PARAM_DATE)) or _parse_date(params.get(PARAM_DATE_ALIAS))
    if day is not None:
        return ShareTarget(day=day)

    start = _parse_date(params.get(PARAM_RANGE_START))
    end = _parse_date(params.get(PARAM_RANGE_END))
    if start is not None and end is not None and start <= end:
        return ShareTarget(range_start=start, range_end=end)
    return ShareTarget()


def range_for_dates(dates: Iterable[date | str]) -> tuple[date, date]:
    """Return the earliest and latest of the selected dates."""

    parsed = sorted(date.fromisoformat(_as_iso(value)) for value in dates)
    if not parsed:
        raise ValueError("Select at least one date to share.")
    return parsed[0], parsed[-1]
