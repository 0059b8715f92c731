"""Plain, session-friendly snapshots of matches used by the calendar views."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from typing import Any

from . import models


@dataclass(frozen=True)
class MatchRow:
    """A match as rendered by the calendar, detached from the ORM."""

    id: int
    discipline_id: int
    match_date: date
    rival_team: str
    match_time: time | None = None
    match_type: str = models.FRIENDLY_MATCH_TYPE
    status: str = models.Match.Status.SCHEDULED
    discipline_name: str = ""
    discipline_slug: str = ""
    tournament: dict[str, Any] | None = None
    location: dict[str, Any] | None = None
    result: dict[str, Any] | None = None

    @classmethod
    def from_model(cls, match: models.Match) -> "MatchRow":
        tournament = None
        if match.tournament_id is not None:
            tournament = {
                "id": match.tournament.pk,
                "name": match.tournament.name,
                "year": match.tournament.year,
            }
        location = None
        if match.location_id is not None:
            location = {
                "id": match.location.pk,
                "name": match.location.name,
                "city": match.location.city,
                "google_maps_url": match.location.google_maps_url,
            }
        result = None
        try:
            match_result = match.result
        except models.MatchResult.DoesNotExist:
            match_result = None
        if match_result is not None:
            result = {
                "our_score": match_result.our_score,
                "rival_score": match_result.rival_score,
                "scorers": list(match_result.scorers or []),
            }
        return cls(
            id=match.pk,
            discipline_id=match.discipline_id,
            match_date=match.match_date,
            rival_team=match.rival_team,
            match_time=match.match_time,
            match_type=match.match_type or "",
            status=match.status,
            discipline_name=match.discipline.name,
            discipline_slug=match.discipline.slug,
            tournament=tournament,
            location=location,
            result=result,
        )

    @property
    def is_friendly(self) -> bool:
        """Friendly when typed as such or not attached to a tournament."""

        return (self.match_type or "").lower() == "amistoso" or not self.tournament

    @property
    def icon(self) -> str:
        return "handshake" if self.is_friendly else "trophy"

    @property
    def type_label(self) -> str:
        return models.match_type_label(self.match_type)

    @property
    def outcome(self) -> str | None:
        if not self.result:
            return None
        ours = self.result.get("our_score") or 0
        theirs = self.result.get("rival_score") or 0
        if ours > theirs:
            return "win"
        if ours < theirs:
            return "loss"
        return "draw"

    @property
    def time_label(self) -> str:
        if self.match_time is None:
            return ""
        return self.match_time.strftime("%H:%M")

    def to_session(self) -> dict[str, Any]:
        """Serialise into JSON-compatible primitives for the session store."""

        return {
            "id": self.id,
            "discipline_id": self.discipline_id,
            "match_date": self.match_date.isoformat(),
            "rival_team": self.rival_team,
            "match_time": self.match_time.isoformat() if self.match_time else None,
            "match_type": self.match_type,
            "status": self.status,
            "discipline_name": self.discipline_name,
            "discipline_slug": self.discipline_slug,
            "tournament": self.tournament,
            "location": self.location,
            "result": self.result,
        }

    @classmethod
    def from_session(cls, data: dict[str, Any]) -> "MatchRow":
        raw_time = data.get("match_time")
        return cls(
            id=int(data["id"]),
            discipline_id=int(data["discipline_id"]),
            match_date=date.fromisoformat(data["match_date"]),
            rival_team=data.get("rival_team", ""),
            match_time=time.fromisoformat(raw_time) if raw_time else None,
            match_type=data.get("match_type", ""),
            status=data.get("status", models.Match.Status.SCHEDULED),
            discipline_name=data.get("discipline_name", ""),
            discipline_slug=data.get("discipline_slug", ""),
            tournament=data.get("tournament"),
            location=data.get("location"),
            result=data.get("result"),
        )
