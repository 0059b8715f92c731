"""Reads and permission-checked writes for the match calendar."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any

from django.conf import settings
from django.core.cache import cache
from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.utils import timezone

from . import models
from .gate import MatchPermissions
from .records import MatchRow
from .windowing import DateWindow, parse_discipline_filter

logger = logging.getLogger(__name__)

__all__ = [
    "MATCHES_VERSION_CACHE_KEY",
    "MutationResult",
    "current_matches_version",
    "bump_matches_version",
    "upcoming_limit",
    "match_queryset",
    "load_window",
    "upcoming_queryset",
    "upcoming_matches",
    "active_disciplines",
    "reference_lists",
    "create_match",
    "update_match",
    "delete_match",
    "record_result",
    "seed_demo_calendar",
]


MATCHES_VERSION_CACHE_KEY = "calendario:matches-version"

FORBIDDEN_MESSAGE = "No tenés permisos para gestionar partidos de esta disciplina."


@dataclass(frozen=True)
class MutationResult:
    """Outcome of a calendar write, surfaced to the user by the views."""

    class Status:
        OK = "ok"
        FORBIDDEN = "forbidden"
        INVALID = "invalid"
        ERROR = "error"

    status: str
    message: str = ""
    match: models.Match | None = None
    errors: dict[str, list[str]] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == self.Status.OK

    @classmethod
    def success(cls, message: str, match: models.Match | None = None) -> "MutationResult":
        return cls(cls.Status.OK, message, match)

    @classmethod
    def forbidden(cls, message: str = FORBIDDEN_MESSAGE) -> "MutationResult":
        return cls(cls.Status.FORBIDDEN, message)

    @classmethod
    def invalid(cls, errors: dict[str, list[str]], message: str = "Revisá los datos del partido.") -> "MutationResult":
        return cls(cls.Status.INVALID, message, errors=errors)

    @classmethod
    def error(cls, message: str) -> "MutationResult":
        return cls(cls.Status.ERROR, message)


def current_matches_version() -> int:
    """Return the global matches version, starting it at 1 when missing."""

    cache.add(MATCHES_VERSION_CACHE_KEY, 1, timeout=None)
    return cache.get(MATCHES_VERSION_CACHE_KEY, 1)


def bump_matches_version() -> int:
    """Mark every cached calendar window as stale."""

    cache.add(MATCHES_VERSION_CACHE_KEY, 1, timeout=None)
    try:
        return cache.incr(MATCHES_VERSION_CACHE_KEY)
    except ValueError:
        # Evicted between add() and incr().
        cache.set(MATCHES_VERSION_CACHE_KEY, 2, timeout=None)
        return 2


def upcoming_limit() -> int:
    return getattr(settings, "CALENDARIO_UPCOMING_LIMIT", 10)


def match_queryset():
    return models.Match.objects.select_related("discipline", "tournament", "location", "result")


def load_window(window: DateWindow) -> list[MatchRow]:
    """Read every match whose date falls inside ``window`` (inclusive)."""

    queryset = match_queryset().filter(
        match_date__gte=window.start,
        match_date__lte=window.end,
    )
    return [MatchRow.from_model(match) for match in queryset]


def upcoming_queryset(
    discipline_id: int | None = None,
    today: date | None = None,
    limit: int | None = None,
):
    """Matches from ``today`` onwards, oldest first, sliced to ``limit``."""

    if today is None:
        today = timezone.localdate()
    if limit is None:
        limit = upcoming_limit()
    queryset = match_queryset().filter(match_date__gte=today)
    if discipline_id is not None:
        queryset = queryset.filter(discipline_id=discipline_id)
    return queryset[:limit]


def upcoming_matches(
    discipline: object = "all",
    today: date | None = None,
    limit: int | None = None,
) -> list[MatchRow]:
    """Matches from today onwards, oldest first, capped at ``limit``."""

    try:
        queryset = upcoming_queryset(parse_discipline_filter(discipline), today, limit)
    except ValueError:
        return []

    try:
        return [MatchRow.from_model(match) for match in queryset]
    except DatabaseError as exc:
        logger.warning("upcoming matches could not be read: %s", exc)
        return []


def active_disciplines():
    return models.Discipline.objects.filter(is_active=True).order_by("name")


def reference_lists() -> dict[str, Any]:
    """Option lists used by the add/edit match dialogs."""

    return {
        "disciplines": list(active_disciplines()),
        "tournaments": list(models.Tournament.objects.order_by("-year", "name")),
        "locations": list(models.Location.objects.order_by("name")),
    }


def _validation_errors(exc: ValidationError) -> dict[str, list[str]]:
    if hasattr(exc, "error_dict"):
        return {key: [str(message) for message in messages] for key, messages in exc.message_dict.items()}
    return {"__all__": [str(message) for message in exc.messages]}


def _apply_fields(match: models.Match, data: dict[str, Any]) -> None:
    for name in (
        "discipline",
        "rival_team",
        "match_date",
        "match_time",
        "tournament",
        "location",
        "match_type",
    ):
        if name in data:
            setattr(match, name, data[name])
    match.rival_team = (match.rival_team or "").strip()


def create_match(data: dict[str, Any], permissions: MatchPermissions) -> MutationResult:
    """Schedule a new match from cleaned form data."""

    if not permissions.can_add:
        return MutationResult.forbidden()

    match = models.Match(status=models.Match.Status.SCHEDULED)
    _apply_fields(match, data)
    if not match.match_type:
        match.match_type = models.FRIENDLY_MATCH_TYPE
    try:
        match.full_clean()
    except ValidationError as exc:
        return MutationResult.invalid(_validation_errors(exc))

    try:
        match.save()
    except DatabaseError:
        logger.exception("could not create match against %r", match.rival_team)
        return MutationResult.error("No se pudo guardar el partido. Intentá de nuevo.")

    bump_matches_version()
    logger.info("match %s created for discipline %s", match.pk, match.discipline_id)
    return MutationResult.success("Partido agregado.", match)


def update_match(
    match: models.Match,
    data: dict[str, Any],
    permissions: MatchPermissions,
) -> MutationResult:
    """Edit date, time, rival, type, tournament or location of a match."""

    if not permissions.can_manage_match(match):
        return MutationResult.forbidden()

    new_discipline = data.get("discipline")
    if new_discipline is not None and not permissions.can_manage_discipline(new_discipline.pk):
        return MutationResult.forbidden()

    _apply_fields(match, data)
    try:
        match.full_clean()
    except ValidationError as exc:
        return MutationResult.invalid(_validation_errors(exc))

    try:
        match.save()
    except DatabaseError:
        logger.exception("could not update match %s", match.pk)
        return MutationResult.error("No se pudo actualizar el partido. Intentá de nuevo.")

    bump_matches_version()
    logger.info("match %s updated", match.pk)
    return MutationResult.success("Partido actualizado.", match)


def delete_match(match: models.Match, permissions: MatchPermissions) -> MutationResult:
    """Delete a match and its result in a single transaction."""

    if not permissions.can_manage_match(match):
        return MutationResult.forbidden()

    match_id = match.pk
    try:
        with transaction.atomic():
            models.MatchResult.objects.filter(match_id=match_id).delete()
            match.delete()
    except DatabaseError:
        logger.exception("could not delete match %s", match_id)
        return MutationResult.error("No se pudo eliminar el partido. Intentá de nuevo.")

    bump_matches_version()
    logger.info("match %s deleted", match_id)
    return MutationResult.success("Partido eliminado.")


def record_result(
    match: models.Match,
    *,
    our_score: int,
    rival_score: int,
    scorers: list[str] | None,
    permissions: MatchPermissions,
) -> MutationResult:
    """Create or replace the final score of a match and mark it completed."""

    if not permissions.can_manage_match(match):
        return MutationResult.forbidden()

    cleaned_scorers = [name.strip() for name in scorers or [] if name and name.strip()]
    try:
        with transaction.atomic():
            models.MatchResult.objects.update_or_create(
                match=match,
                defaults={
                    "our_score": our_score,
                    "rival_score": rival_score,
                    "scorers": cleaned_scorers,
                },
            )
            match.status = models.Match.Status.COMPLETED
            match.save(update_fields=["status"])
    except DatabaseError:
        logger.exception("could not record result for match %s", match.pk)
        return MutationResult.error("No se pudo guardar el resultado. Intentá de nuevo.")

    bump_matches_version()
    logger.info("result %s-%s recorded for match %s", our_score, rival_score, match.pk)
    return MutationResult.success("Resultado guardado.", match)


DEMO_DISCIPLINES = (
    ("Fútbol", "futbol"),
    ("Básquet", "basquet"),
    ("Vóley", "voley"),
    ("Hockey", "hockey"),
)

DEMO_FIXTURES = (
    # (discipline slug, day offset, kick-off, rival, type, in tournament)
    ("futbol", -6, "16:00", "Club Atlético Pehuajó", models.Match.MatchType.GROUP_STAGE, True),
    ("futbol", 1, "20:00", "Deportivo Bolívar", models.Match.MatchType.FRIENDLY, False),
    ("futbol", 8, "15:30", "Sportivo 9 de Julio", models.Match.MatchType.ROUND_OF_16, True),
    ("basquet", 2, "21:00", "Club Ciudad de Bragado", models.Match.MatchType.GROUP_STAGE, True),
    ("basquet", 2, "19:00", "Atlético Trenque Lauquen", models.Match.MatchType.FRIENDLY, False),
    ("voley", 4, "18:30", "Club Social Henderson", models.Match.MatchType.FRIENDLY, False),
    ("hockey", 12, "10:00", "Club Náutico Junín", models.Match.MatchType.QUARTER_FINAL, True),
)


def seed_demo_calendar(today: date | None = None) -> int:
    """Create demo disciplines, a tournament, a venue and matches around ``today``.

    Safe to run repeatedly; returns the number of matches created.
    """

    if today is None:
        today = timezone.localdate()

    disciplines = {}
    for name, slug in DEMO_DISCIPLINES:
        discipline, _ = models.Discipline.objects.get_or_create(slug=slug, defaults={"name": name})
        disciplines[slug] = discipline

    tournament, _ = models.Tournament.objects.get_or_create(name="Liga Regional", year=today.year)
    location, _ = models.Location.objects.get_or_create(
        name="Estadio Club Carlos Casares",
        defaults={
            "city": "Carlos Casares",
            "google_maps_url": "https://maps.google.com/?q=Carlos+Casares",
        },
    )

    created = 0
    played = []
    for slug, offset, kick_off, rival, match_type, in_tournament in DEMO_FIXTURES:
        match, was_created = models.Match.objects.get_or_create(
            discipline=disciplines[slug],
            match_date=today + timedelta(days=offset),
            rival_team=rival,
            defaults={
                "match_time": datetime.strptime(kick_off, "%H:%M").time(),
                "match_type": match_type,
                "tournament": tournament if in_tournament else None,
                "location": location,
            },
        )
        created += int(was_created)
        if match.match_date < today:
            played.append(match)

    for match in played:
        models.MatchResult.objects.get_or_create(
            match=match,
            defaults={"our_score": 2, "rival_score": 1, "scorers": ["Gómez", "Pereyra"]},
        )
        if match.status != models.Match.Status.COMPLETED:
            match.status = models.Match.Status.COMPLETED
            match.save(update_fields=["status"])

    if created:
        bump_matches_version()
    logger.info("seeded %s demo matches", created)
    return created
