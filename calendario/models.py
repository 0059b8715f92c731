"""Database models for the match calendar."""
from __future__ import annotations

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models


MATCH_TYPE_LABELS: dict[str, str] = {
    "grupo": "Fase de Grupos",
    "octavos": "Octavos de Final",
    "cuartos": "Cuartos de Final",
    "semifinal": "Semifinal",
    "final": "Final",
    "playoff": "Playoff",
    "regular": "Temporada Regular",
    "amistoso": "Amistoso",
}

FRIENDLY_MATCH_TYPE = "Amistoso"


def match_type_label(value: str | None) -> str:
    """Return the display label for a stored match type."""

    text = (value or "").strip()
    if not text:
        return ""
    return MATCH_TYPE_LABELS.get(text.lower(), text)


class Discipline(models.Model):
    """A sports section of the club (football, basketball, ...)."""

    name = models.CharField(max_length=80)
    slug = models.SlugField(unique=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ("name",)

    def __str__(self) -> str:
        return self.name


class Tournament(models.Model):
    name = models.CharField(max_length=120)
    year = models.PositiveIntegerField()

    class Meta:
        ordering = ("-year", "name")

    def __str__(self) -> str:
        return f"{self.name} {self.year}"


class Location(models.Model):
    name = models.CharField(max_length=120)
    city = models.CharField(max_length=80, blank=True)
    google_maps_url = models.URLField(blank=True)

    class Meta:
        ordering = ("name",)

    def __str__(self) -> str:
        if self.city:
            return f"{self.name} ({self.city})"
        return self.name


class Match(models.Model):
    """A fixture between one of the club's teams and a rival."""

    class MatchType(models.TextChoices):
        FRIENDLY = "Amistoso", "Amistoso"
        GROUP_STAGE = "Fase de grupos", "Fase de grupos"
        ROUND_OF_16 = "Octavos", "Octavos de final"
        QUARTER_FINAL = "Cuartos", "Cuartos de final"
        SEMI_FINAL = "Semifinal", "Semifinal"
        FINAL = "Final", "Final"

    class Status(models.TextChoices):
        SCHEDULED = "scheduled", "Programado"
        COMPLETED = "completed", "Finalizado"

    discipline = models.ForeignKey(Discipline, on_delete=models.CASCADE, related_name="matches")
    match_date = models.DateField()
    match_time = models.TimeField(blank=True, null=True)
    rival_team = models.CharField(max_length=120)
    # Stored as free text: older rows use the lowercase keys of MATCH_TYPE_LABELS.
    match_type = models.CharField(max_length=40, blank=True, default=FRIENDLY_MATCH_TYPE)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.SCHEDULED)
    tournament = models.ForeignKey(
        Tournament, on_delete=models.SET_NULL, blank=True, null=True, related_name="matches"
    )
    location = models.ForeignKey(
        Location, on_delete=models.SET_NULL, blank=True, null=True, related_name="matches"
    )

    class Meta:
        ordering = ("match_date", models.F("match_time").asc(nulls_first=True), "pk")
        indexes = [
            models.Index(fields=["match_date"], name="calendario_match_date_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.discipline.name} vs {self.rival_team} ({self.match_date:%Y-%m-%d})"

    @property
    def is_friendly(self) -> bool:
        return (self.match_type or "").lower() == "amistoso" or self.tournament_id is None

    def clean(self) -> None:
        super().clean()
        if not (self.rival_team or "").strip():
            raise ValidationError({"rival_team": "Ingresá el equipo rival."})


class MatchResult(models.Model):
    """Final score for a match. Exists only once the match has been played."""

    match = models.OneToOneField(Match, on_delete=models.CASCADE, related_name="result")
    our_score = models.PositiveIntegerField(default=0, validators=[MinValueValidator(0)])
    rival_score = models.PositiveIntegerField(default=0, validators=[MinValueValidator(0)])
    scorers = models.JSONField(default=list, blank=True)

    class Meta:
        ordering = ("match",)

    def __str__(self) -> str:
        return f"{self.our_score}-{self.rival_score} vs {self.match.rival_team}"

    @property
    def outcome(self) -> str:
        if self.our_score > self.rival_score:
            return "win"
        if self.our_score < self.rival_score:
            return "loss"
        return "draw"
