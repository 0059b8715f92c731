"""Forms for the calendar dialogs."""
from __future__ import annotations

from datetime import date, time

from django import forms

from . import models, services


TEXT_INPUT_CLASSES = (
    "mt-1 w-full rounded-lg border border-slate-300 bg-white px-3 py-2 text-sm text-slate-800 "
    "shadow-sm focus:border-emerald-600 focus:ring focus:ring-emerald-200/60 focus:outline-none"
)

DEFAULT_MATCH_TIME = time(20, 0)


class MatchForm(forms.ModelForm):
    """Add/edit match dialog."""

    match_type = forms.ChoiceField(
        label="Tipo de partido",
        choices=models.Match.MatchType.choices,
        initial=models.Match.MatchType.FRIENDLY,
    )

    class Meta:
        model = models.Match
        fields = (
            "discipline",
            "rival_team",
            "match_date",
            "match_time",
            "tournament",
            "location",
            "match_type",
        )
        labels = {
            "discipline": "Disciplina",
            "rival_team": "Equipo rival",
            "match_date": "Fecha",
            "match_time": "Hora",
            "tournament": "Torneo",
            "location": "Ubicación",
        }
        error_messages = {
            "rival_team": {"required": "Ingresá el equipo rival."},
        }
        widgets = {
            "match_date": forms.DateInput(attrs={"type": "date"}, format="%Y-%m-%d"),
            "match_time": forms.TimeInput(attrs={"type": "time"}, format="%H:%M"),
        }

    def __init__(
        self,
        *args,
        day: date | None = None,
        legacy_type: str | None = None,
        **kwargs,
    ) -> None:
        super().__init__(*args, **kwargs)
        if legacy_type is None and self.instance.pk is not None:
            legacy_type = self.instance.match_type
        self.fields["discipline"].queryset = services.active_disciplines()
        self.fields["discipline"].empty_label = "Elegí una disciplina"
        self.fields["tournament"].queryset = models.Tournament.objects.order_by("-year", "name")
        self.fields["tournament"].empty_label = "Sin torneo"
        self.fields["location"].queryset = models.Location.objects.order_by("name")
        self.fields["location"].empty_label = "Sin ubicación"
        self.fields["match_time"].required = True

        if self.instance.pk is None:
            if day is not None:
                self.initial.setdefault("match_date", day)
            self.initial.setdefault("match_time", DEFAULT_MATCH_TIME)
            self.initial.setdefault("match_type", models.Match.MatchType.FRIENDLY)
        if legacy_type and legacy_type not in models.Match.MatchType.values:
            # Keep older free-text types selectable when editing.
            self.fields["match_type"].choices = [
                (legacy_type, models.match_type_label(legacy_type)),
                *models.Match.MatchType.choices,
            ]

        for field in self.fields.values():
            css = field.widget.attrs.get("class", "")
            field.widget.attrs["class"] = f"{css} {TEXT_INPUT_CLASSES}".strip()

    def clean_rival_team(self) -> str:
        value = (self.cleaned_data.get("rival_team") or "").strip()
        if not value:
            raise forms.ValidationError("Ingresá el equipo rival.")
        return value


class MatchResultForm(forms.Form):
    our_score = forms.IntegerField(label="Goles/puntos propios", min_value=0)
    rival_score = forms.IntegerField(label="Goles/puntos rival", min_value=0)
    scorers = forms.CharField(
        label="Anotadores",
        required=False,
        widget=forms.Textarea(attrs={"rows": 3}),
        help_text="Un nombre por línea.",
    )

    def __init__(self, *args, result: models.MatchResult | None = None, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        if result is not None:
            self.initial.setdefault("our_score", result.our_score)
            self.initial.setdefault("rival_score", result.rival_score)
            self.initial.setdefault("scorers", "\n".join(result.scorers or []))
        for field in self.fields.values():
            field.widget.attrs["class"] = TEXT_INPUT_CLASSES

    def clean_scorers(self) -> list[str]:
        raw = self.cleaned_data.get("scorers") or ""
        return [line.strip() for line in raw.splitlines() if line.strip()]

