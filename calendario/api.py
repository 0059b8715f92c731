"""Read-only JSON API for the match calendar."""
from __future__ import annotations

from datetime import date

from rest_framework import permissions, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response

from . import services
from .models import Match
from .serializers import DisciplineSerializer, MatchSerializer
from .sharing import PARAM_RANGE_END, PARAM_RANGE_START
from .windowing import parse_discipline_filter


def _date_param(request, name: str) -> date | None:
    raw = request.query_params.get(name)
    if not raw:
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError as exc:
        raise ValidationError({name: "Usá el formato AAAA-MM-DD."}) from exc


def _discipline_param(request) -> int | None:
    try:
        return parse_discipline_filter(request.query_params.get("disciplina"))
    except ValueError as exc:
        raise ValidationError({"disciplina": "Disciplina inválida."}) from exc


class MatchViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = MatchSerializer
    permission_classes = [permissions.AllowAny]

    def get_queryset(self):
        queryset = services.match_queryset()
        start = _date_param(self.request, PARAM_RANGE_START)
        end = _date_param(self.request, PARAM_RANGE_END)
        if start is not None:
            queryset = queryset.filter(match_date__gte=start)
        if end is not None:
            queryset = queryset.filter(match_date__lte=end)
        discipline_id = _discipline_param(self.request)
        if discipline_id is not None:
            queryset = queryset.filter(discipline_id=discipline_id)
        return queryset

    @action(detail=False, methods=["get"])
    def upcoming(self, request):
        queryset = services.upcoming_queryset(_discipline_param(request))
        serializer = self.get_serializer(queryset, many=True)
        return Response(serializer.data)


class DisciplineViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = DisciplineSerializer
    permission_classes = [permissions.AllowAny]

    def get_queryset(self):
        return services.active_disciplines()
