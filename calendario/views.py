"""HTMX-friendly views for the match calendar."""
from __future__ import annotations

import json
from datetime import date

from django.contrib import messages
from django.http import (
    Http404,
    HttpRequest,
    HttpResponse,
    HttpResponseForbidden,
    JsonResponse,
)
from django.shortcuts import get_object_or_404, redirect, render
from django.urls import reverse
from django.utils import timezone
from django.views.decorators.http import require_GET, require_http_methods

from socios.decorators import calendar_manager_required
from socios.permissions import calendar_permissions_for

from . import forms, models, services, sharing
from .gate import MatchPermissions
from .records import MatchRow
from .state import CalendarState, load_state, save_state
from .windowing import ViewMode, bucket_by_day, matches_on, sort_upcoming, start_of_week


REFRESH_EVENT = "calendar-refresh"
CLOSE_DIALOG_EVENT = "calendar-close-dialog"
NOTIFY_EVENT = "calendar-notify"

INVALID_STATUS_CODE = 400
WRITE_FAILED_STATUS_CODE = 503

INVALID_FORM_MESSAGE = "Revisá los datos del partido."
INVALID_RESULT_MESSAGE = "Revisá el resultado cargado."


def _today() -> date:
    return timezone.localdate()


def _is_htmx(request: HttpRequest) -> bool:
    return request.headers.get("HX-Request") == "true"


def _parse_day(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise Http404("Fecha inválida.") from exc


def _refresh_cache(state: CalendarState) -> bool:
    return state.refresh(services.load_window, services.current_matches_version())


def _state_for_fragment(request: HttpRequest) -> CalendarState:
    """Return the mount named by the request, or a fresh one if it expired."""

    params = request.GET if request.method == "GET" else request.POST
    state = load_state(request, params.get("mount"))
    if state is None:
        anchor = None
        raw_anchor = params.get("ancla")
        if raw_anchor:
            try:
                anchor = date.fromisoformat(raw_anchor)
            except ValueError:
                anchor = None
        state = CalendarState.mount(
            today=_today(),
            anchor=anchor,
            view_mode=params.get("vista"),
            discipline=params.get("disciplina"),
        )
        # Expired mounts must not replay a deep link.
        state.deep_link_handled = True
    return state


def _build_weeks(state: CalendarState, rows: list[MatchRow], today: date) -> list[list[dict[str, object]]]:
    by_day = bucket_by_day(rows)
    days = state.window.days()
    cells = [
        {
            "day": day,
            "rows": by_day.get(day, []),
            "in_month": state.view_mode == ViewMode.WEEK or day.month == state.anchor.month,
            "is_today": day == today,
        }
        for day in days
    ]
    return [cells[index : index + 7] for index in range(0, len(cells), 7)]


def _day_entries(rows: list[MatchRow], permissions: MatchPermissions) -> list[dict[str, object]]:
    return [{"row": row, "can_edit": permissions.can_manage_match(row)} for row in rows]


def _board_context(
    request: HttpRequest,
    state: CalendarState,
    permissions: MatchPermissions,
) -> dict[str, object]:
    today = _today()
    visible = state.visible_rows()
    upcoming = services.upcoming_matches(state.discipline, today=today)
    share_days = list(bucket_by_day(upcoming).keys())
    return {
        "state": state,
        "permissions": permissions,
        "today": today,
        "weeks": _build_weeks(state, visible, today),
        "week_start": start_of_week(state.anchor),
        "view_modes": ViewMode.choices,
        "disciplines": services.active_disciplines(),
        "upcoming": sort_upcoming(upcoming),
        "share_days": share_days,
        "calendar_url": request.build_absolute_uri(reverse("calendario:calendar")),
    }


def _notify_headers(response: HttpResponse, message: str, level: str = "success") -> HttpResponse:
    response["HX-Trigger"] = json.dumps(
        {
            REFRESH_EVENT: True,
            CLOSE_DIALOG_EVENT: True,
            NOTIFY_EVENT: {"level": level, "message": message},
        }
    )
    return response


def _mutation_success(request: HttpRequest, result: services.MutationResult, day: date | None) -> HttpResponse:
    if _is_htmx(request):
        return _notify_headers(HttpResponse(status=204), result.message)
    messages.success(request, result.message)
    url = reverse("calendario:calendar")
    if day is not None:
        url = sharing.encode_share_url(url, day=day)
    return redirect(url)


def _mutation_status(result: services.MutationResult) -> int:
    if result.status == services.MutationResult.Status.ERROR:
        return WRITE_FAILED_STATUS_CODE
    return INVALID_STATUS_CODE


def _mutation_failure(
    request: HttpRequest,
    template: str,
    context: dict[str, object],
    message: str,
    status: int = INVALID_STATUS_CODE,
) -> HttpResponse:
    """Re-render a dialog after a rejected or failed write.

    HTMX requests get the fragment plus an error toast, leaving the dialog
    open; plain requests get the dialog inside the full page and a message.
    """

    context = {**context, "error_message": message}
    if _is_htmx(request):
        response = render(request, template, context, status=status)
        response["HX-Trigger"] = json.dumps({NOTIFY_EVENT: {"level": "error", "message": message}})
        return response
    messages.error(request, message)
    context["dialog_template"] = template
    return render(request, "calendario/dialog_page.html", context, status=status)


def _apply_result_errors(form, result: services.MutationResult) -> None:
    for field_name, errors in result.errors.items():
        target = field_name if field_name in form.fields else None
        for error in errors:
            form.add_error(target, error)


@require_GET
def calendar_page(request: HttpRequest) -> HttpResponse:
    """Full calendar page; reads share parameters once on mount."""

    today = _today()
    target = sharing.decode_share_params(request.GET)
    deep_link_date = target.day
    if target.match_id is not None:
        linked = models.Match.objects.filter(pk=target.match_id).only("match_date").first()
        if linked is not None:
            deep_link_date = linked.match_date

    state = CalendarState.mount(
        today=today,
        deep_link_date=deep_link_date,
        anchor=target.range_start,
        view_mode=request.GET.get("vista"),
        discipline=request.GET.get("disciplina"),
    )
    permissions = calendar_permissions_for(request.user)
    _refresh_cache(state)
    auto_open = state.consume_deep_link()
    save_state(request, state)

    context = _board_context(request, state, permissions)
    context.update(
        {
            "explicit_view_mode": bool(request.GET.get("vista")),
            "share_target": target,
            "auto_open_day": state.deep_link_date if auto_open else None,
            "auto_open_entries": _day_entries(auto_open or [], permissions),
        }
    )
    return render(request, "calendario/calendar.html", context)


@require_GET
def calendar_board(request: HttpRequest) -> HttpResponse:
    """Re-render the board after navigation, filter or view changes."""

    state = _state_for_fragment(request)
    state.set_view_mode(request.GET.get("vista"))
    state.set_discipline(request.GET.get("disciplina"))
    action = request.GET.get("accion")
    if action:
        state.navigate(action, _today())

    permissions = calendar_permissions_for(request.user)
    _refresh_cache(state)
    auto_open = state.consume_deep_link()
    save_state(request, state)

    context = _board_context(request, state, permissions)
    context.update(
        {
            "auto_open_day": state.deep_link_date if auto_open else None,
            "auto_open_entries": _day_entries(auto_open or [], permissions),
        }
    )
    if not _is_htmx(request):
        return redirect(f"{reverse('calendario:calendar')}?vista={state.view_mode}&disciplina={state.discipline}")
    return render(request, "calendario/partials/board.html", context)


@require_GET
def calendar_day(request: HttpRequest, day: str) -> HttpResponse:
    """Day detail modal listing the visible matches of one date."""

    selected = _parse_day(day)
    state = _state_for_fragment(request)
    _refresh_cache(state)
    save_state(request, state)

    rows = state.rows_for_day(selected)
    if not rows and request.GET.get("origen") == "proximos":
        # Carousel days can sit outside the painted window.
        rows = matches_on(services.upcoming_matches(state.discipline, today=_today()), selected)
    if not rows:
        return HttpResponse(status=204)
    permissions = calendar_permissions_for(request.user)
    context = {
        "day": selected,
        "entries": _day_entries(rows, permissions),
        "permissions": permissions,
        "state": state,
        "calendar_url": request.build_absolute_uri(reverse("calendario:calendar")),
    }
    return render(request, "calendario/partials/day_modal.html", context)


@calendar_manager_required
@require_http_methods(["GET", "POST"])
def match_create(request: HttpRequest) -> HttpResponse:
    permissions: MatchPermissions = request.calendar_permissions
    day = None
    raw_day = request.GET.get("fecha") or request.POST.get("match_date")
    if raw_day:
        try:
            day = date.fromisoformat(raw_day)
        except ValueError:
            day = None

    if request.method == "POST":
        form = forms.MatchForm(request.POST)
        context = {"form": form, "mode": "create"}
        if not form.is_valid():
            return _mutation_failure(request, "calendario/partials/match_form.html", context, INVALID_FORM_MESSAGE)
        result = services.create_match(form.cleaned_data, permissions)
        if result.ok:
            return _mutation_success(request, result, result.match.match_date)
        if result.status == services.MutationResult.Status.FORBIDDEN:
            return HttpResponseForbidden(result.message)
        _apply_result_errors(form, result)
        return _mutation_failure(
            request, "calendario/partials/match_form.html", context, result.message, _mutation_status(result)
        )

    form = forms.MatchForm(day=day)
    return render(request, "calendario/partials/match_form.html", {"form": form, "mode": "create"})


@calendar_manager_required
@require_http_methods(["GET", "POST"])
def match_update(request: HttpRequest, pk: int) -> HttpResponse:
    permissions: MatchPermissions = request.calendar_permissions
    match = get_object_or_404(services.match_queryset(), pk=pk)
    if not permissions.can_manage_match(match):
        return HttpResponseForbidden(services.FORBIDDEN_MESSAGE)

    if request.method == "POST":
        # Validate against a blank instance so the stored match keeps its
        # discipline until the service has checked both old and new.
        form = forms.MatchForm(request.POST, legacy_type=match.match_type)
        context = {"form": form, "mode": "update", "match": match}
        if not form.is_valid():
            return _mutation_failure(request, "calendario/partials/match_form.html", context, INVALID_FORM_MESSAGE)
        result = services.update_match(match, form.cleaned_data, permissions)
        if result.ok:
            return _mutation_success(request, result, result.match.match_date)
        if result.status == services.MutationResult.Status.FORBIDDEN:
            return HttpResponseForbidden(result.message)
        _apply_result_errors(form, result)
        return _mutation_failure(
            request, "calendario/partials/match_form.html", context, result.message, _mutation_status(result)
        )

    form = forms.MatchForm(instance=match)
    return render(request, "calendario/partials/match_form.html", {"form": form, "mode": "update", "match": match})


@calendar_manager_required
@require_http_methods(["GET", "POST"])
def match_delete(request: HttpRequest, pk: int) -> HttpResponse:
    permissions: MatchPermissions = request.calendar_permissions
    match = get_object_or_404(services.match_queryset(), pk=pk)
    if not permissions.can_manage_match(match):
        return HttpResponseForbidden(services.FORBIDDEN_MESSAGE)

    if request.method == "POST":
        match_date = match.match_date
        result = services.delete_match(match, permissions)
        if result.ok:
            return _mutation_success(request, result, match_date)
        if result.status == services.MutationResult.Status.FORBIDDEN:
            return HttpResponseForbidden(result.message)
        return _mutation_failure(
            request, "calendario/partials/match_delete.html", {"match": match}, result.message, _mutation_status(result)
        )

    return render(request, "calendario/partials/match_delete.html", {"match": match})


@calendar_manager_required
@require_http_methods(["GET", "POST"])
def match_result(request: HttpRequest, pk: int) -> HttpResponse:
    permissions: MatchPermissions = request.calendar_permissions
    match = get_object_or_404(services.match_queryset(), pk=pk)
    if not permissions.can_manage_match(match):
        return HttpResponseForbidden(services.FORBIDDEN_MESSAGE)

    try:
        existing = match.result
    except models.MatchResult.DoesNotExist:
        existing = None

    form = forms.MatchResultForm(request.POST if request.method == "POST" else None, result=existing)
    context = {"form": form, "match": match}
    if request.method == "POST":
        if not form.is_valid():
            return _mutation_failure(
                request, "calendario/partials/match_result_form.html", context, INVALID_RESULT_MESSAGE
            )
        result = services.record_result(
            match,
            our_score=form.cleaned_data["our_score"],
            rival_score=form.cleaned_data["rival_score"],
            scorers=form.cleaned_data["scorers"],
            permissions=permissions,
        )
        if result.ok:
            return _mutation_success(request, result, match.match_date)
        if result.status == services.MutationResult.Status.FORBIDDEN:
            return HttpResponseForbidden(result.message)
        return _mutation_failure(
            request, "calendario/partials/match_result_form.html", context, result.message, _mutation_status(result)
        )

    return render(request, "calendario/partials/match_result_form.html", context)


@require_http_methods(["GET", "POST"])
def share_link(request: HttpRequest) -> JsonResponse:
    """Build a shareable calendar URL for a match, a day or a date range."""

    params = request.POST if request.method == "POST" else request.GET
    base_url = request.build_absolute_uri(reverse("calendario:calendar"))
    try:
        picked = params.getlist("fechas")
        if picked:
            start, end = sharing.range_for_dates(picked)
            url = sharing.encode_share_url(base_url, range_start=start, range_end=end)
        else:
            target = sharing.decode_share_params(params)
            if target.is_empty:
                raise ValueError("Nada para compartir.")
            url = sharing.encode_share_url(
                base_url,
                match_id=target.match_id,
                day=target.day,
                range_start=target.range_start,
                range_end=target.range_end,
            )
    except ValueError as exc:
        return JsonResponse({"error": str(exc)}, status=400)
    return JsonResponse({"url": url})
