import json
from datetime import time, timedelta
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.db import DatabaseError
from django.test import TestCase, override_settings
from django.urls import reverse
from django.utils import timezone

from calendario import models
from calendario.state import MOUNTS_SESSION_KEY
from socios.models import RoleDiscipline, SiteRole


STATIC_STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {"BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage"},
}

HTMX = {"HTTP_HX_REQUEST": "true"}


@override_settings(STORAGES=STATIC_STORAGES)
class CalendarViewsTests(TestCase):
    def setUp(self):
        cache.clear()
        self.today = timezone.localdate()
        self.futbol = models.Discipline.objects.create(name="Fútbol", slug="futbol")
        self.basquet = models.Discipline.objects.create(name="Básquet", slug="basquet")
        self.match = models.Match.objects.create(
            discipline=self.futbol,
            match_date=self.today,
            match_time=time(20, 0),
            rival_team="Deportivo Bolívar",
        )
        self.other = models.Match.objects.create(
            discipline=self.basquet,
            match_date=self.today,
            match_time=time(21, 0),
            rival_team="Ciudad de Bragado",
        )
        User = get_user_model()
        self.admin = User.objects.create_superuser(username="admin", email="admin@example.com", password="pass1234")
        role = SiteRole.objects.create(
            name="futbol_staff",
            display_name="Staff de fútbol",
            permissions={"manage_calendar": True},
        )
        RoleDiscipline.objects.create(role=role, discipline=self.futbol)
        self.staff = User.objects.create_user(username="staff", password="pass1234", role=role)

    def match_post(self, **overrides):
        data = {
            "discipline": str(self.futbol.pk),
            "rival_team": "Sportivo 9 de Julio",
            "match_date": self.today.isoformat(),
            "match_time": "18:30",
            "tournament": "",
            "location": "",
            "match_type": models.Match.MatchType.FRIENDLY,
        }
        data.update(overrides)
        return data

    def current_mount(self):
        return self.client.session[MOUNTS_SESSION_KEY][0]

    def test_calendar_page_lists_matches_for_visitors(self):
        response = self.client.get(reverse("calendario:calendar"))
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "Deportivo Bolívar")
        self.assertContains(response, 'data-icon="handshake"')
        self.assertNotContains(response, "Agregar partido")

    def test_discipline_filter_on_page(self):
        response = self.client.get(reverse("calendario:calendar"), {"disciplina": self.basquet.pk})
        self.assertContains(response, "Ciudad de Bragado")
        self.assertNotContains(response, "Deportivo Bolívar")

    def test_added_friendly_shows_up_with_handshake(self):
        self.client.force_login(self.admin)
        self.client.get(reverse("calendario:calendar"))
        mount = self.current_mount()

        response = self.client.post(reverse("calendario:match-create"), self.match_post(), **HTMX)
        self.assertEqual(response.status_code, 204)
        trigger = json.loads(response["HX-Trigger"])
        self.assertIn("calendar-refresh", trigger)
        self.assertIn("calendar-close-dialog", trigger)

        board = self.client.get(reverse("calendario:board"), {"mount": mount}, **HTMX)
        self.assertEqual(board.status_code, 200)
        self.assertContains(board, "Sportivo 9 de Julio")
        created = models.Match.objects.get(rival_team="Sportivo 9 de Julio")
        self.assertContains(board, f'data-match="{created.pk}"')
        self.assertContains(board, 'data-icon="handshake"')

    def test_create_without_htmx_redirects_to_the_day(self):
        self.client.force_login(self.admin)
        response = self.client.post(reverse("calendario:match-create"), self.match_post())
        self.assertRedirects(
            response,
            f"{reverse('calendario:calendar')}?fecha={self.today.isoformat()}",
            fetch_redirect_response=False,
        )

    def test_invalid_form_keeps_dialog_open(self):
        self.client.force_login(self.admin)
        response = self.client.post(reverse("calendario:match-create"), self.match_post(rival_team=""), **HTMX)
        self.assertEqual(response.status_code, 400)
        self.assertContains(response, "Ingresá el equipo rival.", status_code=400)
        trigger = json.loads(response["HX-Trigger"])
        self.assertEqual(trigger["calendar-notify"]["level"], "error")
        self.assertNotIn("calendar-refresh", trigger)
        self.assertNotIn("calendar-close-dialog", trigger)

    def test_write_failure_returns_503(self):
        self.client.force_login(self.admin)
        with mock.patch.object(models.Match, "save", side_effect=DatabaseError("disk full")):
            with self.assertLogs("calendario.services", level="ERROR"):
                response = self.client.post(reverse("calendario:match-create"), self.match_post(), **HTMX)
        self.assertEqual(response.status_code, 503)
        self.assertContains(response, "No se pudo guardar el partido", status_code=503)
        trigger = json.loads(response["HX-Trigger"])
        self.assertEqual(
            trigger, {"calendar-notify": {"level": "error", "message": "No se pudo guardar el partido. Intentá de nuevo."}}
        )

    def test_write_failure_without_htmx_renders_full_page(self):
        self.client.force_login(self.admin)
        with mock.patch.object(models.Match, "save", side_effect=DatabaseError("disk full")):
            with self.assertLogs("calendario.services", level="ERROR"):
                response = self.client.post(reverse("calendario:match-create"), self.match_post())
        self.assertEqual(response.status_code, 503)
        self.assertTemplateUsed(response, "calendario/dialog_page.html")
        self.assertContains(response, "<html", status_code=503)
        self.assertContains(response, "flash-error", status_code=503)

    def test_anonymous_cannot_open_forms(self):
        self.assertEqual(self.client.get(reverse("calendario:match-create")).status_code, 403)
        response = self.client.post(reverse("calendario:match-delete", args=[self.match.pk]))
        self.assertEqual(response.status_code, 403)
        self.assertTrue(models.Match.objects.filter(pk=self.match.pk).exists())

    def test_scoped_manager_sees_edit_only_for_own_discipline(self):
        self.client.force_login(self.staff)
        page = self.client.get(reverse("calendario:calendar"))
        self.assertContains(page, "Agregar partido")
        mount = self.current_mount()

        response = self.client.get(
            reverse("calendario:day", args=[self.today.isoformat()]), {"mount": mount}, **HTMX
        )
        self.assertContains(response, reverse("calendario:match-update", args=[self.match.pk]))
        self.assertNotContains(response, reverse("calendario:match-update", args=[self.other.pk]))

    def test_scoped_manager_cannot_edit_other_discipline(self):
        self.client.force_login(self.staff)
        response = self.client.post(
            reverse("calendario:match-update", args=[self.other.pk]),
            self.match_post(discipline=str(self.basquet.pk)),
            **HTMX,
        )
        self.assertEqual(response.status_code, 403)

    def test_scoped_manager_cannot_move_match_away(self):
        self.client.force_login(self.staff)
        response = self.client.post(
            reverse("calendario:match-update", args=[self.match.pk]),
            self.match_post(discipline=str(self.basquet.pk)),
            **HTMX,
        )
        self.assertEqual(response.status_code, 403)
        self.match.refresh_from_db()
        self.assertEqual(self.match.discipline, self.futbol)

    def test_update_and_delete(self):
        self.client.force_login(self.staff)
        tomorrow = self.today + timedelta(days=1)
        response = self.client.post(
            reverse("calendario:match-update", args=[self.match.pk]),
            self.match_post(match_date=tomorrow.isoformat(), rival_team="Bolívar"),
            **HTMX,
        )
        self.assertEqual(response.status_code, 204)
        self.match.refresh_from_db()
        self.assertEqual(self.match.match_date, tomorrow)

        response = self.client.post(reverse("calendario:match-delete", args=[self.match.pk]), **HTMX)
        self.assertEqual(response.status_code, 204)
        self.assertFalse(models.Match.objects.filter(pk=self.match.pk).exists())

    def test_record_result(self):
        self.client.force_login(self.staff)
        response = self.client.post(
            reverse("calendario:match-result", args=[self.match.pk]),
            {"our_score": "2", "rival_score": "3", "scorers": "Gómez\nPereyra"},
            **HTMX,
        )
        self.assertEqual(response.status_code, 204)
        result = models.MatchResult.objects.get(match=self.match)
        self.assertEqual(result.scorers, ["Gómez", "Pereyra"])
        self.assertEqual(result.outcome, "loss")

    def test_empty_result_post_shows_field_errors(self):
        self.client.force_login(self.staff)
        response = self.client.post(reverse("calendario:match-result", args=[self.match.pk]), {}, **HTMX)
        self.assertEqual(response.status_code, 400)
        self.assertContains(response, "field-error", status_code=400)
        self.assertFalse(models.MatchResult.objects.filter(match=self.match).exists())

    def test_deep_link_opens_day_once(self):
        response = self.client.get(reverse("calendario:calendar"), {"fecha": self.today.isoformat()})
        self.assertContains(response, "day-modal")
        mount = self.current_mount()

        board = self.client.get(reverse("calendario:board"), {"mount": mount}, **HTMX)
        self.assertNotContains(board, "day-modal")

    def test_match_deep_link_opens_its_day(self):
        later = models.Match.objects.create(
            discipline=self.futbol,
            match_date=self.today + timedelta(days=40),
            rival_team="Club Náutico Junín",
        )
        response = self.client.get(reverse("calendario:calendar"), {"partido": later.pk})
        self.assertContains(response, "day-modal")
        self.assertContains(response, "Club Náutico Junín")

    def test_deep_link_to_empty_day(self):
        empty = self.today + timedelta(days=3)
        response = self.client.get(reverse("calendario:calendar"), {"fecha": empty.isoformat()})
        self.assertEqual(response.status_code, 200)
        self.assertNotContains(response, "day-modal")

    def test_board_navigation(self):
        self.client.get(reverse("calendario:calendar"), {"vista": "week"})
        mount = self.current_mount()
        response = self.client.get(reverse("calendario:board"), {"mount": mount, "accion": "next"}, **HTMX)
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "Semana del")
        self.assertNotContains(response, 'data-match="%d"' % self.match.pk)

    def test_board_without_htmx_redirects(self):
        response = self.client.get(reverse("calendario:board"))
        self.assertEqual(response.status_code, 302)

    def test_empty_day_returns_no_content(self):
        response = self.client.get(
            reverse("calendario:day", args=[(self.today + timedelta(days=2)).isoformat()]), **HTMX
        )
        self.assertEqual(response.status_code, 204)

    def test_bad_day_is_404(self):
        response = self.client.get(reverse("calendario:day", args=["mañana"]), **HTMX)
        self.assertEqual(response.status_code, 404)


class ShareLinkViewTests(TestCase):
    def test_selected_dates_become_a_range(self):
        response = self.client.post(
            reverse("calendario:share-link"), {"fechas": ["2024-05-20", "2024-05-03"]}
        )
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["url"].endswith("/calendario/?desde=2024-05-03&hasta=2024-05-20"))

    def test_single_match(self):
        response = self.client.get(reverse("calendario:share-link"), {"partido": "12"})
        self.assertTrue(response.json()["url"].endswith("?partido=12"))

    def test_nothing_to_share(self):
        response = self.client.get(reverse("calendario:share-link"))
        self.assertEqual(response.status_code, 400)
        self.assertIn("error", response.json())

    def test_bad_dates(self):
        response = self.client.post(reverse("calendario:share-link"), {"fechas": ["ayer"]})
        self.assertEqual(response.status_code, 400)
