from datetime import date, time, timedelta
from unittest import mock

from django.core.cache import cache
from django.db import DatabaseError
from django.test import TestCase

from calendario import models, services
from calendario.gate import MatchPermissions
from calendario.windowing import DateWindow


class CalendarServiceTestCase(TestCase):
    def setUp(self):
        cache.clear()
        self.futbol = models.Discipline.objects.create(name="Fútbol", slug="futbol")
        self.basquet = models.Discipline.objects.create(name="Básquet", slug="basquet")
        self.tournament = models.Tournament.objects.create(name="Liga Regional", year=2024)
        self.match = models.Match.objects.create(
            discipline=self.futbol,
            match_date=date(2024, 5, 10),
            match_time=time(20, 0),
            rival_team="Deportivo Bolívar",
        )
        self.unrestricted = MatchPermissions.unrestricted()
        self.futbol_only = MatchPermissions.build(True, [self.futbol.pk])

    def match_data(self, **overrides):
        data = {
            "discipline": self.futbol,
            "rival_team": "Club Atlético Pehuajó",
            "match_date": date(2024, 5, 18),
            "match_time": time(16, 0),
            "tournament": None,
            "location": None,
            "match_type": models.Match.MatchType.FRIENDLY,
        }
        data.update(overrides)
        return data


class ReadTests(CalendarServiceTestCase):
    def test_load_window_is_inclusive(self):
        models.Match.objects.create(discipline=self.futbol, match_date=date(2024, 5, 31), rival_team="Límite")
        models.Match.objects.create(discipline=self.futbol, match_date=date(2024, 6, 1), rival_team="Afuera")
        rows = services.load_window(DateWindow(date(2024, 5, 10), date(2024, 5, 31)))
        self.assertEqual([row.rival_team for row in rows], ["Deportivo Bolívar", "Límite"])

    def test_upcoming_matches_order_filter_and_limit(self):
        today = date(2024, 5, 1)
        models.Match.objects.create(discipline=self.basquet, match_date=date(2024, 5, 10), rival_team="Sin hora")
        models.Match.objects.create(discipline=self.futbol, match_date=date(2024, 4, 30), rival_team="Pasado")

        rows = services.upcoming_matches("all", today=today)
        self.assertEqual([row.rival_team for row in rows], ["Sin hora", "Deportivo Bolívar"])

        rows = services.upcoming_matches(str(self.futbol.pk), today=today)
        self.assertEqual([row.rival_team for row in rows], ["Deportivo Bolívar"])

        self.assertEqual(len(services.upcoming_matches("all", today=today, limit=1)), 1)
        self.assertEqual(services.upcoming_matches("futbol", today=today), [])

    def test_version_starts_at_one_and_bumps(self):
        self.assertEqual(services.current_matches_version(), 1)
        self.assertEqual(services.bump_matches_version(), 2)
        self.assertEqual(services.current_matches_version(), 2)


class CreateMatchTests(CalendarServiceTestCase):
    def test_create_requires_manage_rights(self):
        result = services.create_match(self.match_data(), MatchPermissions.none())
        self.assertEqual(result.status, services.MutationResult.Status.FORBIDDEN)
        self.assertEqual(models.Match.objects.count(), 1)

    def test_create_saves_and_bumps_version(self):
        version = services.current_matches_version()
        result = services.create_match(self.match_data(rival_team="  Sportivo  "), self.unrestricted)
        self.assertTrue(result.ok)
        self.assertEqual(result.match.rival_team, "Sportivo")
        self.assertEqual(result.match.status, models.Match.Status.SCHEDULED)
        self.assertGreater(services.current_matches_version(), version)

    def test_scoped_manager_may_add_to_any_discipline(self):
        result = services.create_match(self.match_data(discipline=self.basquet), self.futbol_only)
        self.assertTrue(result.ok)

    def test_blank_rival_is_invalid(self):
        result = services.create_match(self.match_data(rival_team="   "), self.unrestricted)
        self.assertEqual(result.status, services.MutationResult.Status.INVALID)
        self.assertIn("rival_team", result.errors)

    def test_write_failure_is_reported(self):
        with mock.patch.object(models.Match, "save", side_effect=DatabaseError("disk full")):
            with self.assertLogs("calendario.services", level="ERROR"):
                result = services.create_match(self.match_data(), self.unrestricted)
        self.assertEqual(result.status, services.MutationResult.Status.ERROR)
        self.assertEqual(models.Match.objects.count(), 1)


class UpdateMatchTests(CalendarServiceTestCase):
    def test_scoped_manager_cannot_edit_other_discipline(self):
        other = models.Match.objects.create(discipline=self.basquet, match_date=date(2024, 5, 11), rival_team="Bragado")
        result = services.update_match(other, self.match_data(discipline=self.basquet), self.futbol_only)
        self.assertEqual(result.status, services.MutationResult.Status.FORBIDDEN)

    def test_scoped_manager_cannot_move_match_out_of_scope(self):
        result = services.update_match(self.match, self.match_data(discipline=self.basquet), self.futbol_only)
        self.assertEqual(result.status, services.MutationResult.Status.FORBIDDEN)
        self.match.refresh_from_db()
        self.assertEqual(self.match.discipline, self.futbol)

    def test_update_changes_fields(self):
        result = services.update_match(
            self.match,
            self.match_data(match_date=date(2024, 5, 12), tournament=self.tournament, match_type="Final"),
            self.futbol_only,
        )
        self.assertTrue(result.ok)
        self.match.refresh_from_db()
        self.assertEqual(self.match.match_date, date(2024, 5, 12))
        self.assertEqual(self.match.tournament, self.tournament)
        self.assertFalse(self.match.is_friendly)


class DeleteMatchTests(CalendarServiceTestCase):
    def test_delete_removes_result_and_match(self):
        models.MatchResult.objects.create(match=self.match, our_score=2, rival_score=0)
        result = services.delete_match(self.match, self.unrestricted)
        self.assertTrue(result.ok)
        self.assertFalse(models.Match.objects.exists())
        self.assertFalse(models.MatchResult.objects.exists())

    def test_failed_delete_keeps_the_result(self):
        models.MatchResult.objects.create(match=self.match, our_score=2, rival_score=0)
        with mock.patch.object(models.Match, "delete", side_effect=DatabaseError("locked")):
            with self.assertLogs("calendario.services", level="ERROR"):
                result = services.delete_match(self.match, self.unrestricted)
        self.assertEqual(result.status, services.MutationResult.Status.ERROR)
        self.assertTrue(models.MatchResult.objects.filter(match=self.match).exists())

    def test_delete_requires_discipline_rights(self):
        result = services.delete_match(self.match, MatchPermissions.build(True, [self.basquet.pk]))
        self.assertEqual(result.status, services.MutationResult.Status.FORBIDDEN)
        self.assertTrue(models.Match.objects.filter(pk=self.match.pk).exists())


class RecordResultTests(CalendarServiceTestCase):
    def test_record_and_replace_result(self):
        result = services.record_result(
            self.match, our_score=3, rival_score=1, scorers=["Gómez", " ", "Pereyra "], permissions=self.futbol_only
        )
        self.assertTrue(result.ok)
        self.match.refresh_from_db()
        self.assertEqual(self.match.status, models.Match.Status.COMPLETED)
        self.assertEqual(self.match.result.scorers, ["Gómez", "Pereyra"])
        self.assertEqual(self.match.result.outcome, "win")

        services.record_result(self.match, our_score=1, rival_score=1, scorers=[], permissions=self.futbol_only)
        self.assertEqual(models.MatchResult.objects.count(), 1)
        self.assertEqual(models.MatchResult.objects.get().outcome, "draw")

    def test_record_requires_rights(self):
        result = services.record_result(
            self.match, our_score=1, rival_score=0, scorers=None, permissions=MatchPermissions.none()
        )
        self.assertFalse(result.ok)
        self.assertFalse(models.MatchResult.objects.exists())


class DemoDataTests(TestCase):
    def test_seed_is_idempotent(self):
        today = date(2024, 5, 15)
        created = services.seed_demo_calendar(today)
        self.assertGreater(created, 0)
        self.assertEqual(services.seed_demo_calendar(today), 0)
        self.assertTrue(models.MatchResult.objects.filter(match__match_date__lt=today).exists())
        self.assertTrue(models.Match.objects.filter(match_date=today + timedelta(days=1)).exists())

    def test_seed_leaves_existing_matches_alone(self):
        today = date(2024, 5, 15)
        futbol = models.Discipline.objects.create(name="Fútbol", slug="futbol")
        real = models.Match.objects.create(
            discipline=futbol,
            match_date=today - timedelta(days=30),
            rival_team="Club Social Henderson",
        )

        services.seed_demo_calendar(today)
        services.seed_demo_calendar(today)

        real.refresh_from_db()
        self.assertEqual(real.status, models.Match.Status.SCHEDULED)
        self.assertFalse(models.MatchResult.objects.filter(match=real).exists())
        self.assertEqual(models.MatchResult.objects.count(), 1)
