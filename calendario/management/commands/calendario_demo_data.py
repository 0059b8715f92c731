from __future__ import annotations

from django.core.management.base import BaseCommand

from calendario import services


class Command(BaseCommand):
    help = "Seed demo disciplines and matches for the club calendar"

    def add_arguments(self, parser):
        parser.add_argument("--no-output", action="store_true", help="Suppress success output")

    def handle(self, *args, **options):
        created = services.seed_demo_calendar()
        if not options["no_output"]:
            self.stdout.write(self.style.SUCCESS(f"Seeded {created} demo matches"))
