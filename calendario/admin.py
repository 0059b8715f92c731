"""Admin registrations for the calendario application."""
from django.contrib import admin

from . import models


@admin.register(models.Discipline)
class DisciplineAdmin(admin.ModelAdmin):
    list_display = ("name", "slug", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name", "slug")
    prepopulated_fields = {"slug": ("name",)}


@admin.register(models.Tournament)
class TournamentAdmin(admin.ModelAdmin):
    list_display = ("name", "year")
    list_filter = ("year",)
    search_fields = ("name",)


@admin.register(models.Location)
class LocationAdmin(admin.ModelAdmin):
    list_display = ("name", "city", "google_maps_url")
    search_fields = ("name", "city")


class MatchResultInline(admin.StackedInline):
    model = models.MatchResult
    extra = 0


@admin.register(models.Match)
class MatchAdmin(admin.ModelAdmin):
    list_display = (
        "match_date",
        "match_time",
        "discipline",
        "rival_team",
        "match_type",
        "tournament",
        "location",
        "status",
    )
    list_filter = ("discipline", "status", "tournament", "match_date")
    search_fields = ("rival_team", "discipline__name", "tournament__name")
    date_hierarchy = "match_date"
    inlines = (MatchResultInline,)


@admin.register(models.MatchResult)
class MatchResultAdmin(admin.ModelAdmin):
    list_display = ("match", "our_score", "rival_score")
    search_fields = ("match__rival_team",)
