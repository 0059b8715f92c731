"""Admin registrations for club members and roles."""
from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin

from . import models


class RoleDisciplineInline(admin.TabularInline):
    model = models.RoleDiscipline
    extra = 0
    autocomplete_fields = ("discipline",)


@admin.register(models.SiteRole)
class SiteRoleAdmin(admin.ModelAdmin):
    list_display = ("display_name", "name", "color", "is_system_role")
    list_filter = ("is_system_role",)
    search_fields = ("name", "display_name")
    inlines = (RoleDisciplineInline,)


@admin.register(models.RoleDiscipline)
class RoleDisciplineAdmin(admin.ModelAdmin):
    list_display = ("role", "discipline", "can_manage_matches")
    list_filter = ("role", "discipline", "can_manage_matches")


@admin.register(models.User)
class UserAdmin(DjangoUserAdmin):
    list_display = ("username", "email", "first_name", "last_name", "socio_number", "role", "is_staff")
    list_filter = ("role", "is_staff", "is_superuser", "is_active")
    search_fields = ("username", "email", "first_name", "last_name", "socio_number", "dni")
    fieldsets = DjangoUserAdmin.fieldsets + (
        ("Socio", {"fields": ("role", "socio_number", "dni", "birth_date")}),
    )
