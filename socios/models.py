"""Club members, site roles and the disciplines each role may manage."""
from __future__ import annotations

from django.contrib.auth.models import AbstractUser
from django.db import models


class SiteRole(models.Model):
    """A named role carrying a JSON object of permission flags."""

    name = models.CharField(max_length=50, unique=True)
    display_name = models.CharField(max_length=80)
    description = models.TextField(blank=True)
    color = models.CharField(max_length=16, default="#6b7280")
    permissions = models.JSONField(default=dict, blank=True)
    is_system_role = models.BooleanField(default=False)

    class Meta:
        ordering = ("display_name",)

    def __str__(self) -> str:
        return self.display_name or self.name


class RoleDiscipline(models.Model):
    """Links a role to a discipline it is allowed to look after."""

    role = models.ForeignKey(SiteRole, on_delete=models.CASCADE, related_name="discipline_links")
    discipline = models.ForeignKey(
        "calendario.Discipline", on_delete=models.CASCADE, related_name="role_links"
    )
    can_manage_matches = models.BooleanField(default=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["role", "discipline"], name="unique_role_discipline"),
        ]
        ordering = ("role", "discipline")

    def __str__(self) -> str:
        return f"{self.role} → {self.discipline}"


class User(AbstractUser):
    role = models.ForeignKey(
        SiteRole, on_delete=models.SET_NULL, null=True, blank=True, related_name="users"
    )
    socio_number = models.CharField(max_length=16, blank=True)
    dni = models.CharField(max_length=16, blank=True)
    birth_date = models.DateField(null=True, blank=True)
