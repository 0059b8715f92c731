"""Role permission checks and calendar rights resolution."""
from __future__ import annotations

import logging
from typing import Any, Mapping

from calendario.gate import MatchPermissions

from .models import RoleDiscipline

logger = logging.getLogger(__name__)


def has_permission(permissions: Mapping[str, Any] | None, permission: str) -> bool:
    """Return True only when the flag is literally ``True``."""

    if not permissions:
        return False
    return permissions.get(permission) is True


def calendar_permissions_for(user) -> MatchPermissions:
    """Resolve which matches ``user`` may add, edit or delete.

    ``manage_disciplines`` grants every discipline; ``manage_calendar`` grants
    only the disciplines linked to the role with ``can_manage_matches``.
    """

    if not getattr(user, "is_authenticated", False):
        return MatchPermissions.none()
    if getattr(user, "is_superuser", False):
        return MatchPermissions.unrestricted()

    role = getattr(user, "role", None)
    if role is None:
        return MatchPermissions.none()

    permissions = role.permissions or {}
    if has_permission(permissions, "manage_disciplines"):
        return MatchPermissions.unrestricted()
    if not has_permission(permissions, "manage_calendar"):
        return MatchPermissions.none()

    managed_ids = list(
        RoleDiscipline.objects.filter(role=role, can_manage_matches=True).values_list(
            "discipline_id", flat=True
        )
    )
    if not managed_ids:
        logger.info("role %s has manage_calendar but no disciplines assigned", role.name)
    return MatchPermissions.build(bool(managed_ids), managed_ids)
