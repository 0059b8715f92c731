from functools import wraps

from django.core.exceptions import PermissionDenied

from .permissions import calendar_permissions_for


def calendar_manager_required(view_func):
    """Reject users without any calendar rights and expose their permissions.

    The resolved :class:`~calendario.gate.MatchPermissions` is stored on
    ``request.calendar_permissions`` for the wrapped view.
    """

    @wraps(view_func)
    def _wrapped_view(request, *args, **kwargs):
        permissions = calendar_permissions_for(request.user)
        if not permissions.can_manage:
            raise PermissionDenied("No tenés permisos para gestionar el calendario.")
        request.calendar_permissions = permissions
        return view_func(request, *args, **kwargs)
    return _wrapped_view
