# permissions/drf.py

"""
DRF PERMISSION ADAPTERS

Views pass request.auth (a Principal or None) to services, and services call
the guard. These classes only gate whole endpoints before the service runs,
raising the same Unauthenticated / Forbidden kinds so the API envelope is
identical either way.
"""

from __future__ import annotations

from rest_framework.permissions import BasePermission

from .guard import require, require_principal


class RequiresPrincipal(BasePermission):
    """
    Any authenticated principal.

    Default permission class (REST_FRAMEWORK['DEFAULT_PERMISSION_CLASSES']).
    """

    def has_permission(self, request, view):
        require_principal(request.auth)
        return True


class HasAnyRole(BasePermission):
    """
    Require ANY role from view.required_any_roles.

    Usage:
        permission_classes = [HasAnyRole]
        required_any_roles = PERMISSION_UPDATE_ROLES
    """

    def has_permission(self, request, view):
        required = getattr(view, "required_any_roles", None)
        if not required:
            # deny-by-default to avoid accidental open endpoints
            return False

        require(request.auth, required)
        return True
