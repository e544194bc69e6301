# permissions/roles.py

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Iterable


# =========================================================
# ROLE CONSTANTS
# =========================================================
# Stored verbatim in User.permissions.
ROLE_USER = "USER"
ROLE_ADMIN = "ADMIN"
ROLE_ITEMCREATE = "ITEMCREATE"
ROLE_ITEMUPDATE = "ITEMUPDATE"
ROLE_ITEMDELETE = "ITEMDELETE"
ROLE_PERMISSIONUPDATE = "PERMISSIONUPDATE"

ALL_ROLES = {
    ROLE_USER,
    ROLE_ADMIN,
    ROLE_ITEMCREATE,
    ROLE_ITEMUPDATE,
    ROLE_ITEMDELETE,
    ROLE_PERMISSIONUPDATE,
}

ROLE_CHOICES = [(role, role) for role in sorted(ALL_ROLES)]

DEFAULT_ROLES = frozenset({ROLE_USER})


# =========================================================
# OPERATION REQUIREMENTS (ANY-OF)
# =========================================================
# Holding any one role in the set suffices.
ITEM_UPDATE_ROLES = frozenset({ROLE_ADMIN, ROLE_ITEMUPDATE})
ITEM_DELETE_ROLES = frozenset({ROLE_ADMIN, ROLE_ITEMDELETE})
PERMISSION_UPDATE_ROLES = frozenset({ROLE_ADMIN, ROLE_PERMISSIONUPDATE})
ORDER_READ_ROLES = frozenset({ROLE_ADMIN})


# =========================================================
# PRINCIPAL
# =========================================================
@dataclass(frozen=True)
class Principal:
    """
    The authenticated caller.

    Built once per request by users.services.identity.resolve_identity and
    passed to services in place of the raw credential.
    """

    id: str
    permissions: frozenset = field(default_factory=frozenset)

    @classmethod
    def for_user(cls, user) -> "Principal":
        return cls(id=str(user.pk), permissions=normalize_roles(user.permissions or []))

    @property
    def user_pk(self) -> uuid.UUID:
        """id as the User primary key type, for building rows."""
        return uuid.UUID(self.id)

    def has_any(self, roles: Iterable[str]) -> bool:
        return not self.permissions.isdisjoint(roles)


def normalize_roles(roles: Iterable[str]) -> frozenset:
    return frozenset(str(r).strip().upper() for r in roles if str(r).strip())


def unknown_roles(roles: Iterable[str]) -> set[str]:
    return set(normalize_roles(roles)) - ALL_ROLES
