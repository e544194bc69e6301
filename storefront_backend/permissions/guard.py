# permissions/guard.py

"""
PERMISSION GUARD

Single policy point for every state-changing operation.

Rules:
- Absent principal: allowed only when the operation permits anonymous access.
- Owner pre-check: owner_id == principal.id short-circuits to allowed.
- Role check is ANY-OF: holding one required role suffices.
- Empty required set grants nothing beyond the owner pre-check; use
  require_principal() for "any authenticated principal".

No database access, no side effects.
"""

from __future__ import annotations

from typing import Iterable, Optional

from .exceptions import Forbidden, Unauthenticated
from .roles import Principal


def authorize(
    principal: Optional[Principal],
    required_roles: Iterable[str] = (),
    *,
    owner_id=None,
    allow_anonymous: bool = False,
) -> bool:
    if principal is None:
        return allow_anonymous

    if owner_id is not None and str(owner_id) == principal.id:
        return True

    return principal.has_any(frozenset(required_roles))


def require(
    principal: Optional[Principal],
    required_roles: Iterable[str] = (),
    *,
    owner_id=None,
    allow_anonymous: bool = False,
    message: str | None = None,
) -> None:
    """
    Raising form of authorize().

    Unauthenticated and Forbidden are kept distinct: callers rely on the
    difference to tell "sign in" from "you may not".
    """
    if principal is None and not allow_anonymous:
        raise Unauthenticated()

    if not authorize(
        principal,
        required_roles,
        owner_id=owner_id,
        allow_anonymous=allow_anonymous,
    ):
        raise Forbidden(message)


def require_principal(principal: Optional[Principal], message: str | None = None) -> Principal:
    if principal is None:
        raise Unauthenticated(message)
    return principal


def require_owner(principal: Optional[Principal], owner_id, message: str | None = None) -> Principal:
    """Ownership with no role alternative (e.g. another user's cart)."""
    principal = require_principal(principal)
    if owner_id is None or str(owner_id) != principal.id:
        raise Forbidden(message)
    return principal
