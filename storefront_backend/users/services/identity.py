# users/services/identity.py

"""
IDENTITY (AUTH CONTEXT)

The only place that understands credential format.

- issue_credential(user) -> signed JWT (SimpleJWT access token)
- verify_credential(credential) -> user id | None
- resolve_identity(credential) -> Principal | None

Hard rules:
- resolve_identity never raises: missing, malformed, expired or revoked
  credentials all resolve to None (anonymous).
- The Principal is rebuilt from the database on every call, so permission
  changes and deactivation take effect on the next request.
"""

from __future__ import annotations

import logging
from typing import Optional

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import AccessToken

from permissions.roles import Principal

logger = logging.getLogger(__name__)


def _user_id_claim() -> str:
    return settings.SIMPLE_JWT.get("USER_ID_CLAIM", "userId")


def issue_credential(user) -> str:
    return str(AccessToken.for_user(user))


def verify_credential(credential: Optional[str]):
    raw = (credential or "").strip()
    if not raw:
        return None

    try:
        token = AccessToken(raw)
    except TokenError:
        logger.info("Rejected credential (invalid or expired)")
        return None

    return token.get(_user_id_claim())


def resolve_user(credential: Optional[str]):
    user_id = verify_credential(credential)
    if not user_id:
        return None

    User = get_user_model()
    try:
        return User.objects.filter(pk=user_id, is_active=True).first()
    except (ValueError, ValidationError):
        # malformed id claim
        return None


def resolve_identity(credential: Optional[str]) -> Optional[Principal]:
    user = resolve_user(credential)
    if user is None:
        return None
    return Principal.for_user(user)
