# users/services/account_service.py

"""
ACCOUNT SERVICE

Operations:
- signup / signin (anonymous allowed)
- request_reset / reset_password (anonymous allowed)
- update_permissions / list_users (ADMIN or PERMISSIONUPDATE)

Credential transport (cookie/header) is the view's concern; services return
(user, credential) pairs.
"""

from __future__ import annotations

import logging
import secrets
from datetime import timedelta
from typing import Optional

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.core.mail import send_mail
from django.db import IntegrityError, transaction
from django.utils import timezone

from permissions.exceptions import NotFound, Unauthenticated, ValidationFailed
from permissions.guard import require
from permissions.roles import PERMISSION_UPDATE_ROLES, Principal, normalize_roles, unknown_roles
from users.services.identity import issue_credential

logger = logging.getLogger(__name__)

User = get_user_model()

RESET_TOKEN_BYTES = 20


def _first_message(exc: ValidationError) -> str:
    if hasattr(exc, "message_dict"):
        for field_name, messages in exc.message_dict.items():
            if messages:
                return f"{field_name}: {messages[0]}"
    return "; ".join(exc.messages) or "Invalid input"


# =====================================================
# SIGNUP / SIGNIN
# =====================================================

def signup(*, email: str, password: str, name: str = "") -> tuple:
    email = User.objects.normalize_email(email)
    if not email:
        raise ValidationFailed("email is required")
    if not password:
        raise ValidationFailed("password is required")

    if User.objects.filter(email=email).exists():
        raise ValidationFailed(f"An account with email {email} already exists")

    try:
        with transaction.atomic():
            user = User.objects.create_user(
                email=email,
                password=password,
                name=(name or "").strip(),
            )
    except ValidationError as exc:
        raise ValidationFailed(_first_message(exc)) from exc
    except IntegrityError as exc:
        raise ValidationFailed(f"An account with email {email} already exists") from exc

    logger.info("User signed up", extra={"user_id": str(user.id)})
    return user, issue_credential(user)


def signin(*, email: str, password: str) -> tuple:
    email = User.objects.normalize_email(email)
    user = User.objects.filter(email=email).first()

    if user is None:
        raise Unauthenticated(f"No such user found for email {email}")

    if not user.check_password(password or ""):
        raise Unauthenticated("Invalid password!")

    if not user.is_active:
        raise Unauthenticated("User account is disabled")

    logger.info("User signed in", extra={"user_id": str(user.id)})
    return user, issue_credential(user)


# =====================================================
# PASSWORD RESET
# =====================================================

def _reset_link(token: str) -> str:
    base = settings.FRONTEND_BASE_URL.rstrip("/")
    return f"{base}/reset?resetToken={token}"


def request_reset(*, email: str) -> dict:
    email = User.objects.normalize_email(email)
    user = User.objects.filter(email=email).first()
    if user is None:
        raise NotFound(f"No such user found for email {email}")

    token = secrets.token_hex(RESET_TOKEN_BYTES)
    user.reset_token = token
    user.reset_token_expiry = timezone.now() + timedelta(seconds=settings.PASSWORD_RESET_TTL_SECONDS)
    user.save(update_fields=["reset_token", "reset_token_expiry", "updated_at"])

    send_mail(
        subject="Your Password Reset Token",
        message=f"Your password reset link: {_reset_link(token)}",
        from_email=settings.DEFAULT_FROM_EMAIL,
        recipient_list=[user.email],
    )

    logger.info("Password reset requested", extra={"user_id": str(user.id)})
    return {"message": "Thanks!"}


def reset_password(*, reset_token: str, password: str, confirm_password: str) -> tuple:
    if password != confirm_password:
        raise ValidationFailed("Passwords do not match!")
    if not password:
        raise ValidationFailed("password is required")

    token = (reset_token or "").strip()
    user = None
    if token:
        user = User.objects.filter(
            reset_token=token,
            reset_token_expiry__gte=timezone.now(),
        ).first()

    if user is None:
        raise ValidationFailed("This token is either invalid or expired!")

    user.set_password(password)
    user.reset_token = ""
    user.reset_token_expiry = None
    user.save(update_fields=["password", "reset_token", "reset_token_expiry", "updated_at"])

    logger.info("Password reset completed", extra={"user_id": str(user.id)})
    return user, issue_credential(user)


# =====================================================
# CURRENT USER / ADMIN
# =====================================================

def current_user(principal: Optional[Principal]):
    if principal is None:
        return None
    return User.objects.filter(pk=principal.id, is_active=True).first()


def list_users(principal: Optional[Principal]):
    require(principal, PERMISSION_UPDATE_ROLES)
    return User.objects.all().order_by("email")


def update_permissions(principal: Optional[Principal], *, user_id, permissions) -> "User":
    require(principal, PERMISSION_UPDATE_ROLES)

    if not isinstance(permissions, (list, tuple, set, frozenset)):
        raise ValidationFailed("permissions must be a list of roles")

    bad = unknown_roles(permissions)
    if bad:
        raise ValidationFailed(f"Unknown roles: {', '.join(sorted(bad))}")

    try:
        target = User.objects.filter(pk=user_id).first()
    except (ValueError, ValidationError):
        target = None
    if target is None:
        raise NotFound("No such user")

    target.permissions = sorted(normalize_roles(permissions))
    target.save(update_fields=["permissions", "updated_at"])

    logger.info(
        "Permissions updated",
        extra={
            "actor_id": principal.id,
            "user_id": str(target.id),
            "permissions": target.permissions,
        },
    )
    return target
