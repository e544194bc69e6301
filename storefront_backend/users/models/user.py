"""
PATH: users/models/user.py

CUSTOM USER MODEL

Identity:
- email is the login identifier, stored lower-cased.
- permissions is the role set (see permissions.roles). Every new account
  starts with {USER}; only ADMIN / PERMISSIONUPDATE holders may change it.

Password reset:
- reset_token + reset_token_expiry are set by request_reset and cleared by
  reset_password.
"""

from __future__ import annotations

import uuid

from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin
from django.core.exceptions import ValidationError
from django.db import models

from permissions.roles import ROLE_ADMIN, ROLE_USER, unknown_roles


def default_permissions() -> list[str]:
    return [ROLE_USER]


# ---------------- USER MANAGER ----------------
class UserManager(BaseUserManager):
    def normalize_email(self, email):
        return super().normalize_email((email or "").strip()).lower()

    def create_user(self, email=None, password=None, **extra_fields):
        email = self.normalize_email(email)
        if not email:
            raise ValueError("An email address is required")

        extra_fields.setdefault("is_active", True)
        extra_fields.setdefault("permissions", default_permissions())

        user = self.model(email=email, **extra_fields)

        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()

        user.full_clean(exclude=["password"])
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        if not password:
            raise ValueError("Superuser must have a password")

        extra_fields.setdefault("permissions", [ROLE_USER, ROLE_ADMIN])
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("is_active", True)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True")

        return self.create_user(email=email, password=password, **extra_fields)


# ---------------- USER MODEL ----------------
class User(AbstractBaseUser, PermissionsMixin):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    email = models.EmailField(unique=True)
    name = models.CharField(max_length=150, blank=True, default="")

    permissions = models.JSONField(
        default=default_permissions,
        help_text="Role set, e.g. [\"USER\", \"ADMIN\"]",
    )

    reset_token = models.CharField(max_length=64, blank=True, default="", db_index=True)
    reset_token_expiry = models.DateTimeField(null=True, blank=True)

    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserManager()

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    class Meta:
        ordering = ["-created_at"]

    def clean(self):
        if self.email:
            self.email = self.__class__.objects.normalize_email(self.email)

        if not isinstance(self.permissions, list):
            raise ValidationError({"permissions": "permissions must be a list of roles"})

        bad = unknown_roles(self.permissions)
        if bad:
            raise ValidationError({"permissions": f"Unknown roles: {', '.join(sorted(bad))}"})

    def __str__(self):
        return f"{self.email} ({', '.join(self.permissions or [])})"
