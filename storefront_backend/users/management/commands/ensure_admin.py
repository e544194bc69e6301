# users/management/commands/ensure_admin.py

"""
PATH: users/management/commands/ensure_admin.py

Bootstrap the first ADMIN principal.

- Reads AUTO_ADMIN_EMAIL + AUTO_ADMIN_PASSWORD from env (or --email/--password).
- Idempotent: creates the user if missing, otherwise grants ADMIN and
  resets the password.
- Does NOT print the password.
"""

from __future__ import annotations

import os

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from permissions.roles import ROLE_ADMIN, ROLE_USER


class Command(BaseCommand):
    help = "Create/update an ADMIN user from env vars or options (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument("--email", default=os.environ.get("AUTO_ADMIN_EMAIL", ""))
        parser.add_argument("--password", default=os.environ.get("AUTO_ADMIN_PASSWORD", ""))

    def handle(self, *args, **options):
        email = (options["email"] or "").strip().lower()
        password = (options["password"] or "").strip()

        if not email or not password:
            self.stdout.write(self.style.WARNING("Admin email/password not provided. Skipping."))
            return

        User = get_user_model()

        with transaction.atomic():
            user = User.objects.select_for_update().filter(email=email).first()

            if user is None:
                User.objects.create_superuser(email=email, password=password)
                self.stdout.write(self.style.SUCCESS(f"Admin ensured: {email} (created)"))
                return

            roles = set(user.permissions or [])
            roles.update({ROLE_USER, ROLE_ADMIN})
            user.permissions = sorted(roles)
            user.is_active = True
            user.is_staff = True
            user.is_superuser = True
            user.set_password(password)
            user.save()

            self.stdout.write(self.style.SUCCESS(f"Admin ensured: {email} (updated)"))
