# orders/management/commands/resolve_charge_attempt.py

"""
Close an open ChargeAttempt after out-of-band reconciliation.

Usage:
    python manage.py resolve_charge_attempt <attempt_id> --note "refunded ch_123"
    python manage.py resolve_charge_attempt --list
"""

from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError

from orders.models import ChargeAttempt
from orders.services.reconciliation import resolve_charge_attempt
from permissions.exceptions import ServiceError


class Command(BaseCommand):
    help = "Resolve a charge attempt that needs reconciliation (re-opens its cart snapshot)."

    def add_arguments(self, parser):
        parser.add_argument("attempt_id", nargs="?", default="")
        parser.add_argument("--note", default="")
        parser.add_argument("--actor", default="manage.py")
        parser.add_argument(
            "--list",
            action="store_true",
            help="List attempts waiting for an operator and exit.",
        )

    def handle(self, *args, **options):
        if options["list"]:
            pending = ChargeAttempt.objects.filter(
                status__in=ChargeAttempt.NEEDS_OPERATOR_STATUSES
            ).select_related("user")
            for attempt in pending:
                self.stdout.write(
                    f"{attempt.id}  {attempt.status:<24} {attempt.amount:>10} "
                    f"{attempt.currency}  {attempt.user.email}  {attempt.charge_id or '-'}"
                )
            return

        if not options["attempt_id"]:
            raise CommandError("attempt_id is required (or pass --list)")

        try:
            attempt = resolve_charge_attempt(
                options["attempt_id"],
                note=options["note"],
                actor=options["actor"],
            )
        except ServiceError as exc:
            raise CommandError(exc.message) from exc

        self.stdout.write(self.style.SUCCESS(f"Charge attempt {attempt.id} resolved."))
