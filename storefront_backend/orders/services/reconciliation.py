# orders/services/reconciliation.py

"""
CHARGE ATTEMPT RECONCILIATION (OPERATOR ONLY)

An open ChargeAttempt blocks re-charging its cart snapshot. Resolving it
records what the operator did out-of-band (refund, manual order, confirmed
no charge) and re-opens the snapshot for checkout.

Not reachable from the public API: admin action + management command.
"""

from __future__ import annotations

import logging

from django.core.exceptions import ValidationError
from django.db import transaction

from orders.models import ChargeAttempt
from permissions.exceptions import NotFound, ValidationFailed

payments_logger = logging.getLogger("payments")


@transaction.atomic
def resolve_charge_attempt(attempt_id, *, note: str, actor: str = "") -> ChargeAttempt:
    note = (note or "").strip()
    if not note:
        raise ValidationFailed("A resolution note is required")

    try:
        attempt = ChargeAttempt.objects.select_for_update().filter(pk=attempt_id).first()
    except (ValueError, ValidationError):
        attempt = None
    if attempt is None:
        raise NotFound(f"No charge attempt found for id {attempt_id}")

    if not attempt.is_open:
        raise ValidationFailed(f"Charge attempt {attempt.id} is already {attempt.status}")

    previous = attempt.status
    attempt.mark_resolved(f"{actor}: {note}" if actor else note)
    attempt.save(update_fields=["status", "resolution_note", "resolved_at", "updated_at"])

    payments_logger.warning(
        "Charge attempt resolved by operator",
        extra={
            "attempt_id": str(attempt.id),
            "previous_status": previous,
            "charge_id": attempt.charge_id,
            "actor": actor,
        },
    )
    return attempt
