# payments/exceptions.py

"""
PAYMENT ERRORS

Severity tiers:
- PaymentDeclined / PaymentTimeout: terminal for the attempt. Nothing was
  committed; the caller may resubmit with a NEW token.
- ReconciliationRequired / PaymentAmbiguous: money may have moved while our
  records do not show it. Operator action only. Never retried as a fresh
  charge.

recovery_state is filled in by the checkout pipeline with the state the
attempt was in when it failed.
"""

from __future__ import annotations

from rest_framework import status

from permissions.exceptions import ServiceError


class PaymentError(ServiceError):
    code = "PAYMENT_ERROR"
    http_status = status.HTTP_402_PAYMENT_REQUIRED
    default_message = "Payment failed"

    def __init__(self, message: str | None = None, *, recovery_state: str | None = None):
        super().__init__(message)
        self.recovery_state = recovery_state


class PaymentDeclined(PaymentError):
    """Charge explicitly rejected, or never submitted."""

    code = "PAYMENT_DECLINED"
    http_status = status.HTTP_402_PAYMENT_REQUIRED
    default_message = "Your payment was declined"


class PaymentTimeout(PaymentDeclined):
    """Processor unreachable before the charge request was submitted."""

    code = "PAYMENT_TIMEOUT"
    http_status = status.HTTP_504_GATEWAY_TIMEOUT
    default_message = "The payment processor did not respond; you were not charged"


class ReconciliationRequired(PaymentError):
    """Money movement and internal records may have diverged."""

    code = "RECONCILIATION_REQUIRED"
    http_status = status.HTTP_502_BAD_GATEWAY
    default_message = (
        "Your payment could not be confirmed. Do not retry; our team has been notified."
    )

    def __init__(
        self,
        message: str | None = None,
        *,
        recovery_state: str | None = None,
        charge_id: str = "",
        attempt_id: str = "",
    ):
        super().__init__(message, recovery_state=recovery_state)
        self.charge_id = charge_id
        self.attempt_id = attempt_id


class PaymentAmbiguous(ReconciliationRequired):
    """Request reached the processor but its outcome is unknown."""

    code = "PAYMENT_AMBIGUOUS"
