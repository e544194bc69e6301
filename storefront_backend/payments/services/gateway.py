# payments/services/gateway.py

"""
PAYMENT GATEWAY CONTRACT

charge(amount, currency, token, *, idempotency_key, timeout) -> ChargeResult

Implementations MUST:
- raise PaymentDeclined (or PaymentTimeout) only when no money can have moved
- raise PaymentAmbiguous when the request may have reached the processor
- return amount_charged as reported by the processor (source of truth)

The active gateway is the dotted path in settings.PAYMENTS["GATEWAY"].
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from django.conf import settings
from django.utils.module_loading import import_string


@dataclass(frozen=True)
class ChargeResult:
    charge_id: str
    amount_charged: int
    currency: str = ""
    raw: dict = field(default_factory=dict, compare=False, repr=False)


class PaymentGateway:
    name = "base"

    def charge(
        self,
        amount: int,
        currency: str,
        token: str,
        *,
        idempotency_key: str,
        timeout: Optional[float] = None,
    ) -> ChargeResult:
        raise NotImplementedError


def payments_config() -> dict:
    cfg = getattr(settings, "PAYMENTS", None) or {}
    return cfg if isinstance(cfg, dict) else {}


def get_payment_gateway() -> PaymentGateway:
    path = payments_config().get("GATEWAY") or "payments.services.stripe.StripeGateway"
    return import_string(path)()


def default_currency() -> str:
    return str(payments_config().get("CURRENCY") or "USD").upper()


def default_timeout() -> float:
    return float(payments_config().get("TIMEOUT_SECONDS") or 25)
