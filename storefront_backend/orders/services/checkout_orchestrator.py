# orders/services/checkout_orchestrator.py

"""
CHECKOUT ORCHESTRATOR (APPLICATION SERVICE)

Purpose:
- Turn the caller's cart into a paid Order.

Pipeline (see checkout_lifecycle):
    idle -> cart_loaded -> priced -> charged -> order_persisted
         -> cart_cleared -> complete
    any step -> failed (error carries recovery_state)

Hard rules:
- Money is integer minor units; the total is computed server-side.
- The charge is the only irreversible step. Nothing after it may cause a
  second charge: post-charge failures become ReconciliationRequired.
- Order.total is the processor's amount_charged, not the local total.
- Order + OrderLines are written in ONE DB transaction.
- Cart clearing deletes exactly the line ids loaded at the start, so lines
  added during checkout survive. Failure to clear is a warning only.

RE-CHARGE PROTECTION:
- Every run opens a ChargeAttempt keyed by (user, cart fingerprint). While
  an open attempt exists for a snapshot, that snapshot cannot be charged
  again; an operator must resolve it (orders.services.reconciliation).
- The attempt id is the processor Idempotency-Key.
"""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from django.core.exceptions import ImproperlyConfigured
from django.db import DatabaseError, IntegrityError, transaction

from cart.services import cart_store
from cart.services.cart_store import LineSnapshot
from orders.models import ChargeAttempt, Order, OrderLine
from orders.services import checkout_lifecycle as lifecycle
from orders.services.exceptions import (
    CartAlreadyCheckedOut,
    CartClearFailed,
    CheckoutInProgress,
    PaymentAmbiguous,
    PaymentDeclined,
    ReconciliationRequired,
)
from payments.services.gateway import (
    PaymentGateway,
    default_currency,
    default_timeout,
    get_payment_gateway,
)
from permissions.exceptions import ValidationFailed
from permissions.guard import require_principal
from permissions.roles import Principal

logger = logging.getLogger(__name__)
payments_logger = logging.getLogger("payments")


@dataclass
class CheckoutResult:
    order: Order
    state: str
    warnings: list = field(default_factory=list)


class _Run:
    """Tracks the pipeline state for one checkout call."""

    def __init__(self):
        self.state = lifecycle.IDLE

    def advance(self, to_state: str):
        self.state = lifecycle.validate_transition(from_state=self.state, to_state=to_state)

    def fail(self, exc):
        exc.recovery_state = self.state
        self.state = lifecycle.FAILED
        return exc


# =====================================================
# PURE HELPERS
# =====================================================

def price_lines(lines: Sequence[LineSnapshot]) -> int:
    return sum(int(line.price) * int(line.quantity) for line in lines)


def cart_fingerprint(lines: Sequence[LineSnapshot]) -> Optional[str]:
    """
    Stable hash of a cart snapshot, or None for an empty cart.

    Any change to a line id, item, quantity or price yields a new fingerprint.
    """
    if not lines:
        return None

    rows = sorted(
        [line.line_id, line.item_id, int(line.quantity), int(line.price)] for line in lines
    )
    payload = json.dumps(rows, separators=(",", ":"))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


# =====================================================
# CHARGE LEDGER
# =====================================================

def _retry_clear(principal: Principal, attempt: ChargeAttempt):
    try:
        cart_store.delete_lines(principal, attempt.line_ids or [])
    except DatabaseError:
        logger.warning(
            "Stale cart lines could not be cleared",
            extra={"user_id": principal.id, "attempt_id": str(attempt.id)},
            exc_info=True,
        )


def _refuse_open_attempt(principal: Principal, attempt: ChargeAttempt):
    if attempt.status == ChargeAttempt.STATUS_COMPLETED:
        _retry_clear(principal, attempt)
        raise CartAlreadyCheckedOut(order_id=str(attempt.order_id or ""))

    if attempt.status == ChargeAttempt.STATUS_PENDING:
        raise CheckoutInProgress()

    payments_logger.critical(
        "Checkout refused: snapshot has an unresolved charge attempt",
        extra={
            "user_id": principal.id,
            "attempt_id": str(attempt.id),
            "attempt_status": attempt.status,
            "charge_id": attempt.charge_id,
        },
    )
    raise ReconciliationRequired(
        charge_id=attempt.charge_id,
        attempt_id=str(attempt.id),
    )


def _open_attempt(
    principal: Principal,
    *,
    lines: Sequence[LineSnapshot],
    amount: int,
    currency: str,
) -> ChargeAttempt:
    fingerprint = cart_fingerprint(lines)

    if fingerprint is not None:
        existing = (
            ChargeAttempt.objects.filter(
                user_id=principal.id,
                fingerprint=fingerprint,
                status__in=ChargeAttempt.OPEN_STATUSES,
            )
            .order_by("-created_at")
            .first()
        )
        if existing is not None:
            _refuse_open_attempt(principal, existing)

    try:
        with transaction.atomic():
            return ChargeAttempt.objects.create(
                user_id=principal.user_pk,
                fingerprint=fingerprint,
                line_ids=[line.line_id for line in lines],
                amount=amount,
                currency=currency,
            )
    except IntegrityError as exc:
        # a concurrent checkout of the same snapshot won the constraint
        raise CheckoutInProgress() from exc


def _save_attempt(attempt: ChargeAttempt):
    try:
        attempt.save()
    except DatabaseError:
        payments_logger.critical(
            "Could not record charge attempt outcome",
            extra={"attempt_id": str(attempt.id), "attempt_status": attempt.status},
            exc_info=True,
        )


# =====================================================
# PIPELINE
# =====================================================

def checkout_cart(
    principal: Optional[Principal],
    *,
    token: str,
    gateway: Optional[PaymentGateway] = None,
    timeout: Optional[float] = None,
    currency: Optional[str] = None,
) -> CheckoutResult:
    principal = require_principal(principal, "You must be signed in to complete this order.")

    token = str(token or "").strip()
    if not token:
        raise ValidationFailed("A payment token is required")

    gateway = gateway or get_payment_gateway()
    currency = (currency or default_currency()).upper()
    timeout = default_timeout() if timeout is None else timeout

    run = _Run()

    # 1) load
    lines = cart_store.snapshot_lines(principal)
    run.advance(lifecycle.CART_LOADED)

    # 2) price
    amount = price_lines(lines)
    run.advance(lifecycle.PRICED)

    try:
        attempt = _open_attempt(principal, lines=lines, amount=amount, currency=currency)
    except (CheckoutInProgress, CartAlreadyCheckedOut, ReconciliationRequired) as exc:
        raise run.fail(exc)

    log_ctx = {
        "user_id": principal.id,
        "attempt_id": str(attempt.id),
        "amount": amount,
        "currency": currency,
        "lines": len(lines),
    }

    # 3) charge
    try:
        charge = gateway.charge(
            amount,
            currency,
            token,
            idempotency_key=str(attempt.id),
            timeout=timeout,
        )
    except PaymentDeclined as exc:
        attempt.mark_declined(exc.message)
        _save_attempt(attempt)
        payments_logger.warning("Charge declined: %s", exc.message, extra=log_ctx)
        raise run.fail(exc)
    except ImproperlyConfigured as exc:
        # raised before any request is built
        attempt.mark_declined(str(exc))
        _save_attempt(attempt)
        payments_logger.error("Payment gateway misconfigured: %s", exc, extra=log_ctx)
        raise
    except ReconciliationRequired as exc:
        attempt.mark_ambiguous(exc.message)
        _save_attempt(attempt)
        exc.attempt_id = str(attempt.id)
        payments_logger.critical("Charge outcome unknown: %s", exc.message, extra=log_ctx)
        raise run.fail(exc)
    except Exception as exc:
        # unclassified gateway failure: the request may have been sent
        attempt.mark_ambiguous(repr(exc))
        _save_attempt(attempt)
        payments_logger.critical("Charge raised unexpectedly", extra=log_ctx, exc_info=True)
        raise run.fail(PaymentAmbiguous(attempt_id=str(attempt.id))) from exc

    run.advance(lifecycle.CHARGED)
    log_ctx.update(charge_id=charge.charge_id, amount_charged=charge.amount_charged)

    if charge.amount_charged != amount:
        payments_logger.warning("Processor charged a different amount", extra=log_ctx)

    # 4) materialize
    try:
        attempt.mark_charged(charge_id=charge.charge_id, amount_charged=charge.amount_charged)
        attempt.save()

        with transaction.atomic():
            order = Order.objects.create(
                user_id=principal.user_pk,
                total=charge.amount_charged,
                currency=currency,
                charge_id=charge.charge_id,
            )
            OrderLine.objects.bulk_create(
                [
                    OrderLine(order=order, user_id=principal.user_pk, **line.order_line_fields())
                    for line in lines
                ]
            )
            attempt.mark_completed(order)
            attempt.save(update_fields=["status", "order", "updated_at"])
    except Exception as exc:
        attempt.mark_charged(charge_id=charge.charge_id, amount_charged=charge.amount_charged)
        attempt.mark_reconciliation_required(repr(exc))
        attempt.order = None
        _save_attempt(attempt)
        payments_logger.critical(
            "Charged but order was not persisted", extra=log_ctx, exc_info=True
        )
        raise run.fail(
            ReconciliationRequired(
                charge_id=charge.charge_id,
                attempt_id=str(attempt.id),
            )
        ) from exc

    run.advance(lifecycle.ORDER_PERSISTED)
    warnings = []

    # 5) clear exactly the loaded lines
    try:
        cart_store.delete_lines(principal, [line.line_id for line in lines])
        run.advance(lifecycle.CART_CLEARED)
    except DatabaseError:
        warnings.append(CartClearFailed())
        logger.warning(
            "Order placed but cart lines were not cleared",
            extra={**log_ctx, "order_id": str(order.id)},
            exc_info=True,
        )

    run.advance(lifecycle.COMPLETE)

    logger.info("Checkout complete", extra={**log_ctx, "order_id": str(order.id)})
    return CheckoutResult(order=order, state=run.state, warnings=warnings)
