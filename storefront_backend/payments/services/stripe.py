# payments/services/stripe.py
from __future__ import annotations

import json
import logging
from http.client import HTTPException
from typing import Any, Optional
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from django.core.exceptions import ImproperlyConfigured

from payments.exceptions import PaymentAmbiguous, PaymentDeclined, PaymentTimeout
from payments.services.gateway import (
    ChargeResult,
    PaymentGateway,
    default_timeout,
    payments_config,
)

logger = logging.getLogger(__name__)

STRIPE_BASE = "https://api.stripe.com"

# Stripe answers 409 while a request with the same Idempotency-Key is still
# being processed, so the first request's outcome is unknown.
AMBIGUOUS_CLIENT_STATUSES = {409}


def _stripe_cfg() -> dict:
    cfg = payments_config().get("STRIPE") or {}
    return cfg if isinstance(cfg, dict) else {}


def _get_secret_key() -> str:
    sk = (_stripe_cfg().get("SECRET_KEY") or "").strip()
    if not sk:
        raise ImproperlyConfigured(
            "STRIPE SECRET_KEY is not configured. "
            "Expected settings.PAYMENTS['STRIPE']['SECRET_KEY'] (env STRIPE_SECRET_KEY)."
        )
    return sk


def _safe_preview(text: str, limit: int = 800) -> str:
    text = (text or "").strip()
    if len(text) <= limit:
        return text
    return text[:limit] + " ...(truncated)"


def _parse_json_or_text(raw: str) -> dict[str, Any]:
    raw = raw or ""
    try:
        parsed = json.loads(raw)
    except ValueError:
        return {"kind": "text", "raw": raw}
    if isinstance(parsed, dict):
        return {"kind": "json", "json": parsed, "raw": raw}
    return {"kind": "json_non_object", "json": parsed, "raw": raw}


def _error_message(parsed_any: dict, fallback: str) -> str:
    if parsed_any.get("kind") == "json":
        err = (parsed_any.get("json") or {}).get("error") or {}
        if isinstance(err, dict):
            return str(err.get("message") or err.get("code") or fallback)
    return _safe_preview(parsed_any.get("raw") or "") or fallback


def _post_form(path: str, *, form: dict, idempotency_key: str, timeout: float) -> dict[str, Any]:
    """
    POST a form-encoded body to Stripe.

    Failure mapping:
    - HTTPError 4xx          -> PaymentDeclined (processor rejected it)
    - HTTPError 409 / 5xx    -> PaymentAmbiguous
    - URLError               -> PaymentTimeout (request never submitted)
    - OSError/HTTPException
      while awaiting reply   -> PaymentAmbiguous
    - non-JSON 2xx body      -> PaymentAmbiguous
    """
    sk = _get_secret_key()

    req = Request(
        f"{STRIPE_BASE}{path}",
        data=urlencode(form).encode("utf-8"),
        headers={
            "Authorization": f"Bearer {sk}",
            "Content-Type": "application/x-www-form-urlencoded",
            "Accept": "application/json",
            "Idempotency-Key": idempotency_key,
            "User-Agent": "StorefrontBackend (StripeClient) Python-urllib",
        },
        method="POST",
    )

    try:
        with urlopen(req, timeout=timeout) as resp:
            raw = resp.read().decode("utf-8", errors="replace")
    except HTTPError as e:
        try:
            body = e.read().decode("utf-8", errors="replace")
        except OSError:
            body = ""
        parsed_any = _parse_json_or_text(body)
        msg = _error_message(parsed_any, f"Stripe HTTP {e.code}")

        if e.code >= 500 or e.code in AMBIGUOUS_CLIENT_STATUSES:
            raise PaymentAmbiguous(f"Stripe HTTPError: {e.code} {msg}") from e
        raise PaymentDeclined(msg) from e
    except URLError as e:
        # raised while connecting/sending: the charge request was not submitted
        raise PaymentTimeout(f"Stripe unreachable: {e.reason}") from e
    except (OSError, HTTPException) as e:
        # raised while awaiting the response: the request may have been processed
        raise PaymentAmbiguous(f"Stripe response lost: {e!r}") from e

    parsed_any = _parse_json_or_text(raw)
    if parsed_any.get("kind") != "json":
        raise PaymentAmbiguous(
            f"Stripe returned non-JSON: {_safe_preview(parsed_any.get('raw') or '')}"
        )

    return parsed_any.get("json") or {}


class StripeGateway(PaymentGateway):
    """
    Stripe Charges API client.

    The Idempotency-Key is the checkout attempt id, so a replay of the same
    attempt can never produce a second charge at Stripe.
    """

    name = "stripe"

    def charge(
        self,
        amount: int,
        currency: str,
        token: str,
        *,
        idempotency_key: str,
        timeout: Optional[float] = None,
    ) -> ChargeResult:
        token = str(token or "").strip()
        if not token:
            raise PaymentDeclined("A payment token is required")

        _get_secret_key()

        form = {
            "amount": int(amount),
            "currency": str(currency).lower(),
            "source": token,
            "metadata[attempt_id]": idempotency_key,
        }

        data = _post_form(
            "/v1/charges",
            form=form,
            idempotency_key=idempotency_key,
            timeout=timeout if timeout is not None else default_timeout(),
        )

        charge_status = str(data.get("status") or "").strip().lower()
        if charge_status == "failed":
            raise PaymentDeclined(
                data.get("failure_message") or "Your payment was declined"
            )

        charge_id = str(data.get("id") or "").strip()
        if not charge_id:
            raise PaymentAmbiguous("Stripe response has no charge id")

        amount_charged = data.get("amount_captured")
        if amount_charged is None:
            amount_charged = data.get("amount")
        try:
            amount_charged = int(amount_charged)
        except (TypeError, ValueError) as exc:
            raise PaymentAmbiguous(
                f"Stripe charge {charge_id} has no usable amount"
            ) from exc

        logger.info(
            "Stripe charge created",
            extra={
                "charge_id": charge_id,
                "amount": int(amount),
                "amount_charged": amount_charged,
                "status": charge_status,
            },
        )

        return ChargeResult(
            charge_id=charge_id,
            amount_charged=amount_charged,
            currency=str(data.get("currency") or currency).upper(),
            raw=data,
        )
