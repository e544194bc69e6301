# backend/exception_handler.py

"""
API ERROR NORMALIZATION

Every ServiceError renders as:
    {"error": {"code": "...", "message": "..."}}

Checkout failures add "recovery_state" (and "attempt_id" when a charge
attempt needs reconciliation).

Anything else falls through to DRF's default handler.
"""

from __future__ import annotations

import logging

from rest_framework.response import Response
from rest_framework.views import exception_handler

from permissions.exceptions import ServiceError

logger = logging.getLogger(__name__)


def error_response(*, code: str, message: str, http_status: int, **details):
    body = {"code": code, "message": message}
    body.update({k: v for k, v in details.items() if v})
    return Response({"error": body}, status=http_status)


def service_exception_handler(exc, context):
    if isinstance(exc, ServiceError):
        view = context.get("view")
        logger.info(
            "Service error",
            extra={
                "code": exc.code,
                "view": view.__class__.__name__ if view is not None else None,
            },
        )
        return error_response(
            code=exc.code,
            message=exc.message,
            http_status=exc.http_status,
            recovery_state=exc.recovery_state,
            attempt_id=getattr(exc, "attempt_id", ""),
        )

    return exception_handler(exc, context)
