# permissions/exceptions.py

"""
SERVICE ERRORS

Centralized domain errors raised by services and rendered by
backend.exception_handler.

Each kind carries:
- code: stable machine-readable identifier (API error envelope)
- http_status: status used when the error reaches a view
"""

from __future__ import annotations

from rest_framework import status


class ServiceError(Exception):
    """Base exception for all service-layer failures."""

    code = "SERVICE_ERROR"
    http_status = status.HTTP_400_BAD_REQUEST
    default_message = "Request failed"
    recovery_state = None

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(ServiceError):
    """No valid identity resolved for the caller."""

    code = "UNAUTHENTICATED"
    http_status = status.HTTP_401_UNAUTHORIZED
    default_message = "You must be signed in to do that!"


class Forbidden(ServiceError):
    """Valid identity, insufficient rights."""

    code = "FORBIDDEN"
    http_status = status.HTTP_403_FORBIDDEN
    default_message = "You don't have permission to do that!"


class NotFound(ServiceError):
    code = "NOT_FOUND"
    http_status = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class ValidationFailed(ServiceError):
    code = "VALIDATION_FAILED"
    http_status = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input"
