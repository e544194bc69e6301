"""
PATH: users/authentication.py

DRF AUTHENTICATION: signed credential -> (user, Principal)

Credential sources (first non-empty wins):
1) Authorization: Bearer <token>
2) settings.TOKEN_COOKIE_NAME cookie (browser storefront)

An invalid credential does NOT fail the request; the caller is simply
anonymous and services decide whether that is acceptable.
"""

from __future__ import annotations

from django.conf import settings
from rest_framework.authentication import BaseAuthentication, get_authorization_header

from permissions.roles import Principal
from users.services.identity import resolve_user

AUTH_HEADER_TYPE = b"bearer"


def credential_from_request(request) -> str:
    parts = get_authorization_header(request).split()
    if len(parts) == 2 and parts[0].lower() == AUTH_HEADER_TYPE:
        return parts[1].decode("utf-8", errors="ignore")

    return (request.COOKIES.get(settings.TOKEN_COOKIE_NAME) or "").strip()


class CredentialAuthentication(BaseAuthentication):
    def authenticate(self, request):
        credential = credential_from_request(request)
        if not credential:
            return None

        user = resolve_user(credential)
        if user is None:
            return None

        return (user, Principal.for_user(user))

    def authenticate_header(self, request):
        return 'Bearer realm="api"'
