# users/views/auth.py

"""
USER AUTH VIEWS

Security hardening:
- Targeted throttling for anonymous write endpoints (scope "auth")
- Credential is set as an httpOnly cookie AND returned in the body so
  non-browser clients can use the Authorization header.
"""

from __future__ import annotations

from django.conf import settings
from drf_spectacular.utils import extend_schema
from rest_framework import serializers, status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle
from rest_framework.views import APIView

from users.serializers import (
    MessageSerializer,
    RequestResetSerializer,
    ResetPasswordSerializer,
    SigninSerializer,
    SignupSerializer,
    UserSerializer,
)
from users.services import account_service


class AuthAnonThrottle(AnonRateThrottle):
    scope = "auth"


class CredentialResponseSerializer(serializers.Serializer):
    token = serializers.CharField()
    user = UserSerializer()


def set_credential_cookie(response: Response, credential: str) -> Response:
    response.set_cookie(
        settings.TOKEN_COOKIE_NAME,
        credential,
        max_age=int(settings.TOKEN_LIFETIME.total_seconds()),
        httponly=True,
        secure=settings.TOKEN_COOKIE_SECURE,
        samesite="Lax",
    )
    return response


def credential_response(user, credential: str, *, http_status=status.HTTP_200_OK) -> Response:
    response = Response(
        {"token": credential, "user": UserSerializer(user).data},
        status=http_status,
    )
    return set_credential_cookie(response, credential)


# ---------------- SIGNUP ----------------
class SignupView(APIView):
    permission_classes = [AllowAny]
    throttle_classes = [AuthAnonThrottle]

    @extend_schema(
        request=SignupSerializer,
        responses={201: CredentialResponseSerializer},
        description="Create an account (granted USER) and sign in",
    )
    def post(self, request):
        serializer = SignupSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        user, credential = account_service.signup(
            email=data["email"],
            password=data["password"],
            name=data.get("name", ""),
        )
        return credential_response(user, credential, http_status=status.HTTP_201_CREATED)


# ---------------- SIGNIN ----------------
class SigninView(APIView):
    permission_classes = [AllowAny]
    throttle_classes = [AuthAnonThrottle]

    @extend_schema(
        request=SigninSerializer,
        responses={200: CredentialResponseSerializer},
        description="Authenticate with email and password",
    )
    def post(self, request):
        serializer = SigninSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        user, credential = account_service.signin(
            email=data["email"],
            password=data["password"],
        )
        return credential_response(user, credential)


# ---------------- SIGNOUT ----------------
class SignoutView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(request=None, responses={200: MessageSerializer})
    def post(self, request):
        response = Response({"message": "Goodbye!"}, status=status.HTTP_200_OK)
        response.delete_cookie(settings.TOKEN_COOKIE_NAME, samesite="Lax")
        return response


# ---------------- PASSWORD RESET ----------------
class RequestResetView(APIView):
    permission_classes = [AllowAny]
    throttle_classes = [AuthAnonThrottle]

    @extend_schema(
        request=RequestResetSerializer,
        responses={200: MessageSerializer},
        description="Email a one-hour password reset link",
    )
    def post(self, request):
        serializer = RequestResetSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = account_service.request_reset(email=serializer.validated_data["email"])
        return Response(result, status=status.HTTP_200_OK)


class ResetPasswordView(APIView):
    permission_classes = [AllowAny]
    throttle_classes = [AuthAnonThrottle]

    @extend_schema(
        request=ResetPasswordSerializer,
        responses={200: CredentialResponseSerializer},
        description="Set a new password using a reset token, then sign in",
    )
    def post(self, request):
        serializer = ResetPasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        user, credential = account_service.reset_password(
            reset_token=data["reset_token"],
            password=data["password"],
            confirm_password=data["confirm_password"],
        )
        return credential_response(user, credential)
