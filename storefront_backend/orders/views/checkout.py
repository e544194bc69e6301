# orders/views/checkout.py

"""
CHECKOUT API

POST /orders/checkout/  {"token": "<single-use payment token>"}

Responses:
- 201 {"order": {...}, "state": "complete", "warnings": [...]}
- 401 UNAUTHENTICATED
- 402 PAYMENT_DECLINED / 504 PAYMENT_TIMEOUT  (not charged, resubmit with a new token)
- 409 CHECKOUT_IN_PROGRESS / CART_ALREADY_CHECKED_OUT
- 502 PAYMENT_AMBIGUOUS / RECONCILIATION_REQUIRED  (do NOT retry)
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiExample, extend_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.throttling import UserRateThrottle
from rest_framework.views import APIView

from orders.serializers import (
    CheckoutInputSerializer,
    CheckoutResponseSerializer,
    OrderSerializer,
)
from orders.services.checkout_orchestrator import checkout_cart


class CheckoutThrottle(UserRateThrottle):
    scope = "checkout"


class CheckoutView(APIView):
    throttle_classes = [CheckoutThrottle]

    @extend_schema(
        request=CheckoutInputSerializer,
        responses={201: CheckoutResponseSerializer},
        examples=[
            OpenApiExample(
                "Stripe test token",
                value={"token": "tok_visa"},
                request_only=True,
            )
        ],
    )
    def post(self, request):
        serializer = CheckoutInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = checkout_cart(request.auth, token=serializer.validated_data["token"])

        return Response(
            {
                "order": OrderSerializer(result.order).data,
                "state": result.state,
                "warnings": [{"code": w.code, "message": w.message} for w in result.warnings],
            },
            status=status.HTTP_201_CREATED,
        )
