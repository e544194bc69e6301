# orders/services/exceptions.py

"""
CHECKOUT ERRORS

Abort the pipeline:
- PaymentDeclined / PaymentTimeout      (terminal, nothing committed)
- PaymentAmbiguous / ReconciliationRequired (money may have moved)
- CheckoutInProgress                    (same snapshot already being charged)
- CartAlreadyCheckedOut                 (snapshot belongs to a finished order)

Does NOT abort:
- CartClearFailed (reported as a warning next to the persisted Order)
"""

from __future__ import annotations

from rest_framework import status

from payments.exceptions import (
    PaymentAmbiguous,
    PaymentDeclined,
    PaymentError,
    PaymentTimeout,
    ReconciliationRequired,
)
from permissions.exceptions import ServiceError


class CheckoutInProgress(ServiceError):
    code = "CHECKOUT_IN_PROGRESS"
    http_status = status.HTTP_409_CONFLICT
    default_message = "A checkout for this cart is already in progress"


class CartAlreadyCheckedOut(ServiceError):
    code = "CART_ALREADY_CHECKED_OUT"
    http_status = status.HTTP_409_CONFLICT
    default_message = "These cart items were already ordered; your cart has been refreshed"

    def __init__(self, message: str | None = None, *, order_id: str = ""):
        super().__init__(message)
        self.order_id = order_id


class CartClearFailed(ServiceError):
    """Warning only: the order is valid, some purchased lines remain in the cart."""

    code = "CART_CLEAR_FAILED"
    http_status = status.HTTP_200_OK
    default_message = "Your order was placed but your cart could not be emptied"


__all__ = [
    "CartAlreadyCheckedOut",
    "CartClearFailed",
    "CheckoutInProgress",
    "PaymentAmbiguous",
    "PaymentDeclined",
    "PaymentError",
    "PaymentTimeout",
    "ReconciliationRequired",
]
