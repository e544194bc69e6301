# orders/services/order_access.py

"""
ORDER ACCESS POLICY

can_read(principal, order) := owner OR holds ADMIN.
Owner alone suffices; admin alone suffices.
"""

from __future__ import annotations

from typing import Optional

from django.core.exceptions import ValidationError

from orders.models import Order
from permissions.exceptions import NotFound
from permissions.guard import authorize, require, require_principal
from permissions.roles import ORDER_READ_ROLES, Principal


def can_read(principal: Optional[Principal], order: Order) -> bool:
    return authorize(principal, ORDER_READ_ROLES, owner_id=order.user_id)


def _orders():
    return Order.objects.prefetch_related("items")


def read_order(principal: Optional[Principal], order_id) -> Order:
    principal = require_principal(principal, "You aren't logged in!")

    try:
        order = _orders().filter(pk=order_id).first()
    except (ValueError, ValidationError):
        order = None
    if order is None:
        raise NotFound(f"No order found for id {order_id}")

    require(
        principal,
        ORDER_READ_ROLES,
        owner_id=order.user_id,
        message="You can't see this order",
    )
    return order


def list_orders(principal: Optional[Principal]):
    """The caller's own orders, newest first."""
    principal = require_principal(principal, "You must be signed in!")
    return _orders().filter(user_id=principal.id).order_by("-created_at")
