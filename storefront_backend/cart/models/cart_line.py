# cart/models/cart_line.py

"""
CART LINE MODEL

Purpose:
- One (user, item, quantity) record in a shopping cart.
- Price is NOT snapshotted here; the live Item price is read until checkout.

Rules:
- One line per (user, item) (DB constraint).
- Quantity must be >= 1.
"""

import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

from items.models import Item


class CartLine(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="cart_lines",
    )

    item = models.ForeignKey(
        Item,
        on_delete=models.CASCADE,
        related_name="cart_lines",
    )

    quantity = models.PositiveIntegerField(default=1, help_text="Must be at least one")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["user", "item"],
                name="unique_item_per_user_cart",
            ),
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="cart_line_quantity_positive",
            ),
        ]

    def clean(self):
        if self.quantity is None or int(self.quantity) < 1:
            raise ValidationError({"quantity": "Quantity must be at least one"})

    def __str__(self):
        return f"{self.quantity} x {self.item_id} for {self.user_id}"
