# orders/models/order.py

import uuid

from django.conf import settings
from django.db import models


class Order(models.Model):
    """
    Paid order.

    RULES:
    - Created ONLY by the checkout pipeline, together with its lines, in one
      transaction.
    - total is the processor's authoritative charged amount (minor units),
      not the locally computed cart total.
    - Immutable after creation.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders",
    )

    total = models.PositiveIntegerField(help_text="Amount charged, smallest currency unit")
    currency = models.CharField(max_length=8, default="USD")

    charge_id = models.CharField(
        max_length=255,
        db_index=True,
        help_text="External payment processor charge reference",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "created_at"], name="order_user_created_idx"),
        ]

    # ======================================================
    # IMMUTABILITY
    # ======================================================

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise RuntimeError("Order records are immutable")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise RuntimeError("Order records cannot be deleted")

    def __str__(self):
        return f"Order {self.id} | {self.total} {self.currency}"
