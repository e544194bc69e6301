# orders/models/order_line.py

import uuid

from django.conf import settings
from django.db import models


class OrderLine(models.Model):
    """
    Snapshot of a purchased item.

    No foreign key to Item: later catalog edits or deletes never change
    historical orders.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="order_lines",
    )

    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    price = models.PositiveIntegerField(help_text="Unit price at purchase, smallest currency unit")
    quantity = models.PositiveIntegerField()
    image = models.URLField(max_length=500, blank=True, default="")
    large_image = models.URLField(max_length=500, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise RuntimeError("OrderLine records are immutable")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise RuntimeError("OrderLine records cannot be deleted")

    @property
    def subtotal(self) -> int:
        return int(self.price) * int(self.quantity)

    def __str__(self):
        return f"{self.quantity} x {self.title}"
