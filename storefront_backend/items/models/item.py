# items/models/item.py

import uuid

from django.conf import settings
from django.db import models

User = settings.AUTH_USER_MODEL


class Item(models.Model):
    """
    A sellable catalog item.

    MONEY MODEL:
    - price is an integer in the smallest currency unit (cents).
    - Orders snapshot these fields at checkout; editing an Item never
      changes historical orders.

    OWNERSHIP:
    - user is the creator. Owner may update/delete; so may role holders
      (see permissions.roles).
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    user = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="items",
        help_text="Creator (back-reference only)",
    )

    title = models.CharField(max_length=255, db_index=True)
    description = models.TextField(blank=True, default="")

    price = models.PositiveIntegerField(
        help_text="Price in the smallest currency unit (e.g. cents)",
    )

    image = models.URLField(max_length=500, blank=True, default="")
    large_image = models.URLField(max_length=500, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def snapshot(self) -> dict:
        """Detached copy of the fields an order line keeps."""
        return {
            "title": self.title,
            "description": self.description,
            "price": int(self.price),
            "image": self.image,
            "large_image": self.large_image,
        }

    def __str__(self):
        return f"{self.title} ({self.price})"
