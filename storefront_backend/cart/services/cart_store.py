# cart/services/cart_store.py

"""
CART STORE

Operations:
- add_line(principal, item_id)       -> CartLine (quantity+1 if present)
- remove_line(principal, line_id)    -> CartLine (owner only)
- list_lines(principal)              -> QuerySet joined with live Item data
- snapshot_lines(principal)          -> tuple[LineSnapshot, ...] (checkout input)
- delete_lines(principal, line_ids)  -> int (exactly those ids, caller-owned)

CONCURRENCY:
- add_line is atomic per (user, item): a conditional F() increment first,
  then an insert guarded by the unique constraint. An insert that loses the
  race falls back to the increment, so two concurrent adds never produce
  two lines.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.db.models import F

from cart.models import CartLine
from items.models import Item
from permissions.exceptions import NotFound
from permissions.guard import require_owner, require_principal
from permissions.roles import Principal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LineSnapshot:
    """Immutable view of a cart line plus the Item fields at load time."""

    line_id: str
    item_id: str
    quantity: int
    title: str
    description: str
    price: int
    image: str
    large_image: str

    @property
    def subtotal(self) -> int:
        return self.price * self.quantity

    def order_line_fields(self) -> dict:
        return {
            "title": self.title,
            "description": self.description,
            "price": self.price,
            "image": self.image,
            "large_image": self.large_image,
            "quantity": self.quantity,
        }


def _increment(user_id, item_id) -> int:
    return CartLine.objects.filter(user_id=user_id, item_id=item_id).update(
        quantity=F("quantity") + 1
    )


# =====================================================
# WRITES
# =====================================================

def add_line(principal: Optional[Principal], item_id) -> CartLine:
    principal = require_principal(principal, "You must be signed in to add to your cart")

    try:
        item_exists = Item.objects.filter(pk=item_id).exists()
    except (ValueError, ValidationError):
        item_exists = False
    if not item_exists:
        raise NotFound(f"No item found for id {item_id}")

    with transaction.atomic():
        if not _increment(principal.id, item_id):
            try:
                with transaction.atomic():
                    CartLine.objects.create(user_id=principal.user_pk, item_id=item_id, quantity=1)
            except IntegrityError:
                # lost the insert race; the other writer's line exists now
                _increment(principal.id, item_id)

        line = CartLine.objects.select_related("item").get(user_id=principal.id, item_id=item_id)

    logger.info(
        "Cart line added",
        extra={"user_id": principal.id, "item_id": str(item_id), "quantity": line.quantity},
    )
    return line


def remove_line(principal: Optional[Principal], line_id) -> CartLine:
    principal = require_principal(principal, "You must be signed in to change your cart")

    try:
        line = CartLine.objects.filter(pk=line_id).first()
    except (ValueError, ValidationError):
        line = None
    if line is None:
        raise NotFound("No cart line found")

    # ownership only, no role alternative
    require_owner(principal, line.user_id, "You do not own that cart line")

    line.delete()

    logger.info("Cart line removed", extra={"user_id": principal.id, "line_id": str(line_id)})
    return line


def delete_lines(principal: Principal, line_ids: Iterable) -> int:
    """Delete exactly ``line_ids`` that the caller owns; other rows are untouched."""
    ids = [str(x) for x in line_ids]
    if not ids:
        return 0

    deleted, _ = CartLine.objects.filter(user_id=principal.id, id__in=ids).delete()
    return deleted


# =====================================================
# READS
# =====================================================

def list_lines(principal: Optional[Principal]):
    principal = require_principal(principal, "You must be signed in to view your cart")
    return CartLine.objects.filter(user_id=principal.id).select_related("item").order_by("created_at")


def snapshot_lines(principal: Principal) -> Tuple[LineSnapshot, ...]:
    rows = CartLine.objects.filter(user_id=principal.id).select_related("item").order_by("created_at")

    return tuple(
        LineSnapshot(
            line_id=str(line.id),
            item_id=str(line.item_id),
            quantity=int(line.quantity),
            **line.item.snapshot(),
        )
        for line in rows
    )
