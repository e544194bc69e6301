# items/services/item_service.py

"""
ITEM SERVICE (CATALOG WRITES)

Policy:
- create: any authenticated principal; creator becomes owner.
- update: owner OR ADMIN / ITEMUPDATE.
- delete: owner OR ADMIN / ITEMDELETE.
"""

from __future__ import annotations

import logging
from typing import Optional

from django.core.exceptions import ValidationError

from items.models import Item
from permissions.exceptions import NotFound
from permissions.guard import require, require_principal
from permissions.roles import ITEM_DELETE_ROLES, ITEM_UPDATE_ROLES, Principal

logger = logging.getLogger(__name__)

WRITABLE_FIELDS = ("title", "description", "price", "image", "large_image")


def get_item(item_id) -> Item:
    try:
        item = Item.objects.filter(pk=item_id).first()
    except (ValueError, ValidationError):
        item = None
    if item is None:
        raise NotFound(f"No item found for id {item_id}")
    return item


def create_item(principal: Optional[Principal], **fields) -> Item:
    principal = require_principal(principal, "You must be logged in to do that!")

    data = {k: v for k, v in fields.items() if k in WRITABLE_FIELDS}
    item = Item.objects.create(user_id=principal.user_pk, **data)

    logger.info("Item created", extra={"item_id": str(item.id), "user_id": principal.id})
    return item


def update_item(principal: Optional[Principal], item_id, **changes) -> Item:
    item = get_item(item_id)
    require(principal, ITEM_UPDATE_ROLES, owner_id=item.user_id)

    dirty = [k for k in WRITABLE_FIELDS if k in changes]
    for field_name in dirty:
        setattr(item, field_name, changes[field_name])

    if dirty:
        item.save(update_fields=dirty + ["updated_at"])

    logger.info("Item updated", extra={"item_id": str(item.id), "fields": dirty})
    return item


def delete_item(principal: Optional[Principal], item_id) -> Item:
    item = get_item(item_id)
    require(principal, ITEM_DELETE_ROLES, owner_id=item.user_id)

    item.delete()

    logger.info("Item deleted", extra={"item_id": str(item_id), "actor_id": principal.id})
    return item
