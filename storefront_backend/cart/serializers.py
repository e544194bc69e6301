# cart/serializers.py

from rest_framework import serializers

from cart.models import CartLine
from items.serializers import ItemSerializer


class CartLineSerializer(serializers.ModelSerializer):
    """Cart line with the LIVE item (no price snapshot until checkout)."""

    item = ItemSerializer(read_only=True)
    subtotal = serializers.SerializerMethodField()

    class Meta:
        model = CartLine
        fields = ["id", "item", "quantity", "subtotal", "created_at"]
        read_only_fields = fields

    def get_subtotal(self, obj) -> int:
        return int(obj.item.price) * int(obj.quantity)


class AddLineInputSerializer(serializers.Serializer):
    item_id = serializers.UUIDField()


class CartSerializer(serializers.Serializer):
    lines = CartLineSerializer(many=True)
    total = serializers.IntegerField()
