# orders/serializers.py

from rest_framework import serializers

from orders.models import Order, OrderLine


class OrderLineSerializer(serializers.ModelSerializer):
    subtotal = serializers.IntegerField(read_only=True)

    class Meta:
        model = OrderLine
        fields = [
            "id",
            "title",
            "description",
            "price",
            "quantity",
            "subtotal",
            "image",
            "large_image",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Orders are immutable; every field is read-only."""

    user = serializers.UUIDField(source="user_id", read_only=True)
    items = OrderLineSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = ["id", "user", "total", "currency", "charge_id", "items", "created_at"]
        read_only_fields = fields


class CheckoutInputSerializer(serializers.Serializer):
    token = serializers.CharField(max_length=255, help_text="Single-use payment token")


class CheckoutWarningSerializer(serializers.Serializer):
    code = serializers.CharField()
    message = serializers.CharField()


class CheckoutResponseSerializer(serializers.Serializer):
    order = OrderSerializer()
    state = serializers.CharField()
    warnings = CheckoutWarningSerializer(many=True)

