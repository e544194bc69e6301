# items/serializers.py

from rest_framework import serializers

from items.models import Item


class ItemSerializer(serializers.ModelSerializer):
    """
    Canonical Item serializer.

    - price is an integer (smallest currency unit), never a float.
    - owner is read-only: it is always the creating principal.
    """

    user = serializers.UUIDField(source="user_id", read_only=True)

    class Meta:
        model = Item
        fields = [
            "id",
            "user",
            "title",
            "description",
            "price",
            "image",
            "large_image",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "user", "created_at", "updated_at"]


class ItemWriteSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True)
    price = serializers.IntegerField(min_value=0)
    image = serializers.URLField(required=False, allow_blank=True, max_length=500)
    large_image = serializers.URLField(required=False, allow_blank=True, max_length=500)
