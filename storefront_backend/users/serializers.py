# users/serializers.py

from rest_framework import serializers
from django.contrib.auth import get_user_model

from permissions.roles import ALL_ROLES

User = get_user_model()


# ---------------- INPUT ----------------
class SignupSerializer(serializers.Serializer):
    email = serializers.EmailField()
    name = serializers.CharField(required=False, allow_blank=True, default="")
    password = serializers.CharField(
        write_only=True,
        style={"input_type": "password"},
    )


class SigninSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(
        write_only=True,
        style={"input_type": "password"},
    )


class RequestResetSerializer(serializers.Serializer):
    email = serializers.EmailField()


class ResetPasswordSerializer(serializers.Serializer):
    reset_token = serializers.CharField()
    password = serializers.CharField(write_only=True, style={"input_type": "password"})
    confirm_password = serializers.CharField(write_only=True, style={"input_type": "password"})


class UpdatePermissionsSerializer(serializers.Serializer):
    permissions = serializers.ListField(
        child=serializers.ChoiceField(choices=sorted(ALL_ROLES)),
        allow_empty=True,
    )


# ---------------- OUTPUT ----------------
class UserSerializer(serializers.ModelSerializer):
    """
    Safe user representation for frontend consumption.
    """

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "name",
            "permissions",
        ]
        read_only_fields = fields


class MessageSerializer(serializers.Serializer):
    message = serializers.CharField()
