# users/views/admin_users.py

"""
USER ADMINISTRATION VIEWS

Policy:
- Listing users and changing roles both require ADMIN or PERMISSIONUPDATE.
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from permissions.drf import HasAnyRole
from permissions.roles import PERMISSION_UPDATE_ROLES
from users.serializers import UpdatePermissionsSerializer, UserSerializer
from users.services import account_service


class UserListView(APIView):
    permission_classes = [HasAnyRole]
    required_any_roles = PERMISSION_UPDATE_ROLES

    @extend_schema(responses={200: UserSerializer(many=True)})
    def get(self, request):
        users = account_service.list_users(request.auth)
        return Response(UserSerializer(users, many=True).data)


class UpdatePermissionsView(APIView):
    permission_classes = [HasAnyRole]
    required_any_roles = PERMISSION_UPDATE_ROLES

    @extend_schema(
        request=UpdatePermissionsSerializer,
        responses={200: UserSerializer},
        description="Replace a user's role set",
    )
    def put(self, request, user_id):
        serializer = UpdatePermissionsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = account_service.update_permissions(
            request.auth,
            user_id=user_id,
            permissions=serializer.validated_data["permissions"],
        )
        return Response(UserSerializer(user).data, status=status.HTTP_200_OK)
