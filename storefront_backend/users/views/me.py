from drf_spectacular.utils import extend_schema
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from users.serializers import UserSerializer
from users.services import account_service


class MeView(APIView):
    """
    Current user, or null when the caller is anonymous.
    """

    permission_classes = [AllowAny]

    @extend_schema(
        responses={200: UserSerializer},
        description="Get current user profile (null when signed out)",
    )
    def get(self, request):
        user = account_service.current_user(request.auth)
        if user is None:
            return Response(None)
        return Response(UserSerializer(user).data)
