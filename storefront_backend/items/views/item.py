# items/views/item.py

"""
ITEM VIEWSET

Purpose:
- Public catalog browsing (list/retrieve, AllowAny, searchable)
- Authenticated catalog writes, delegated to items.services.item_service
  (ownership-or-role checks live there, not here)
"""

from django.db.models import Q
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from items.models import Item
from items.serializers import ItemSerializer, ItemWriteSerializer
from items.services import item_service
from permissions.drf import RequiresPrincipal


class ItemViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    Item endpoints.

    Public:
    - GET /items/?q=<search>&user=<uuid>
    - GET /items/<id>/

    Authenticated:
    - POST /items/
    - PATCH /items/<id>/
    - DELETE /items/<id>/
    """

    serializer_class = ItemSerializer
    filterset_fields = ["user"]

    def get_permissions(self):
        if self.action in ("list", "retrieve"):
            return [AllowAny()]
        return [RequiresPrincipal()]

    def get_queryset(self):
        qs = Item.objects.all()

        q = (self.request.query_params.get("q") or "").strip()
        if q:
            qs = qs.filter(Q(title__icontains=q) | Q(description__icontains=q))

        return qs.order_by("-created_at")

    @extend_schema(
        parameters=[
            OpenApiParameter(name="q", required=False, type=str),
        ],
        responses={200: ItemSerializer(many=True)},
    )
    def list(self, request, *args, **kwargs):
        return super().list(request, *args, **kwargs)

    def get_object(self):
        return item_service.get_item(self.kwargs["pk"])

    @extend_schema(request=ItemWriteSerializer, responses={201: ItemSerializer})
    def create(self, request, *args, **kwargs):
        serializer = ItemWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        item = item_service.create_item(request.auth, **serializer.validated_data)
        return Response(ItemSerializer(item).data, status=status.HTTP_201_CREATED)

    @extend_schema(request=ItemWriteSerializer, responses={200: ItemSerializer})
    def partial_update(self, request, *args, **kwargs):
        serializer = ItemWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        item = item_service.update_item(request.auth, kwargs["pk"], **serializer.validated_data)
        return Response(ItemSerializer(item).data, status=status.HTTP_200_OK)

    @extend_schema(responses={200: ItemSerializer})
    def destroy(self, request, *args, **kwargs):
        item = item_service.delete_item(request.auth, kwargs["pk"])
        return Response({"id": str(kwargs["pk"]), "title": item.title}, status=status.HTTP_200_OK)
