# orders/views/orders.py

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import generics, status
from rest_framework.response import Response
from rest_framework.views import APIView

from orders.serializers import OrderSerializer
from orders.services.order_access import list_orders, read_order


class OrderListView(generics.ListAPIView):
    """GET /orders/ : the caller's own orders, newest first."""

    serializer_class = OrderSerializer

    def get_queryset(self):
        return list_orders(self.request.auth)


class OrderDetailView(APIView):
    """GET /orders/<id>/ : owner or ADMIN."""

    @extend_schema(responses={200: OrderSerializer})
    def get(self, request, order_id):
        order = read_order(request.auth, order_id)
        return Response(OrderSerializer(order).data, status=status.HTTP_200_OK)
