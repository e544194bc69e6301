# cart/views/api.py

"""
CART API VIEWS

- GET    /cart/              caller's cart (live prices) + running total
- POST   /cart/lines/        add one unit of an item (upsert)
- DELETE /cart/lines/<id>/   remove a line (owner only)

All business rules live in cart.services.cart_store; views translate
request.auth into the Principal argument and shape responses.
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from cart.serializers import AddLineInputSerializer, CartLineSerializer, CartSerializer
from cart.services import cart_store


class CartView(APIView):
    @extend_schema(responses={200: CartSerializer})
    def get(self, request):
        lines = list(cart_store.list_lines(request.auth))
        total = sum(int(line.item.price) * int(line.quantity) for line in lines)

        return Response(
            {
                "lines": CartLineSerializer(lines, many=True).data,
                "total": total,
            },
            status=status.HTTP_200_OK,
        )


class AddLineView(APIView):
    @extend_schema(request=AddLineInputSerializer, responses={200: CartLineSerializer})
    def post(self, request):
        serializer = AddLineInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        line = cart_store.add_line(request.auth, serializer.validated_data["item_id"])
        return Response(CartLineSerializer(line).data, status=status.HTTP_200_OK)


class RemoveLineView(APIView):
    @extend_schema(request=None, responses={200: CartLineSerializer})
    def delete(self, request, line_id):
        line = cart_store.remove_line(request.auth, line_id)
        return Response({"id": str(line_id), "quantity": line.quantity}, status=status.HTTP_200_OK)
