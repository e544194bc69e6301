# cart/urls.py

from django.urls import path

from cart.views import AddLineView, CartView, RemoveLineView

app_name = "cart"

urlpatterns = [
    path("", CartView.as_view(), name="cart"),
    path("lines/", AddLineView.as_view(), name="add-line"),
    path("lines/<uuid:line_id>/", RemoveLineView.as_view(), name="remove-line"),
]
