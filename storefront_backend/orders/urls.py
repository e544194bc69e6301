# orders/urls.py

from django.urls import path

from orders.views import CheckoutView, OrderDetailView, OrderListView

app_name = "orders"

urlpatterns = [
    path("", OrderListView.as_view(), name="order-list"),
    path("checkout/", CheckoutView.as_view(), name="checkout"),
    path("<uuid:order_id>/", OrderDetailView.as_view(), name="order-detail"),
]
