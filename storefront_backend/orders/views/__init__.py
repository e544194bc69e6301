from .checkout import CheckoutView
from .orders import OrderDetailView, OrderListView

__all__ = ["CheckoutView", "OrderDetailView", "OrderListView"]
