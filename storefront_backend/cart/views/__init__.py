from .api import AddLineView, CartView, RemoveLineView

__all__ = ["AddLineView", "CartView", "RemoveLineView"]
