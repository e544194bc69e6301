from .order import Order
from .order_line import OrderLine
from .charge_attempt import ChargeAttempt

__all__ = ["Order", "OrderLine", "ChargeAttempt"]
