from .order import Order
from .order_item import OrderItem
from .payment_attempt import PaymentAttempt

__all__ = [
    "Order",
    "OrderItem",
    "PaymentAttempt",
]
