# payments/services/cod.py
"""
CASH ON DELIVERY

No provider call. The order stays Order Placed / unpaid; payment is
confirmed out-of-band by an operator (admin status update).
The customer's in-progress cart is cleared at placement.
"""

from __future__ import annotations

from orders.models import Order
from payments.services.base import PaymentAdapter, PaymentInitiation
from users.services.accounts import clear_cart


class CashOnDelivery(PaymentAdapter):
    method = Order.METHOD_COD

    def initiate(self, order, *, base_url: str = "") -> PaymentInitiation:
        clear_cart(user_id=order.user_id)
        return PaymentInitiation(order=order)
