# orders/views/checkout.py
"""
CASH-ON-DELIVERY CHECKOUT

POST /api/orders/place/

- AllowAny: a signed-in customer owns the order via their token; otherwise
  the order is owned by the account keyed by the delivery phone.
- Prices and amount are computed server-side; any client "amount" is ignored.
- Throttled (public_write) because it's a write endpoint (abuse target).
- An anonymous checkout that created the buyer's account also returns
  account_setup {user_id, token} for POST /api/auth/set-password/.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.parsers import JSONParser
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle
from rest_framework.views import APIView

from orders.models import Order
from orders.serializers import CheckoutInputSerializer, OrderSerializer
from orders.services.exceptions import CheckoutError
from orders.services.order_lifecycle import create_pending_order
from orders.views.errors import error_response
from payments.services.cod import CashOnDelivery
from users.identity import resolve_identity
from users.services.accounts import account_setup_token


class PublicWriteThrottle(AnonRateThrottle):
    scope = "public_write"


def create_order_from_request(request, *, payment_method: str) -> Order:
    """
    Shared by COD and the gateway initiate endpoints.
    Raises serializers.ValidationError / CheckoutError.
    """
    s = CheckoutInputSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    data = s.validated_data

    identity = resolve_identity(request)

    return create_pending_order(
        user=identity.user if identity else None,
        items=data["items"],
        address=data["address"],
        payment_method=payment_method,
        delivery_override=data.get("delivery_override"),
    )


def with_account_setup(payload: dict, order: Order) -> dict:
    if getattr(order, "account_created", False) and not order.user.has_usable_password():
        return {**payload, "account_setup": account_setup_token(order.user)}
    return payload


class PlaceOrderView(APIView):
    permission_classes = [AllowAny]
    parser_classes = [JSONParser]
    throttle_classes = [PublicWriteThrottle]

    @extend_schema(
        request=CheckoutInputSerializer,
        responses={
            201: OrderSerializer,
            400: OpenApiResponse(description="Empty cart / invalid address"),
            404: OpenApiResponse(description="Unknown or inactive product"),
            429: OpenApiResponse(description="Rate limited"),
        },
        description="Cash-on-delivery checkout. Order stays 'Order Placed' and unpaid until fulfilment.",
        tags=["Orders"],
    )
    def post(self, request):
        try:
            order = create_order_from_request(request, payment_method=Order.METHOD_COD)
        except CheckoutError as exc:
            return error_response(exc)

        CashOnDelivery().initiate(order)

        return Response(
            with_account_setup(OrderSerializer(order).data, order),
            status=status.HTTP_201_CREATED,
        )
