from .checkout import (
    AddressUpdateSerializer,
    CheckoutInputSerializer,
    CourierCheckSerializer,
    StatusUpdateSerializer,
    TrackingLookupSerializer,
)
from .order import OrderItemSerializer, OrderSerializer

__all__ = [
    "AddressUpdateSerializer",
    "CheckoutInputSerializer",
    "CourierCheckSerializer",
    "OrderItemSerializer",
    "OrderSerializer",
    "StatusUpdateSerializer",
    "TrackingLookupSerializer",
]
