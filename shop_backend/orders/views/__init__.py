from .admin import (
    AdminCourierCheckView,
    AdminOrderAddressView,
    AdminOrderListView,
    AdminOrderStatusView,
)
from .checkout import PlaceOrderView
from .customer import MyOrdersView, TrackLookupView, TrackOrderView

__all__ = [
    "AdminCourierCheckView",
    "AdminOrderAddressView",
    "AdminOrderListView",
    "AdminOrderStatusView",
    "MyOrdersView",
    "PlaceOrderView",
    "TrackLookupView",
    "TrackOrderView",
]
