# orders/urls.py
"""
ORDERS API URLS

Base path (mounted in backend/urls.py):
    /api/orders/
"""

from django.urls import path

from orders.views import (
    AdminCourierCheckView,
    AdminOrderAddressView,
    AdminOrderListView,
    AdminOrderStatusView,
    MyOrdersView,
    PlaceOrderView,
    TrackLookupView,
    TrackOrderView,
)

app_name = "orders"

urlpatterns = [
    path("place/", PlaceOrderView.as_view(), name="order-place"),
    path("mine/", MyOrdersView.as_view(), name="order-mine"),
    path("track/lookup/", TrackLookupView.as_view(), name="order-track-lookup"),
    path("track/<uuid:order_id>/", TrackOrderView.as_view(), name="order-track"),
    # Order desk
    path("admin/", AdminOrderListView.as_view(), name="order-admin-list"),
    path("admin/status/", AdminOrderStatusView.as_view(), name="order-admin-status"),
    path("admin/address/", AdminOrderAddressView.as_view(), name="order-admin-address"),
    path("admin/courier-check/", AdminCourierCheckView.as_view(), name="order-admin-courier-check"),
]
