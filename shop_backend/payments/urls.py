# payments/urls.py
"""
PAYMENTS API URLS

Base path (mounted in backend/urls.py):
    /api/payments/
"""

from django.urls import path

from payments.views.bkash import BkashCallbackView, BkashCreateView
from payments.views.sslcommerz import (
    SSLCommerzCancelView,
    SSLCommerzFailView,
    SSLCommerzInitiateView,
    SSLCommerzIpnView,
    SSLCommerzSuccessView,
)

app_name = "payments"

urlpatterns = [
    # SSLCommerz (hosted gateway)
    path("sslcommerz/initiate/", SSLCommerzInitiateView.as_view(), name="sslcommerz-initiate"),
    path("sslcommerz/success/", SSLCommerzSuccessView.as_view(), name="sslcommerz-success"),
    path("sslcommerz/fail/", SSLCommerzFailView.as_view(), name="sslcommerz-fail"),
    path("sslcommerz/cancel/", SSLCommerzCancelView.as_view(), name="sslcommerz-cancel"),
    path("sslcommerz/ipn/", SSLCommerzIpnView.as_view(), name="sslcommerz-ipn"),
    # bKash (tokenized checkout)
    path("bkash/create/", BkashCreateView.as_view(), name="bkash-create"),
    path("bkash/callback/", BkashCallbackView.as_view(), name="bkash-callback"),
]
