# payments/services/base.py
"""
PAYMENT ADAPTER SHAPE

Each provider adapter turns a freshly created (Order Placed, unpaid) order
into a PaymentInitiation:
- COD:         nothing external; redirect_url empty
- SSLCommerz:  redirect_url = hosted gateway page
- bKash:       redirect_url = bkashURL, session = provider create payload

Callbacks always end in a browser redirect to the storefront result page.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from urllib.parse import urlencode, urlparse

from django.conf import settings

logger = logging.getLogger(__name__)

DEFAULT_CLIENT_URL = "http://localhost:5173"

RESULT_SUCCESS = "success"
RESULT_FAILED = "failed"
RESULT_CANCELLED = "cancelled"
RESULT_ERROR = "error"


@dataclass(frozen=True)
class PaymentInitiation:
    order: object
    redirect_url: str = ""
    session: dict = field(default_factory=dict)


class PaymentAdapter:
    method = ""

    def initiate(self, order, *, base_url: str) -> PaymentInitiation:
        raise NotImplementedError


def client_base_url() -> str:
    base = (getattr(settings, "CLIENT_URL", "") or "").strip()
    if not base:
        return DEFAULT_CLIENT_URL

    parsed = urlparse(base)
    if not parsed.scheme or not parsed.netloc:
        logger.warning("Invalid CLIENT_URL detected")
        return DEFAULT_CLIENT_URL

    return base.rstrip("/")


def payment_result_url(outcome: str, order_id=None) -> str:
    params = {"status": outcome}
    if order_id and outcome != RESULT_ERROR:
        params["orderId"] = str(order_id)
    return f"{client_base_url()}/payment-result?{urlencode(params)}"
