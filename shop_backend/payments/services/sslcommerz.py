# payments/services/sslcommerz.py
"""
SSLCOMMERZ (HOSTED REDIRECT GATEWAY)

initiate():
- POST (form) to the session-init endpoint (gwprocess/v4/api.php), 20s timeout
- value_a = order id, value_b = account id, value_c = HMAC tag over
  (order id, account id, tran_id); all three come back on every callback
- no GatewayPageURL / provider error -> rollback pending order, raise

handle_callback():
- tag is verified BEFORE any order is read or written
- an already paid order redirects to success; nothing is written
- success -> validation API (val_id) must answer VALID/VALIDATED for the
  same tran_id and amount, then mark_paid; otherwise ?status=error
- fail -> mark_failed, cancel -> mark_cancelled
- returns the storefront result URL (never raises)
"""

from __future__ import annotations

import logging
import uuid
from decimal import Decimal, InvalidOperation
from urllib.parse import urlencode

from django.conf import settings

from orders.models import Order, PaymentAttempt
from orders.services.exceptions import OrderStateError, UpstreamProviderError
from orders.services.order_lifecycle import (
    mark_cancelled,
    mark_failed,
    mark_paid,
    rollback_if_initiation_failed,
)
from payments.services.base import (
    RESULT_CANCELLED,
    RESULT_ERROR,
    RESULT_FAILED,
    RESULT_SUCCESS,
    PaymentAdapter,
    PaymentInitiation,
    payment_result_url,
)
from payments.services.http import request_json
from payments.services.signing import sign_callback, verify_callback_signature

logger = logging.getLogger(__name__)

SANDBOX_HOST = "https://sandbox.sslcommerz.com"
LIVE_HOST = "https://securepay.sslcommerz.com"
INIT_PATH = "/gwprocess/v4/api.php"
VALIDATION_PATH = "/validator/api/validationserverAPI.php"

# Validation API statuses that confirm a completed payment.
VALIDATED_STATUSES = {"VALID", "VALIDATED"}

CALLBACK_PATHS = {
    "success_url": "/api/payments/sslcommerz/success/",
    "fail_url": "/api/payments/sslcommerz/fail/",
    "cancel_url": "/api/payments/sslcommerz/cancel/",
    "ipn_url": "/api/payments/sslcommerz/ipn/",
}


def _sslcommerz_cfg() -> dict:
    payments = getattr(settings, "PAYMENTS", {}) or {}
    cfg = payments.get("SSLCOMMERZ") or {}
    return cfg if isinstance(cfg, dict) else {}


def generate_tran_id() -> str:
    return f"SSL-{uuid.uuid4().hex[:20].upper()}"


class SSLCommerzGateway(PaymentAdapter):
    method = Order.METHOD_SSLCOMMERZ

    def __init__(self, *, cfg: dict | None = None, http=None):
        self.cfg = cfg if cfg is not None else _sslcommerz_cfg()
        self._http = http or request_json

    @property
    def host(self) -> str:
        return LIVE_HOST if self.cfg.get("IS_LIVE") else SANDBOX_HOST

    @property
    def init_url(self) -> str:
        return f"{self.host}{INIT_PATH}"

    @property
    def validation_url(self) -> str:
        return f"{self.host}{VALIDATION_PATH}"

    def build_payload(self, order, *, base_url: str, tran_id: str) -> dict:
        address = order.address or {}
        base_url = base_url.rstrip("/")
        user_id = str(order.user_id or "")

        street = address.get("address_line1") or "Address Line 1"
        city = address.get("city") or address.get("district") or "Dhaka"
        state = address.get("district") or "Dhaka"
        postcode = address.get("postal_code") or "1000"

        payload = {
            "store_id": self.cfg.get("STORE_ID", ""),
            "store_passwd": self.cfg.get("STORE_PASSWORD", ""),
            "total_amount": str(order.amount),
            "currency": order.currency or "BDT",
            "tran_id": tran_id,
            "shipping_method": "Courier",
            "product_name": "Cart Products",
            "product_category": "Ecommerce",
            "product_profile": "general",
            "num_of_item": sum(item.quantity for item in order.items.all()),
            # Customer info (fallbacks)
            "cus_name": address.get("recipient_name") or "Customer",
            "cus_email": address.get("email") or "customer@example.com",
            "cus_add1": street,
            "cus_add2": "N/A",
            "cus_city": city,
            "cus_state": state,
            "cus_postcode": postcode,
            "cus_country": "Bangladesh",
            "cus_phone": address.get("phone") or "01700000000",
            "cus_fax": "N/A",
            # Shipping info
            "ship_name": address.get("recipient_name") or "Shipping",
            "ship_add1": street,
            "ship_add2": "N/A",
            "ship_city": city,
            "ship_state": state,
            "ship_postcode": postcode,
            "ship_country": "Bangladesh",
            # Pass-through values (returned on callbacks)
            "value_a": str(order.id),
            "value_b": user_id,
            "value_c": sign_callback(order.id, user_id, tran_id),
        }
        for key, path in CALLBACK_PATHS.items():
            payload[key] = f"{base_url}{path}"
        return payload

    def initiate(self, order, *, base_url: str) -> PaymentInitiation:
        if not self.cfg.get("STORE_ID") or not self.cfg.get("STORE_PASSWORD"):
            rollback_if_initiation_failed(order.id)
            raise UpstreamProviderError("SSLCommerz is not configured")

        tran_id = generate_tran_id()
        payload = self.build_payload(order, base_url=base_url, tran_id=tran_id)

        try:
            response = self._http(
                "POST",
                self.init_url,
                form_body=payload,
                timeout=self.cfg.get("TIMEOUT", 20),
                provider="SSLCommerz",
            )
        except UpstreamProviderError:
            rollback_if_initiation_failed(order.id)
            raise

        gateway_url = str(response.get("GatewayPageURL") or "").strip()
        if not gateway_url:
            rollback_if_initiation_failed(order.id)
            logger.error(
                "SSLCommerz init returned no redirect URL",
                extra={"order_id": str(order.id), "status": response.get("status")},
            )
            raise UpstreamProviderError(
                response.get("failedreason") or "SSLCommerz init failed"
            )

        PaymentAttempt.objects.create(
            order=order,
            provider=PaymentAttempt.PROVIDER_SSLCOMMERZ,
            reference=tran_id,
            amount=order.amount,
            currency=order.currency,
            status=PaymentAttempt.STATUS_REDIRECTED,
            redirect_url=gateway_url,
            provider_payload={"sessionkey": response.get("sessionkey", "")},
        )

        logger.info("SSLCommerz session created", extra={"order_id": str(order.id), "tran_id": tran_id})
        return PaymentInitiation(order=order, redirect_url=gateway_url)

    def validate_payment(self, *, val_id: str) -> dict:
        query = urlencode(
            {
                "val_id": val_id,
                "store_id": self.cfg.get("STORE_ID", ""),
                "store_passwd": self.cfg.get("STORE_PASSWORD", ""),
                "v": 1,
                "format": "json",
            }
        )
        return self._http(
            "GET",
            f"{self.validation_url}?{query}",
            timeout=self.cfg.get("TIMEOUT", 20),
            provider="SSLCommerz",
        )

    def _confirmed_by_gateway(self, order, *, tran_id: str, data) -> bool:
        """
        The browser-posted success form proves nothing on its own: the same
        pass-through fields come back on fail/cancel. Only the validation
        API's answer for the callback's val_id confirms a payment.
        """
        val_id = str(data.get("val_id") or "").strip()
        if not val_id:
            return False

        try:
            result = self.validate_payment(val_id=val_id)
        except UpstreamProviderError as exc:
            logger.warning(
                "SSLCommerz validation call failed",
                extra={"order_id": str(order.id), "error": str(exc)},
            )
            return False

        try:
            amount = Decimal(str(result.get("amount") or ""))
        except InvalidOperation:
            return False

        return (
            str(result.get("status") or "").upper() in VALIDATED_STATUSES
            and str(result.get("tran_id") or "") == tran_id
            and amount == order.amount
        )

    def handle_callback(self, outcome: str, data) -> str:
        order_id = str(data.get("value_a") or "").strip()
        user_id = str(data.get("value_b") or "").strip()
        tag = str(data.get("value_c") or "").strip()
        tran_id = str(data.get("tran_id") or "").strip()

        if not order_id or not verify_callback_signature(tag, order_id, user_id, tran_id):
            logger.warning("SSLCommerz callback rejected: bad tag", extra={"outcome": outcome})
            return payment_result_url(RESULT_ERROR)

        if outcome not in (RESULT_SUCCESS, RESULT_FAILED, RESULT_CANCELLED):
            return payment_result_url(RESULT_ERROR)

        order = Order.objects.filter(id=order_id).first()
        if order is None:
            return payment_result_url(RESULT_ERROR)

        # Paid orders are final: duplicate or replayed forms change nothing.
        if order.payment:
            return payment_result_url(RESULT_SUCCESS, order_id)

        attempt = PaymentAttempt.objects.filter(
            order=order, reference=tran_id, provider=PaymentAttempt.PROVIDER_SSLCOMMERZ
        ).first()
        payload = dict(data.items())

        if outcome == RESULT_SUCCESS and not self._confirmed_by_gateway(order, tran_id=tran_id, data=data):
            logger.warning(
                "SSLCommerz success callback not confirmed by validation",
                extra={"order_id": order_id, "tran_id": tran_id},
            )
            return payment_result_url(RESULT_ERROR)

        try:
            if outcome == RESULT_SUCCESS:
                mark_paid(order_id, reference=tran_id)
                if attempt:
                    attempt.mark_verified(payload)
            elif outcome == RESULT_FAILED:
                mark_failed(order_id, str(data.get("error") or "Payment failed at gateway"))
                if attempt:
                    attempt.mark_failed(payload)
            else:
                mark_cancelled(order_id)
                if attempt:
                    attempt.mark_failed(payload)
        except OrderStateError:
            logger.exception("SSLCommerz callback could not be applied", extra={"order_id": order_id})
            return payment_result_url(RESULT_ERROR)

        return payment_result_url(outcome, order_id)
