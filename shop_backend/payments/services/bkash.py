# payments/services/bkash.py
"""
BKASH TOKENIZED CHECKOUT (WALLET GATEWAY)

Flow:
1) grant token   POST {base}/tokenized/checkout/token/grant
                 headers: username, password; body: app_key, app_secret
2) create        POST {base}/tokenized/checkout/create  -> paymentID, bkashURL
3) browser returns to GET /api/payments/bkash/callback/?orderId&sig&paymentID&status
4) execute       POST {base}/tokenized/checkout/execute -> statusCode "0000" == paid

Callbacks for an order that is already paid redirect to success without
calling execute again; a verified attempt is never downgraded.

Token cache:
- BkashTokenCache is a constructed object (clock + fetcher injectable)
- reuses the token until REFRESH_MARGIN seconds before expiry
- fetch happens outside the lock; assignment is guarded (last write wins),
  so concurrent refreshes only waste a grant call
- a 401 from an authorized call drops the cached token and retries once
"""

from __future__ import annotations

import logging
import threading
import time
from urllib.parse import urlencode

from django.conf import settings

from orders.models import Order, PaymentAttempt
from orders.services.exceptions import OrderStateError, UpstreamProviderError
from orders.services.order_lifecycle import (
    is_paid,
    mark_failed,
    mark_paid,
    rollback_if_initiation_failed,
)
from payments.services.base import (
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

CALLBACK_PATH = "/api/payments/bkash/callback/"
EXECUTE_SUCCESS_CODE = "0000"


def _bkash_cfg() -> dict:
    payments = getattr(settings, "PAYMENTS", {}) or {}
    cfg = payments.get("BKASH") or {}
    return cfg if isinstance(cfg, dict) else {}


# =====================================================
# TOKEN CACHE
# =====================================================


class BkashTokenCache:
    def __init__(self, fetcher, *, clock=time.monotonic, refresh_margin: float = 30):
        """
        fetcher() -> (id_token, expires_in_seconds)
        """
        self._fetcher = fetcher
        self._clock = clock
        self._margin = refresh_margin
        self._lock = threading.Lock()
        self._token = None
        self._expires_at = 0.0

    def _fresh(self) -> str | None:
        if self._token and self._clock() < self._expires_at - self._margin:
            return self._token
        return None

    def get_token(self) -> str:
        with self._lock:
            token = self._fresh()
        if token:
            return token

        new_token, expires_in = self._fetcher()
        if not new_token:
            raise UpstreamProviderError("bKash grant returned no token")

        with self._lock:
            self._token = new_token
            self._expires_at = self._clock() + float(expires_in or 0)

        logger.info("bKash token refreshed", extra={"expires_in": expires_in})
        return new_token

    def invalidate(self) -> None:
        with self._lock:
            self._token = None
            self._expires_at = 0.0


# =====================================================
# API CLIENT
# =====================================================


class BkashClient:
    def __init__(self, *, cfg: dict | None = None, http=None, token_cache=None, clock=time.monotonic):
        self.cfg = cfg if cfg is not None else _bkash_cfg()
        self._http = http or request_json
        self.token_cache = token_cache or BkashTokenCache(
            self.grant_token,
            clock=clock,
            refresh_margin=self.cfg.get("TOKEN_REFRESH_MARGIN_SECONDS", 30),
        )

    @property
    def base_url(self) -> str:
        return (self.cfg.get("BASE_URL") or "").rstrip("/")

    @property
    def timeout(self):
        return self.cfg.get("TIMEOUT", 15)

    def is_configured(self) -> bool:
        required = ("BASE_URL", "USERNAME", "PASSWORD", "APP_KEY", "APP_SECRET")
        return all(self.cfg.get(key) for key in required)

    def grant_token(self) -> tuple[str, float]:
        response = self._http(
            "POST",
            f"{self.base_url}/tokenized/checkout/token/grant",
            json_body={
                "app_key": self.cfg.get("APP_KEY", ""),
                "app_secret": self.cfg.get("APP_SECRET", ""),
            },
            headers={
                "username": self.cfg.get("USERNAME", ""),
                "password": self.cfg.get("PASSWORD", ""),
            },
            timeout=self.timeout,
            provider="bKash",
        )
        token = response.get("id_token")
        if not token:
            raise UpstreamProviderError(response.get("statusMessage") or "bKash grant failed")
        try:
            expires_in = float(response.get("expires_in") or 3600)
        except (TypeError, ValueError):
            raise UpstreamProviderError("bKash grant returned an invalid expires_in")
        return token, expires_in

    def _post_authorized(self, path: str, body: dict) -> dict:
        return self._http(
            "POST",
            f"{self.base_url}{path}",
            json_body=body,
            headers={
                "Authorization": self.token_cache.get_token(),
                "X-APP-Key": self.cfg.get("APP_KEY", ""),
            },
            timeout=self.timeout,
            provider="bKash",
        )

    def _authorized(self, path: str, body: dict) -> dict:
        try:
            return self._post_authorized(path, body)
        except UpstreamProviderError as exc:
            if exc.upstream_status != 401:
                raise
        # Token revoked or expired early: drop it and retry once with a fresh grant.
        logger.info("bKash rejected the cached token; refreshing", extra={"path": path})
        self.token_cache.invalidate()
        return self._post_authorized(path, body)

    def create_payment(self, *, amount, payer_reference: str, callback_url: str, invoice: str) -> dict:
        return self._authorized(
            "/tokenized/checkout/create",
            {
                "mode": "0011",
                "payerReference": payer_reference,
                "callbackURL": callback_url,
                "amount": str(amount),
                "currency": "BDT",
                "intent": "sale",
                "merchantInvoiceNumber": invoice,
            },
        )

    def execute_payment(self, *, payment_id: str) -> dict:
        return self._authorized("/tokenized/checkout/execute", {"paymentID": payment_id})


_default_client = None
_default_client_lock = threading.Lock()


def get_default_client() -> BkashClient:
    """Process-wide client so the grant token is shared across requests."""
    global _default_client
    with _default_client_lock:
        if _default_client is None:
            _default_client = BkashClient()
        return _default_client


# =====================================================
# ADAPTER
# =====================================================


class BkashGateway(PaymentAdapter):
    method = Order.METHOD_BKASH

    def __init__(self, *, client: BkashClient | None = None):
        self.client = client or get_default_client()

    def callback_url(self, order, *, base_url: str) -> str:
        params = {"orderId": str(order.id), "sig": sign_callback(order.id)}
        return f"{base_url.rstrip('/')}{CALLBACK_PATH}?{urlencode(params)}"

    def initiate(self, order, *, base_url: str) -> PaymentInitiation:
        if not self.client.is_configured():
            rollback_if_initiation_failed(order.id)
            raise UpstreamProviderError("bKash is not configured")

        try:
            session = self.client.create_payment(
                amount=order.amount,
                payer_reference=(order.address or {}).get("phone") or str(order.user_id or ""),
                callback_url=self.callback_url(order, base_url=base_url),
                invoice=order.order_no,
            )
        except UpstreamProviderError:
            rollback_if_initiation_failed(order.id)
            raise

        payment_id = str(session.get("paymentID") or "").strip()
        bkash_url = str(session.get("bkashURL") or "").strip()
        if not payment_id or not bkash_url:
            rollback_if_initiation_failed(order.id)
            logger.error(
                "bKash create returned no payment session",
                extra={"order_id": str(order.id), "status_code": session.get("statusCode")},
            )
            raise UpstreamProviderError(session.get("statusMessage") or "bKash create payment failed")

        PaymentAttempt.objects.create(
            order=order,
            provider=PaymentAttempt.PROVIDER_BKASH,
            reference=payment_id,
            amount=order.amount,
            currency=order.currency,
            status=PaymentAttempt.STATUS_REDIRECTED,
            redirect_url=bkash_url,
            provider_payload={"create": session},
        )

        logger.info("bKash payment created", extra={"order_id": str(order.id), "payment_id": payment_id})
        return PaymentInitiation(order=order, redirect_url=bkash_url, session=session)

    def handle_callback(self, *, order_id, payment_id, status, signature) -> str:
        order_id = str(order_id or "").strip()
        payment_id = str(payment_id or "").strip()
        status = str(status or "").strip().lower()

        if not order_id or not verify_callback_signature(signature, order_id):
            logger.warning("bKash callback rejected: bad tag")
            return payment_result_url(RESULT_ERROR)

        # Repeated browser redirects for a paid order must not re-execute
        # (bKash answers a completed payment with a non-success code).
        if is_paid(order_id) or self._verified_attempt_exists(order_id, payment_id):
            logger.info("bKash callback for an already paid order", extra={"order_id": order_id})
            return payment_result_url(RESULT_SUCCESS, order_id)

        try:
            if status != "success" or not payment_id:
                mark_failed(order_id, f"bKash callback status: {status or 'missing'}")
                self._fail_attempt(payment_id, {"callback_status": status})
                return payment_result_url(RESULT_FAILED, order_id)

            attempt = PaymentAttempt.objects.filter(
                reference=payment_id, provider=PaymentAttempt.PROVIDER_BKASH
            ).first()
            if attempt is None or str(attempt.order_id) != order_id:
                logger.warning(
                    "bKash callback payment id does not match the order",
                    extra={"order_id": order_id, "payment_id": payment_id},
                )
                mark_failed(order_id, "bKash payment reference mismatch")
                return payment_result_url(RESULT_FAILED, order_id)

            try:
                result = self.client.execute_payment(payment_id=payment_id)
            except UpstreamProviderError as exc:
                logger.warning("bKash execute failed", extra={"order_id": order_id, "error": str(exc)})
                mark_failed(order_id, "bKash execute failed")
                attempt.mark_failed({"execute_error": str(exc)})
                return payment_result_url(RESULT_FAILED, order_id)

            if str(result.get("statusCode") or "") == EXECUTE_SUCCESS_CODE:
                mark_paid(order_id, reference=payment_id)
                attempt.mark_verified({**attempt.provider_payload, "execute": result})
                return payment_result_url(RESULT_SUCCESS, order_id)

            mark_failed(order_id, result.get("statusMessage") or "bKash execute not successful")
            attempt.mark_failed({**attempt.provider_payload, "execute": result})
            return payment_result_url(RESULT_FAILED, order_id)

        except OrderStateError:
            logger.exception("bKash callback could not be applied", extra={"order_id": order_id})
            return payment_result_url(RESULT_ERROR)

    def _fail_attempt(self, payment_id: str, payload: dict) -> None:
        if not payment_id:
            return
        attempt = PaymentAttempt.objects.filter(
            reference=payment_id, provider=PaymentAttempt.PROVIDER_BKASH
        ).first()
        if attempt and attempt.status != PaymentAttempt.STATUS_VERIFIED:
            attempt.mark_failed({**attempt.provider_payload, **payload})

    def _verified_attempt_exists(self, order_id: str, payment_id: str) -> bool:
        if not payment_id:
            return False
        return PaymentAttempt.objects.filter(
            order_id=order_id,
            reference=payment_id,
            provider=PaymentAttempt.PROVIDER_BKASH,
            status=PaymentAttempt.STATUS_VERIFIED,
        ).exists()
