# orders/models/payment_attempt.py

import uuid
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone


class PaymentAttempt(models.Model):
    """
    Provider session issued for an Order.

    Idempotency rule:
    - reference is unique (SSLCommerz tran_id / bKash paymentID)
    - callbacks are matched against the reference issued at initiation
    """

    PROVIDER_SSLCOMMERZ = "sslcommerz"
    PROVIDER_BKASH = "bkash"
    PROVIDER_CHOICES = [
        (PROVIDER_SSLCOMMERZ, "SSLCommerz"),
        (PROVIDER_BKASH, "bKash"),
    ]

    STATUS_INITIATED = "initiated"
    STATUS_REDIRECTED = "redirected"
    STATUS_VERIFIED = "verified"
    STATUS_FAILED = "failed"

    STATUS_CHOICES = [
        (STATUS_INITIATED, "Initiated"),
        (STATUS_REDIRECTED, "Redirected"),
        (STATUS_VERIFIED, "Verified"),
        (STATUS_FAILED, "Failed"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="payment_attempts",
    )

    provider = models.CharField(max_length=32, choices=PROVIDER_CHOICES)

    reference = models.CharField(
        max_length=128,
        unique=True,
        help_text="Provider reference. Must be unique for idempotency.",
    )

    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    currency = models.CharField(max_length=8, default="BDT")

    status = models.CharField(max_length=32, choices=STATUS_CHOICES, default=STATUS_INITIATED)

    redirect_url = models.URLField(max_length=1024, blank=True, default="")
    provider_payload = models.JSONField(default=dict, blank=True)

    initiated_at = models.DateTimeField(auto_now_add=True)
    verified_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-initiated_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_pa_status_idx"),
            models.Index(fields=["order", "initiated_at"], name="orders_pa_order_init_idx"),
        ]

    def mark_verified(self, payload=None):
        self.status = self.STATUS_VERIFIED
        self.verified_at = self.verified_at or timezone.now()
        if payload is not None:
            self.provider_payload = payload
        self.save(update_fields=["status", "verified_at", "provider_payload"])

    def mark_failed(self, payload=None):
        self.status = self.STATUS_FAILED
        if payload is not None:
            self.provider_payload = payload
        self.save(update_fields=["status", "provider_payload"])

    def __str__(self):
        return f"{self.provider}:{self.reference} | {self.status}"
