# orders/models/order.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone


class Order(models.Model):
    """
    Storefront order (priced snapshot of a cart).

    Key rules:
    - Order is created first (ORDER PLACED, payment=False)
    - amount = sum(item.line_subtotal) + delivery_fee, fixed at creation
    - payment flips to True only after provider confirmation
      (or an operator confirming a COD order)
    - status is free-form; the STATUS_* values are the conventional vocabulary
    """

    STATUS_PLACED = "Order Placed"
    STATUS_PAID = "Paid"
    STATUS_PROCESSING = "Processing"
    STATUS_SHIPPED = "Shipped"
    STATUS_OUT_FOR_DELIVERY = "Out for Delivery"
    STATUS_DELIVERED = "Delivered"
    STATUS_PAYMENT_FAILED = "Payment Failed"
    STATUS_PAYMENT_CANCELLED = "Payment Cancelled"

    FAILURE_STATUSES = {STATUS_PAYMENT_FAILED, STATUS_PAYMENT_CANCELLED}

    METHOD_COD = "COD"
    METHOD_SSLCOMMERZ = "SSLCommerz"
    METHOD_BKASH = "bKash"

    METHOD_CHOICES = [
        (METHOD_COD, "Cash on Delivery"),
        (METHOD_SSLCOMMERZ, "SSLCommerz"),
        (METHOD_BKASH, "bKash"),
    ]

    SOURCE_OVERRIDE = "override"
    SOURCE_ADDRESS = "address"

    SOURCE_CHOICES = [
        (SOURCE_OVERRIDE, "Override"),
        (SOURCE_ADDRESS, "Address"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order_no = models.CharField(
        max_length=64,
        unique=True,
        blank=True,
        help_text="System-generated public order number",
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders",
    )

    # Destination snapshot: recipient_name, phone (+880...), address_line1,
    # district, postal_code, plus optional email/city.
    address = models.JSONField(default=dict)

    amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=8, default="BDT")

    delivery_fee = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    delivery_label = models.CharField(max_length=64, blank=True, default="")
    delivery_source = models.CharField(
        max_length=16, choices=SOURCE_CHOICES, default=SOURCE_ADDRESS
    )

    payment_method = models.CharField(max_length=20, choices=METHOD_CHOICES)
    payment = models.BooleanField(default=False)

    status = models.CharField(max_length=64, default=STATUS_PLACED, db_index=True)
    failure_reason = models.CharField(max_length=255, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    paid_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["created_at"], name="orders_ord_created_idx"),
            models.Index(fields=["payment_method"], name="orders_ord_method_idx"),
            models.Index(fields=["user", "created_at"], name="orders_ord_user_created_idx"),
        ]

    def save(self, *args, **kwargs):
        if not self.order_no:
            prefix = timezone.now().strftime("ORD%Y%m%d")
            self.order_no = f"{prefix}-{uuid.uuid4().hex[:8].upper()}"

        if self.payment and not self.paid_at:
            self.paid_at = timezone.now()

        super().save(*args, **kwargs)

    @property
    def is_failed(self) -> bool:
        return self.status in self.FAILURE_STATUSES

    def __str__(self):
        return f"{self.order_no} | {self.amount} | {self.status}"
