"""
======================================================
PATH: orders/migrations/0001_initial.py
======================================================
MIGRATION: CREATE Order, OrderItem, PaymentAttempt
"""

from __future__ import annotations

import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Order",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        primary_key=True,
                        default=uuid.uuid4,
                        editable=False,
                        serialize=False,
                    ),
                ),
                (
                    "order_no",
                    models.CharField(
                        max_length=64,
                        unique=True,
                        blank=True,
                        help_text="System-generated public order number",
                    ),
                ),
                ("address", models.JSONField(default=dict)),
                (
                    "amount",
                    models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00")),
                ),
                ("currency", models.CharField(max_length=8, default="BDT")),
                (
                    "delivery_fee",
                    models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00")),
                ),
                ("delivery_label", models.CharField(max_length=64, blank=True, default="")),
                (
                    "delivery_source",
                    models.CharField(
                        max_length=16,
                        choices=[("override", "Override"), ("address", "Address")],
                        default="address",
                    ),
                ),
                (
                    "payment_method",
                    models.CharField(
                        max_length=20,
                        choices=[
                            ("COD", "Cash on Delivery"),
                            ("SSLCommerz", "SSLCommerz"),
                            ("bKash", "bKash"),
                        ],
                    ),
                ),
                ("payment", models.BooleanField(default=False)),
                (
                    "status",
                    models.CharField(max_length=64, default="Order Placed", db_index=True),
                ),
                ("failure_reason", models.CharField(max_length=255, blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("paid_at", models.DateTimeField(null=True, blank=True)),
                (
                    "user",
                    models.ForeignKey(
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="orders",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["created_at"], name="orders_ord_created_idx"),
                    models.Index(fields=["payment_method"], name="orders_ord_method_idx"),
                    models.Index(fields=["user", "created_at"], name="orders_ord_user_created_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="OrderItem",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        primary_key=True,
                        default=uuid.uuid4,
                        editable=False,
                        serialize=False,
                    ),
                ),
                ("product_id", models.UUIDField(db_index=True)),
                ("name", models.CharField(max_length=255)),
                ("size", models.CharField(max_length=32, blank=True, default="")),
                ("quantity", models.PositiveIntegerField()),
                ("unit_base_price", models.DecimalField(max_digits=10, decimal_places=2)),
                (
                    "unit_discount_percent",
                    models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0.00")),
                ),
                ("unit_final_price", models.DecimalField(max_digits=10, decimal_places=2)),
                (
                    "surcharge_applied",
                    models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00")),
                ),
                ("line_subtotal", models.DecimalField(max_digits=12, decimal_places=2)),
                ("position", models.PositiveIntegerField(default=0)),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="orders.order",
                    ),
                ),
            ],
            options={
                "ordering": ["position"],
            },
        ),
        migrations.CreateModel(
            name="PaymentAttempt",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        primary_key=True,
                        default=uuid.uuid4,
                        editable=False,
                        serialize=False,
                    ),
                ),
                (
                    "provider",
                    models.CharField(
                        max_length=32,
                        choices=[("sslcommerz", "SSLCommerz"), ("bkash", "bKash")],
                    ),
                ),
                (
                    "reference",
                    models.CharField(
                        max_length=128,
                        unique=True,
                        help_text="Provider reference. Must be unique for idempotency.",
                    ),
                ),
                (
                    "amount",
                    models.DecimalField(
                        max_digits=12,
                        decimal_places=2,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.01"))],
                    ),
                ),
                ("currency", models.CharField(max_length=8, default="BDT")),
                (
                    "status",
                    models.CharField(
                        max_length=32,
                        choices=[
                            ("initiated", "Initiated"),
                            ("redirected", "Redirected"),
                            ("verified", "Verified"),
                            ("failed", "Failed"),
                        ],
                        default="initiated",
                    ),
                ),
                ("redirect_url", models.URLField(max_length=1024, blank=True, default="")),
                ("provider_payload", models.JSONField(default=dict, blank=True)),
                ("initiated_at", models.DateTimeField(auto_now_add=True)),
                ("verified_at", models.DateTimeField(null=True, blank=True)),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="payment_attempts",
                        to="orders.order",
                    ),
                ),
            ],
            options={
                "ordering": ["-initiated_at"],
                "indexes": [
                    models.Index(fields=["status"], name="orders_pa_status_idx"),
                    models.Index(fields=["order", "initiated_at"], name="orders_pa_order_init_idx"),
                ],
            },
        ),
    ]
