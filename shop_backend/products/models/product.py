# products/models/product.py

import uuid
from decimal import Decimal

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


class Product(models.Model):
    """
    Represents a sellable catalog product.

    PRICING MODEL (IMPORTANT):
    - price is the list price per unit
    - discount is a percentage (0-100) taken off the list price
    - sizes is the list of size labels offered (e.g. ["M", "L", "XXL"])
    - Orders never reference a live Product price; checkout copies the
      computed prices into OrderItem snapshots.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=255, db_index=True)
    description = models.TextField(blank=True, default="")
    category = models.CharField(max_length=120, blank=True, default="")

    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    discount = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[
            MinValueValidator(Decimal("0.00")),
            MaxValueValidator(Decimal("100.00")),
        ],
        help_text="Percent off the list price (e.g. 10.00).",
    )

    sizes = models.JSONField(default=list, blank=True)
    best_seller = models.BooleanField(default=False)

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["is_active"], name="products_pr_is_acti_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.price})"
