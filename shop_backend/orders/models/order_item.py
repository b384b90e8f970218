# orders/models/order_item.py

import uuid
from decimal import Decimal

from django.db import models


class OrderItem(models.Model):
    """
    Priced line snapshot.

    product_id is a plain UUID (not a FK): later catalog edits or deletions
    must not change what the customer was charged.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )

    product_id = models.UUIDField(db_index=True)
    name = models.CharField(max_length=255)
    size = models.CharField(max_length=32, blank=True, default="")
    quantity = models.PositiveIntegerField()

    unit_base_price = models.DecimalField(max_digits=10, decimal_places=2)
    unit_discount_percent = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal("0.00")
    )
    unit_final_price = models.DecimalField(max_digits=10, decimal_places=2)
    surcharge_applied = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal("0.00")
    )
    line_subtotal = models.DecimalField(max_digits=12, decimal_places=2)

    position = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["position"]

    def __str__(self):
        return f"{self.name} [{self.size or '-'}] x {self.quantity}"
