# orders/serializers/order.py

from rest_framework import serializers

from orders.models import Order, OrderItem


class OrderItemSerializer(serializers.ModelSerializer):
    """
    Line snapshot (read-only).
    Prices are what the customer was charged, not the live catalog price.
    """

    class Meta:
        model = OrderItem
        fields = [
            "product_id",
            "name",
            "size",
            "quantity",
            "unit_base_price",
            "unit_discount_percent",
            "unit_final_price",
            "surcharge_applied",
            "line_subtotal",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)
    user_id = serializers.UUIDField(read_only=True, allow_null=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_no",
            "user_id",
            "items",
            "address",
            "amount",
            "currency",
            "delivery_fee",
            "delivery_label",
            "delivery_source",
            "payment_method",
            "payment",
            "status",
            "failure_reason",
            "created_at",
            "updated_at",
            "paid_at",
        ]
        read_only_fields = fields
