# orders/serializers/checkout.py
"""
Transport-level validation only.

Cart lines and the address are passed through as plain dicts: discarding bad
lines and validating the address are pricing/address-service rules, so those
failures surface as domain errors (400) with one consistent message shape.
"""

from rest_framework import serializers


class CheckoutInputSerializer(serializers.Serializer):
    items = serializers.ListField(child=serializers.DictField(), allow_empty=True)
    address = serializers.DictField()
    delivery_override = serializers.DictField(required=False, allow_null=True)

    def validate_items(self, items):
        normalized = []
        for item in items:
            item = dict(item)
            # Older storefront builds send camelCase keys.
            if "product_id" not in item and "productId" in item:
                item["product_id"] = item.pop("productId")
            normalized.append(item)
        return normalized


class StatusUpdateSerializer(serializers.Serializer):
    order_id = serializers.UUIDField()
    status = serializers.CharField(max_length=64)


class AddressUpdateSerializer(serializers.Serializer):
    order_id = serializers.UUIDField()
    address = serializers.DictField()


class TrackingLookupSerializer(serializers.Serializer):
    order_id = serializers.UUIDField()
    phone = serializers.CharField(max_length=32)


class CourierCheckSerializer(serializers.Serializer):
    phone = serializers.CharField(max_length=32)
