# orders/admin.py

from django.contrib import admin

from orders.models import Order, OrderItem, PaymentAttempt


# ======================================================
# ORDER ADMIN
# ======================================================


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    can_delete = False
    readonly_fields = (
        "product_id",
        "name",
        "size",
        "quantity",
        "unit_base_price",
        "unit_discount_percent",
        "unit_final_price",
        "surcharge_applied",
        "line_subtotal",
    )
    exclude = ("position",)

    def has_add_permission(self, request, obj=None):
        return False


class PaymentAttemptInline(admin.TabularInline):
    model = PaymentAttempt
    extra = 0
    can_delete = False
    fields = ("provider", "reference", "amount", "status", "initiated_at", "verified_at")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = (
        "order_no",
        "status",
        "payment_method",
        "payment",
        "amount",
        "delivery_label",
        "created_at",
    )
    # amount/fee are snapshots: never editable after placement
    readonly_fields = (
        "order_no",
        "user",
        "amount",
        "currency",
        "delivery_fee",
        "delivery_label",
        "delivery_source",
        "payment_method",
        "paid_at",
        "created_at",
        "updated_at",
    )
    search_fields = ("order_no", "address__phone")
    list_filter = ("status", "payment_method", "payment", "created_at")
    inlines = [OrderItemInline, PaymentAttemptInline]


# ======================================================
# PAYMENT ATTEMPT ADMIN
# ======================================================


@admin.register(PaymentAttempt)
class PaymentAttemptAdmin(admin.ModelAdmin):
    list_display = ("reference", "provider", "order", "amount", "status", "initiated_at")
    readonly_fields = (
        "order",
        "provider",
        "reference",
        "amount",
        "currency",
        "redirect_url",
        "provider_payload",
        "initiated_at",
        "verified_at",
    )
    search_fields = ("reference", "order__order_no")
    list_filter = ("provider", "status")
