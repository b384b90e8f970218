# products/admin.py
"""
=====================================================
PATH: products/admin.py
=====================================================

Catalog maintenance happens here; the storefront API only reads products.
Price or discount edits never touch placed orders (items are snapshots).
"""

from django.contrib import admin

from products.models import Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "category",
        "price",
        "discount",
        "best_seller",
        "is_active",
        "created_at",
    )
    list_filter = ("is_active", "best_seller", "category", "created_at")
    search_fields = ("name", "category")
    ordering = ("-created_at",)
    readonly_fields = ("created_at", "updated_at")
