# users/admin.py

"""
USERS ADMIN REGISTRATION

Registers the phone-identified User model in Django Admin:
- search accounts by phone / name
- see which accounts were created implicitly at checkout
- promote an operator to the admin role
"""

from __future__ import annotations

from django.contrib import admin
from django.contrib.auth import get_user_model
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin

User = get_user_model()

try:
    admin.site.unregister(User)
except admin.sites.NotRegistered:
    pass


@admin.register(User)
class UserAdmin(DjangoUserAdmin):
    ordering = ("-created_at",)
    list_display = ("phone", "name", "role", "created_via", "is_active", "created_at")
    list_filter = ("role", "created_via", "is_staff", "is_active")
    search_fields = ("phone", "name")
    readonly_fields = ("created_at", "updated_at", "password_set_at", "last_login")

    fieldsets = (
        (None, {"fields": ("phone", "password")}),
        ("Profile", {"fields": ("name", "address", "cart_data", "role", "created_via")}),
        (
            "Permissions",
            {
                "fields": (
                    "is_active",
                    "is_staff",
                    "is_superuser",
                    "groups",
                    "user_permissions",
                )
            },
        ),
        ("Audit", {"fields": ("password_set_at", "last_login", "created_at", "updated_at")}),
    )

    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                "fields": (
                    "phone",
                    "password1",
                    "password2",
                    "role",
                    "is_staff",
                    "is_active",
                ),
            },
        ),
    )
