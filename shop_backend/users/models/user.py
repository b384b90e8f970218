"""
PATH: users/models/user.py

CUSTOM USER MODEL (PHONE IDENTITY)

Storefront accounts are identified by a Bangladesh mobile number.

Rules:
- phone is stored in canonical +8801XXXXXXXXX form (see users/phone.py).
- Password is optional: checkout creates an account implicitly
  (created_via="checkout", unusable password). The customer can set a
  password later (POST /api/auth/set-password/ with the account_setup
  token returned by that checkout) and the same account keeps its orders.
- cart_data holds the in-progress cart; it is cleared once an order is
  placed (COD) or confirmed paid by a payment provider.
"""

from __future__ import annotations

import uuid

from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from users.phone import is_valid_bd_phone, normalize_bd_phone


# ---------------- USER MANAGER ----------------
class UserManager(BaseUserManager):
    def create_user(self, phone=None, password=None, **extra_fields):
        """
        Rules:
        - phone is required and normalized before anything else.
        - No password -> unusable password (checkout-created accounts).
        """
        phone = normalize_bd_phone(phone)
        if not phone:
            raise ValueError("A phone number is required")

        extra_fields.setdefault("is_active", True)

        user = self.model(phone=phone, **extra_fields)

        if password:
            user.set_password(password)
            user.password_set_at = timezone.now()
        else:
            user.set_unusable_password()

        user.full_clean(exclude=["password"])
        user.save(using=self._db)
        return user

    def create_superuser(self, phone, password=None, **extra_fields):
        if not password:
            raise ValueError("Superuser must have a password")

        extra_fields.setdefault("role", User.ROLE_ADMIN)
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("created_via", User.CREATED_VIA_ADMIN)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True")

        return self.create_user(phone=phone, password=password, **extra_fields)


# ---------------- USER MODEL ----------------
class User(AbstractBaseUser, PermissionsMixin):
    ROLE_ADMIN = "admin"
    ROLE_CUSTOMER = "customer"

    ROLE_CHOICES = [
        (ROLE_ADMIN, "Admin"),
        (ROLE_CUSTOMER, "Customer"),
    ]

    CREATED_VIA_CHECKOUT = "checkout"
    CREATED_VIA_REGISTER = "register"
    CREATED_VIA_ADMIN = "admin"
    CREATED_VIA_UNKNOWN = "unknown"

    CREATED_VIA_CHOICES = [
        (CREATED_VIA_CHECKOUT, "Checkout"),
        (CREATED_VIA_REGISTER, "Register"),
        (CREATED_VIA_ADMIN, "Admin"),
        (CREATED_VIA_UNKNOWN, "Unknown"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Canonical identity (+8801XXXXXXXXX)
    phone = models.CharField(max_length=20, unique=True)

    name = models.CharField(max_length=150, blank=True, default="")

    # Single saved address (optional), same shape as an order address snapshot
    address = models.JSONField(null=True, blank=True)

    # In-progress cart: {"<product_id>": {"<size>": quantity}}
    cart_data = models.JSONField(default=dict, blank=True)

    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_CUSTOMER)
    created_via = models.CharField(
        max_length=20,
        choices=CREATED_VIA_CHOICES,
        default=CREATED_VIA_UNKNOWN,
    )

    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)

    password_set_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserManager()

    USERNAME_FIELD = "phone"
    REQUIRED_FIELDS = []

    class Meta:
        ordering = ["-created_at"]

    def clean(self):
        self.phone = normalize_bd_phone(self.phone)
        if not is_valid_bd_phone(self.phone):
            raise ValidationError({"phone": "Invalid Bangladesh phone number"})

    @property
    def is_admin(self) -> bool:
        return self.role == self.ROLE_ADMIN

    def __str__(self):
        return f"{self.phone} ({self.role})"
