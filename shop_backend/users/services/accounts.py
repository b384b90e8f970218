# users/services/accounts.py

"""
ACCOUNT SERVICES

Checkout:
- checkout_account: find-or-create the account that will own an order, keyed
  by the canonical phone number of the delivery address. New accounts have no
  password (created_via="checkout"). Returns (user, created).
- clear_cart: reset the in-progress cart after COD placement or a confirmed
  provider payment.

Self-service:
- register_account: phone + password sign-up. A phone that already has an
  account (with or without password) is refused; a checkout-created account
  is claimed through its setup token instead.
- account_setup_token / user_from_setup_token: one-shot token handed to the
  anonymous buyer who created the account. It stops validating once a
  password is set (Django's PasswordResetTokenGenerator hashes the password).
- set_account_password / save_address
"""

from __future__ import annotations

import logging

from django.contrib.auth.tokens import default_token_generator
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from users.models import User
from users.phone import is_valid_bd_phone, normalize_bd_phone

logger = logging.getLogger(__name__)


class AccountExistsError(Exception):
    status_code = 409


def checkout_account(*, phone: str, name: str = "", address: dict | None = None) -> tuple[User, bool]:
    phone = normalize_bd_phone(phone)
    if not is_valid_bd_phone(phone):
        raise ValueError("Invalid Bangladesh phone number")

    created = False
    user = User.objects.filter(phone=phone).first()
    if user is None:
        try:
            with transaction.atomic():
                user = User.objects.create_user(
                    phone=phone,
                    name=(name or "").strip(),
                    created_via=User.CREATED_VIA_CHECKOUT,
                )
            created = True
            logger.info("Account created at checkout", extra={"user_id": str(user.id)})
        except (IntegrityError, ValidationError):
            # Concurrent checkout with the same phone created it first.
            user = User.objects.get(phone=phone)

    touched = []
    if name and not user.name:
        user.name = name.strip()
        touched.append("name")
    if address and not user.address:
        user.address = address
        touched.append("address")
    if touched:
        user.save(update_fields=touched + ["updated_at"])

    return user, created


def ensure_account_for_checkout(*, phone: str, name: str = "", address: dict | None = None) -> User:
    user, _ = checkout_account(phone=phone, name=name, address=address)
    return user


def clear_cart(*, user_id) -> None:
    if not user_id:
        return
    updated = User.objects.filter(id=user_id).update(cart_data={})
    if not updated:
        logger.warning("Cart reset skipped: account not found", extra={"user_id": str(user_id)})


# ============================================================
# SELF-SERVICE
# ============================================================


def register_account(*, phone: str, password: str, name: str = "") -> User:
    phone = normalize_bd_phone(phone)
    existing = User.objects.filter(phone=phone).first()
    if existing is not None:
        if existing.has_usable_password():
            raise AccountExistsError("An account with this phone already exists")
        raise AccountExistsError(
            "This phone already has an account from a previous order; "
            "use the account setup link from that order to set a password"
        )

    try:
        with transaction.atomic():
            user = User.objects.create_user(
                phone=phone,
                password=password,
                name=(name or "").strip(),
                created_via=User.CREATED_VIA_REGISTER,
            )
    except IntegrityError:
        raise AccountExistsError("An account with this phone already exists")

    logger.info("Account registered", extra={"user_id": str(user.id)})
    return user


def account_setup_token(user: User) -> dict:
    return {"user_id": str(user.id), "token": default_token_generator.make_token(user)}


def user_from_setup_token(user_id, token) -> User | None:
    if not user_id or not token:
        return None
    try:
        user = User.objects.get(id=user_id, is_active=True)
    except (User.DoesNotExist, ValueError, ValidationError):
        return None
    if not default_token_generator.check_token(user, str(token)):
        return None
    return user


def set_account_password(user: User, password: str) -> User:
    user.set_password(password)
    user.password_set_at = timezone.now()
    user.save(update_fields=["password", "password_set_at", "updated_at"])
    logger.info("Account password set", extra={"user_id": str(user.id)})
    return user


def save_address(user: User, address: dict) -> User:
    """address is an already-cleaned snapshot (orders.services.address.clean_address)."""
    user.address = address
    user.save(update_fields=["address", "updated_at"])
    return user
