"""
PATH: users/auth_backends.py

AUTH BACKEND: phone + password

Rules:
- The phone may arrive in any accepted local format (01..., 8801..., +8801...,
  with spaces or dashes); it is normalized before lookup.
- Accounts created at checkout have no usable password and cannot log in
  until a password is set.

Used by Django auth() and SimpleJWT's TokenObtainPairView.
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.contrib.auth.backends import BaseBackend

from users.phone import normalize_bd_phone

User = get_user_model()


class PhoneBackend(BaseBackend):
    def authenticate(self, request, phone=None, password=None, **kwargs):
        identifier = phone or kwargs.get("username")
        if not identifier or password is None:
            return None

        try:
            user = User.objects.get(phone=normalize_bd_phone(identifier))
        except User.DoesNotExist:
            return None

        if not user.is_active or not user.has_usable_password():
            return None

        if user.check_password(password):
            return user

        return None

    def get_user(self, user_id):
        try:
            return User.objects.get(pk=user_id)
        except User.DoesNotExist:
            return None
