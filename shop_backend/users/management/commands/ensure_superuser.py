# users/management/commands/ensure_superuser.py

"""
PATH: users/management/commands/ensure_superuser.py

Production-safe admin bootstrap.

- Reads AUTO_ADMIN_PHONE + AUTO_ADMIN_PASSWORD from env.
- Idempotent: creates the admin if missing; updates password/flags if present.
- Does NOT print the password.
"""

from __future__ import annotations

import os

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from users.phone import is_valid_bd_phone, normalize_bd_phone


class Command(BaseCommand):
    help = "Create/update an initial admin account from env vars (idempotent)."

    def handle(self, *args, **options):
        phone = normalize_bd_phone(os.environ.get("AUTO_ADMIN_PHONE") or "")
        password = (os.environ.get("AUTO_ADMIN_PASSWORD") or "").strip()

        if not phone or not password:
            self.stdout.write(self.style.WARNING("AUTO_ADMIN_* env vars not set. Skipping."))
            return

        if not is_valid_bd_phone(phone):
            self.stdout.write(self.style.ERROR("AUTO_ADMIN_PHONE is not a valid Bangladesh mobile number."))
            return

        User = get_user_model()

        with transaction.atomic():
            user = User.objects.filter(phone=phone).first()

            if user:
                user.is_active = True
                user.is_staff = True
                user.is_superuser = True
                user.role = User.ROLE_ADMIN
                user.set_password(password)
                user.save()
                self.stdout.write(self.style.SUCCESS(f"Admin ensured: {phone} (updated)"))
                return

            User.objects.create_superuser(phone=phone, password=password)
            self.stdout.write(self.style.SUCCESS(f"Admin ensured: {phone} (created)"))
