# payments/services/signing.py
"""
CALLBACK TAGS (HMAC-SHA256)

Provider callbacks are unauthenticated browser redirects / form posts. Every
id we hand to a provider for pass-through is bound to a tag computed with
PAYMENTS["CALLBACK_SECRET"], and callbacks are rejected unless the tag
verifies. No order is read or written before verification.
"""

from __future__ import annotations

import hashlib
import hmac

from django.conf import settings


def _secret() -> bytes:
    payments = getattr(settings, "PAYMENTS", {}) or {}
    secret = (payments.get("CALLBACK_SECRET") or "").strip() or settings.SECRET_KEY
    return secret.encode("utf-8")


def sign_callback(*values) -> str:
    message = "|".join("" if v is None else str(v) for v in values)
    return hmac.new(_secret(), message.encode("utf-8"), hashlib.sha256).hexdigest()


def verify_callback_signature(signature, *values) -> bool:
    if not signature:
        return False
    return hmac.compare_digest(sign_callback(*values), str(signature).strip())
