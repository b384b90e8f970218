# orders/services/address.py

"""
ADDRESS VALIDATOR (CHECKOUT REGION: BANGLADESH)

validate_address(address, strict=False) -> None | reason
- Required: recipient_name, phone, address_line1, district
- strict: postal_code required, exactly 4 digits
- phone is normalized first (users.phone.normalize_bd_phone) so the validator
  and the stored snapshot agree on one canonical +8801XXXXXXXXX form

clean_address(address, strict=False) -> normalized snapshot dict
- raises InvalidAddressError with the first failing reason
"""

from __future__ import annotations

import re

from django.conf import settings

from orders.services.exceptions import InvalidAddressError
from users.phone import BD_PHONE_CANONICAL_RE, normalize_bd_phone

POSTAL_CODE_RE = re.compile(r"^\d{4}$")

REQUIRED_FIELDS = (
    ("recipient_name", "Recipient name is required"),
    ("phone", "Phone number is required"),
    ("address_line1", "Address line 1 is required"),
    ("district", "District is required"),
)

# Carried into the snapshot when present (gateway customer fields).
OPTIONAL_FIELDS = ("email", "city", "area")


def _text(value) -> str:
    if value is None:
        return ""
    return str(value).strip()


def checkout_requires_postal_code() -> bool:
    return bool(getattr(settings, "CHECKOUT_REQUIRE_POSTAL_CODE", False))


def validate_address(address, strict: bool = False) -> str | None:
    if not isinstance(address, dict):
        return "Address is required"

    for field, message in REQUIRED_FIELDS:
        if not _text(address.get(field)):
            return message

    phone = normalize_bd_phone(address.get("phone"))
    if not BD_PHONE_CANONICAL_RE.match(phone):
        return "Phone must be a valid Bangladesh mobile number (e.g. 01712345678)"

    postal_code = _text(address.get("postal_code"))
    if strict:
        if not postal_code:
            return "Postal code is required"
        if not POSTAL_CODE_RE.match(postal_code):
            return "Postal code must be exactly 4 digits"

    return None


def clean_address(address, strict: bool = False) -> dict:
    reason = validate_address(address, strict=strict)
    if reason:
        raise InvalidAddressError(reason)

    snapshot = {
        "recipient_name": _text(address.get("recipient_name")),
        "phone": normalize_bd_phone(address.get("phone")),
        "address_line1": _text(address.get("address_line1")),
        "district": _text(address.get("district")),
        "postal_code": _text(address.get("postal_code")),
    }
    for field in OPTIONAL_FIELDS:
        value = _text(address.get(field))
        if value:
            snapshot[field] = value

    return snapshot
