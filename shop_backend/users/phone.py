"""
PATH: users/phone.py

BANGLADESH MOBILE NUMBERS (CANONICAL FORM)

One canonical representation is shared by:
- the User model (identity lookup / uniqueness)
- the checkout address validator
- the public tracking lookup

Canonical form: +8801XXXXXXXXX (E.164-like, 14 chars)
"""

from __future__ import annotations

import re

BD_PHONE_CANONICAL_RE = re.compile(r"^\+8801[3-9]\d{8}$")

_LOCAL_RE = re.compile(r"^01[3-9]\d{8}$")
_COUNTRY_RE = re.compile(r"^8801[3-9]\d{8}$")
_SEPARATORS_RE = re.compile(r"[\s\-().]")


def normalize_bd_phone(value) -> str:
    """
    Strip separators and coerce to +8801XXXXXXXXX.

    Inputs that cannot be coerced are returned stripped but otherwise
    untouched, so the validator can reject them with a useful message.
    """
    if value is None:
        return ""

    raw = str(value).strip()
    compact = _SEPARATORS_RE.sub("", raw)

    if BD_PHONE_CANONICAL_RE.match(compact):
        return compact

    digits = compact[1:] if compact.startswith("+") else compact
    if _LOCAL_RE.match(digits):
        return f"+88{digits}"
    if _COUNTRY_RE.match(digits):
        return f"+{digits}"

    return raw


def is_valid_bd_phone(value) -> bool:
    return bool(BD_PHONE_CANONICAL_RE.match(normalize_bd_phone(value)))
