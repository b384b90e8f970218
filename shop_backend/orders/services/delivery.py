# orders/services/delivery.py

"""
DELIVERY FEE RESOLVER

Decision table (first match wins):
1) explicit override {area: "inside"|"outside", fee >= 0}   -> source="override"
2) exact district rules (DELIVERY_FEE_POLICY["DISTRICT_RULES"])
3) keyword rules, substring match on district OR address line
4) DEFAULT tier                                               -> source="address"

Rules are configuration; this module only walks them.
Pure: no DB access, no side effects.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.conf import settings

TWOPLACES = Decimal("0.01")

SOURCE_OVERRIDE = "override"
SOURCE_ADDRESS = "address"

_DEFAULT_POLICY = {
    "OVERRIDE_LABELS": {"inside": "Inside Dhaka", "outside": "Outside Dhaka"},
    "DISTRICT_RULES": [],
    "KEYWORD_RULES": [],
    "DEFAULT": {"fee": "150.00", "label": "Outside Dhaka"},
}


@dataclass(frozen=True)
class DeliveryQuote:
    fee: Decimal
    label: str
    source: str


def _money(v) -> Decimal:
    return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _normalize(text) -> str:
    return re.sub(r"\s+", " ", str(text or "")).strip().lower()


def _policy() -> dict:
    policy = getattr(settings, "DELIVERY_FEE_POLICY", None) or {}
    return {**_DEFAULT_POLICY, **policy}


def _override_quote(override, policy: dict) -> DeliveryQuote | None:
    if not isinstance(override, dict):
        return None

    area = _normalize(override.get("area"))
    labels = policy.get("OVERRIDE_LABELS") or {}
    if area not in labels:
        return None

    raw_fee = override.get("fee")
    if raw_fee is None or isinstance(raw_fee, bool):
        return None
    try:
        fee = _money(raw_fee)
    except (InvalidOperation, ValueError, TypeError):
        return None
    if not fee.is_finite() or fee < 0:
        return None

    return DeliveryQuote(fee=fee, label=labels[area], source=SOURCE_OVERRIDE)


def resolve_fee(address: dict | None, override: dict | None = None) -> DeliveryQuote:
    policy = _policy()

    quote = _override_quote(override, policy)
    if quote is not None:
        return quote

    address = address or {}
    district = _normalize(address.get("district"))
    line = _normalize(address.get("address_line1"))

    for rule in policy.get("DISTRICT_RULES") or []:
        if district and district in {_normalize(d) for d in rule.get("districts", [])}:
            return DeliveryQuote(_money(rule["fee"]), rule["label"], SOURCE_ADDRESS)

    for rule in policy.get("KEYWORD_RULES") or []:
        for keyword in rule.get("keywords", []):
            keyword = _normalize(keyword)
            if keyword and (keyword in district or keyword in line):
                return DeliveryQuote(_money(rule["fee"]), rule["label"], SOURCE_ADDRESS)

    default = policy["DEFAULT"]
    return DeliveryQuote(_money(default["fee"]), default["label"], SOURCE_ADDRESS)
