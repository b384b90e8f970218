# orders/services/pricing.py

"""
PRICING ENGINE (SERVER AUTHORITATIVE)

price_cart(items, address, delivery_override=None) -> PricedCart

Hard rules:
- Client-supplied prices/amounts are never read.
- Entries with a missing product id or a non-positive / non-integer quantity
  are discarded before lookup; nothing left -> EmptyCartError.
- Product ids are de-duplicated and fetched in ONE query; any id that is
  missing, malformed or inactive -> ProductUnavailableError (all-or-nothing).
- unit_final   = max(0, base - base * discount / 100), discount clamped 0..100
- line_subtotal = unit_final * qty + surcharge * qty (oversize variants)
- total        = sum(line_subtotal) + delivery fee

Pure: reads products, writes nothing. Callers persist the result.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings

from orders.services.delivery import resolve_fee
from orders.services.exceptions import EmptyCartError, ProductUnavailableError
from products.models import Product

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


@dataclass(frozen=True)
class PricedLine:
    product_id: uuid.UUID
    name: str
    size: str
    quantity: int
    unit_base_price: Decimal
    unit_discount_percent: Decimal
    unit_final_price: Decimal
    surcharge_applied: Decimal
    line_subtotal: Decimal


@dataclass(frozen=True)
class PricedCart:
    total_amount: Decimal
    delivery_fee: Decimal
    delivery_label: str
    fee_source: str
    lines: list[PricedLine] = field(default_factory=list)

    @property
    def subtotal(self) -> Decimal:
        return _money(sum((line.line_subtotal for line in self.lines), ZERO))


def _money(v) -> Decimal:
    if v is None or v == "":
        return ZERO
    return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _to_int_qty(value) -> int:
    """Whole positive units only; anything else counts as 0 (line discarded)."""
    if value is None or value == "" or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else 0
    if isinstance(value, str):
        s = value.strip()
        if s.isdigit():
            return int(s)
    return 0


def _product_key(raw) -> str:
    if raw is None:
        return ""
    return str(raw).strip()


def _surcharge_rule() -> tuple[Decimal, tuple[str, ...]]:
    cfg = getattr(settings, "SIZE_SURCHARGE", None) or {}
    amount = _money(cfg.get("AMOUNT", "50.00"))
    prefixes = tuple(str(p).strip().upper() for p in cfg.get("SIZE_PREFIXES", ["XXL"]) if p)
    return amount, prefixes


def size_surcharge_per_unit(size) -> Decimal:
    amount, prefixes = _surcharge_rule()
    label = str(size or "").strip().upper()
    if label and any(label.startswith(p) for p in prefixes):
        return amount
    return ZERO


def unit_final_price(base_price, discount_percent) -> Decimal:
    base = _money(base_price)
    discount = min(max(Decimal(str(discount_percent or 0)), ZERO), HUNDRED)
    final = _money(base - base * discount / HUNDRED)
    return max(final, ZERO)


def _valid_entries(items) -> list[dict]:
    entries = []
    for raw in items or []:
        if not isinstance(raw, dict):
            continue
        key = _product_key(raw.get("product_id"))
        qty = _to_int_qty(raw.get("quantity"))
        if not key or qty <= 0:
            continue
        entries.append({"product_id": key, "size": str(raw.get("size") or "").strip(), "quantity": qty})
    return entries


def _as_uuid(key: str) -> uuid.UUID:
    try:
        return uuid.UUID(key)
    except (ValueError, AttributeError, TypeError):
        raise ProductUnavailableError(f"Product not available: {key}")


def _load_products(ids: list[uuid.UUID]) -> dict[uuid.UUID, Product]:
    found = {p.id: p for p in Product.objects.filter(id__in=ids, is_active=True)}

    missing = [str(i) for i in ids if i not in found]
    if missing:
        raise ProductUnavailableError(f"Product not available: {', '.join(missing)}")

    return found


def price_cart(items, address, delivery_override=None) -> PricedCart:
    entries = _valid_entries(items)
    if not entries:
        raise EmptyCartError("Cart is empty")

    for entry in entries:
        entry["product_id"] = _as_uuid(entry["product_id"])

    products = _load_products(list(dict.fromkeys(e["product_id"] for e in entries)))

    lines = []
    for entry in entries:
        product = products[entry["product_id"]]

        qty = entry["quantity"]
        base = _money(product.price)
        discount = min(max(_money(product.discount), ZERO), HUNDRED)

        final = unit_final_price(base, discount)
        surcharge = _money(size_surcharge_per_unit(entry["size"]) * qty)
        subtotal = _money(final * qty + surcharge)

        lines.append(
            PricedLine(
                product_id=product.id,
                name=product.name,
                size=entry["size"],
                quantity=qty,
                unit_base_price=base,
                unit_discount_percent=discount,
                unit_final_price=final,
                surcharge_applied=surcharge,
                line_subtotal=subtotal,
            )
        )

    quote = resolve_fee(address, delivery_override)
    lines_total = _money(sum((line.line_subtotal for line in lines), ZERO))

    return PricedCart(
        total_amount=_money(lines_total + quote.fee),
        delivery_fee=quote.fee,
        delivery_label=quote.label,
        fee_source=quote.source,
        lines=lines,
    )
