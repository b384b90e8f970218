# orders/services/tracking.py

"""
ORDER TRACKING PROJECTOR

project_order(order, now=None) -> dict

Customer-facing view only: no user link, no phone, no provider payloads.
ETA is always counted from `now` (a UX approximation, not a promise).
"""

from __future__ import annotations

from datetime import timedelta

from django.utils import timezone

# Ordered: later rows are more advanced.
PROGRESS_STEPS = (
    ("placed", "Order Placed", 10),
    ("paid", "Paid", 25),
    ("processing", "Processing", 45),
    ("shipped", "Shipped", 70),
    ("out for delivery", "Out for Delivery", 85),
    ("delivered", "Delivered", 100),
)

FAILURE_MARKERS = ("failed", "cancelled", "canceled")

ETA_WINDOWS = {
    "inside dhaka": (1, 2),
    "dhaka suburbs": (2, 3),
    "outside dhaka": (3, 5),
}
DEFAULT_ETA_WINDOW = (3, 7)


def _status_text(status) -> str:
    return str(status or "").strip().lower()


def _is_failure(status_text: str) -> bool:
    return any(marker in status_text for marker in FAILURE_MARKERS)


def progress_for_status(status) -> dict:
    text = _status_text(status)

    if _is_failure(text):
        return {"progress_pct": 0, "step": str(status or "").strip()}

    match = None
    for key, step, pct in PROGRESS_STEPS:
        if key in text:
            match = (step, pct)

    if match is None:
        _, step, pct = PROGRESS_STEPS[0]
        match = (step, pct)

    return {"progress_pct": match[1], "step": match[0]}


def eta_window(delivery_label, status, now=None) -> dict | None:
    text = _status_text(status)
    if "delivered" in text or _is_failure(text):
        return None

    days_from, days_to = ETA_WINDOWS.get(_status_text(delivery_label), DEFAULT_ETA_WINDOW)

    if "out for delivery" in text:
        days_from, days_to = 0, 1
    elif "shipped" in text:
        days_from, days_to = max(0, days_from - 1), max(1, days_to - 1)

    now = now or timezone.now()
    return {
        "from": now + timedelta(days=days_from),
        "to": now + timedelta(days=days_to),
    }


def project_order(order, now=None) -> dict:
    address = order.address or {}
    return {
        "order_id": str(order.id),
        "order_no": order.order_no,
        "status": order.status,
        "payment": bool(order.payment),
        "payment_method": order.payment_method,
        "amount": str(order.amount),
        "currency": order.currency,
        "delivery_fee": str(order.delivery_fee),
        "delivery_label": order.delivery_label,
        "items": [
            {
                "name": item.name,
                "size": item.size,
                "quantity": item.quantity,
                "unit_final_price": str(item.unit_final_price),
                "line_subtotal": str(item.line_subtotal),
            }
            for item in order.items.all()
        ],
        "recipient_name": address.get("recipient_name", ""),
        "district": address.get("district", ""),
        "created_at": order.created_at,
        "progress": progress_for_status(order.status),
        "eta": eta_window(order.delivery_label, order.status, now=now),
    }
