# orders/services/order_lifecycle.py

"""
ORDER LIFECYCLE MANAGER

Happy path (linear):
    Order Placed -> Paid -> Processing -> Shipped -> Out for Delivery -> Delivered

Terminal failure states (reachable only from Order Placed):
    Payment Failed, Payment Cancelled

Operators may set ANY status string via update_status() (escape hatch).

Hard rules:
- amount is computed once at creation (pricing engine) and never recomputed
- mark_paid is idempotent: provider callbacks are retried / duplicated
- a failed/cancelled order is kept (audit), never deleted, except by
  rollback_if_initiation_failed() for a provider session that never started
- row locks (select_for_update) are only held inside short DB transactions,
  never across provider HTTP calls
"""

from __future__ import annotations

import logging

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from orders.models import Order, OrderItem
from orders.services.address import checkout_requires_postal_code, clean_address
from orders.services.exceptions import OrderNotFoundError, OrderStateError
from orders.services.pricing import price_cart
from users.services.accounts import checkout_account, clear_cart

logger = logging.getLogger(__name__)

PAYMENT_METHODS = {Order.METHOD_COD, Order.METHOD_SSLCOMMERZ, Order.METHOD_BKASH}

# Statuses at which a payment confirmation is an idempotent no-op.
PAID_OR_LATER = {
    Order.STATUS_PAID,
    Order.STATUS_PROCESSING,
    Order.STATUS_SHIPPED,
    Order.STATUS_OUT_FOR_DELIVERY,
    Order.STATUS_DELIVERED,
}

ALLOWED_TRANSITIONS = {
    Order.STATUS_PLACED: {
        Order.STATUS_PAID,
        Order.STATUS_PAYMENT_FAILED,
        Order.STATUS_PAYMENT_CANCELLED,
    },
}


def can_transition(*, from_status: str, to_status: str) -> bool:
    return to_status in ALLOWED_TRANSITIONS.get(from_status, set())


# ============================================================
# CREATE
# ============================================================


def create_pending_order(*, user, items, address, payment_method, delivery_override=None) -> Order:
    """
    Validate -> price -> persist (Order Placed, payment=False) atomically.

    user=None (anonymous checkout): the order is owned by the account keyed by
    the delivery phone, created without a password if it does not exist yet.
    order.account_created tells the caller whether this checkout created it.

    Raises EmptyCartError / ProductUnavailableError / InvalidAddressError.
    """
    if payment_method not in PAYMENT_METHODS:
        raise ValueError(f"Unsupported payment method: {payment_method}")

    snapshot = clean_address(address, strict=checkout_requires_postal_code())
    priced = price_cart(items, snapshot, delivery_override)

    account_created = False
    if user is None:
        user, account_created = checkout_account(
            phone=snapshot["phone"],
            name=snapshot["recipient_name"],
            address=snapshot,
        )

    with transaction.atomic():
        order = Order.objects.create(
            user=user,
            address=snapshot,
            amount=priced.total_amount,
            delivery_fee=priced.delivery_fee,
            delivery_label=priced.delivery_label,
            delivery_source=priced.fee_source,
            payment_method=payment_method,
            payment=False,
            status=Order.STATUS_PLACED,
        )

        OrderItem.objects.bulk_create(
            [
                OrderItem(
                    order=order,
                    position=idx,
                    product_id=line.product_id,
                    name=line.name,
                    size=line.size,
                    quantity=line.quantity,
                    unit_base_price=line.unit_base_price,
                    unit_discount_percent=line.unit_discount_percent,
                    unit_final_price=line.unit_final_price,
                    surcharge_applied=line.surcharge_applied,
                    line_subtotal=line.line_subtotal,
                )
                for idx, line in enumerate(priced.lines)
            ]
        )

    order.account_created = account_created

    logger.info(
        "Order placed",
        extra={
            "order_id": str(order.id),
            "payment_method": payment_method,
            "amount": str(order.amount),
            "delivery_label": order.delivery_label,
        },
    )
    return order


# ============================================================
# PAYMENT RESULT TRANSITIONS
# ============================================================


def _locked(order_id) -> Order:
    try:
        return Order.objects.select_for_update().get(id=order_id)
    except (Order.DoesNotExist, ValueError, ValidationError):
        raise OrderStateError(f"Order {order_id} does not exist")


def is_paid(order_id) -> bool:
    """Provider callbacks short-circuit on this before touching the order."""
    try:
        return Order.objects.filter(id=order_id, payment=True).exists()
    except (ValueError, ValidationError):
        return False


def mark_paid(order_id, *, reference: str | None = None) -> Order:
    with transaction.atomic():
        order = _locked(order_id)

        if order.payment and order.status in PAID_OR_LATER:
            logger.info("Duplicate payment confirmation ignored", extra={"order_id": str(order.id)})
            return order

        if order.is_failed:
            raise OrderStateError(
                f"Order {order.id} cannot be marked paid from '{order.status}'"
            )

        order.payment = True
        # payment=True always comes with a paid-or-later status, including
        # over an operator-set status such as "On Hold".
        if order.status not in PAID_OR_LATER:
            order.status = Order.STATUS_PAID
        order.paid_at = order.paid_at or timezone.now()
        order.save(update_fields=["payment", "status", "paid_at", "updated_at"])

        owner_id = order.user_id

    clear_cart(user_id=owner_id)

    logger.info(
        "Order marked paid",
        extra={"order_id": str(order.id), "reference": reference or ""},
    )
    return order


def _mark_failure(order_id, *, target_status: str, reason: str) -> Order:
    with transaction.atomic():
        order = _locked(order_id)

        if order.status == target_status:
            return order

        if not can_transition(from_status=order.status, to_status=target_status):
            logger.warning(
                "Failure transition ignored",
                extra={"order_id": str(order.id), "status": order.status, "target": target_status},
            )
            return order

        order.status = target_status
        order.failure_reason = (reason or "")[:255]
        order.save(update_fields=["status", "failure_reason", "updated_at"])

    logger.info(
        "Order payment not completed",
        extra={"order_id": str(order.id), "status": target_status, "reason": reason},
    )
    return order


def mark_failed(order_id, reason: str = "") -> Order:
    return _mark_failure(order_id, target_status=Order.STATUS_PAYMENT_FAILED, reason=reason)


def mark_cancelled(order_id) -> Order:
    return _mark_failure(
        order_id,
        target_status=Order.STATUS_PAYMENT_CANCELLED,
        reason="Cancelled by customer",
    )


def rollback_if_initiation_failed(order_id) -> bool:
    """
    Compensating action: delete a just-created order whose provider session
    never started. Returns True if a row was deleted.
    """
    deleted, _ = Order.objects.filter(
        id=order_id,
        payment=False,
        status=Order.STATUS_PLACED,
    ).delete()

    if deleted:
        logger.warning("Pending order rolled back after initiation failure", extra={"order_id": str(order_id)})
    return bool(deleted)


# ============================================================
# ADMINISTRATIVE
# ============================================================


def _get(order_id) -> Order:
    try:
        return Order.objects.get(id=order_id)
    except (Order.DoesNotExist, ValueError, ValidationError):
        raise OrderNotFoundError("Order not found")


def update_status(order_id, status: str) -> Order:
    status = (status or "").strip()
    if not status:
        raise ValueError("status is required")

    order = _get(order_id)
    previous = order.status
    order.status = status
    order.save(update_fields=["status", "updated_at"])

    logger.info(
        "Order status overridden",
        extra={"order_id": str(order.id), "from": previous, "to": status},
    )
    return order


def update_address(order_id, address) -> Order:
    """Correct the destination snapshot. amount / delivery fee stay as charged."""
    snapshot = clean_address(address, strict=checkout_requires_postal_code())

    order = _get(order_id)
    order.address = snapshot
    order.save(update_fields=["address", "updated_at"])

    logger.info("Order address corrected", extra={"order_id": str(order.id)})
    return order


# ============================================================
# QUERIES
# ============================================================


def orders_for_user(user):
    return Order.objects.filter(user=user).prefetch_related("items").order_by("-created_at")


def list_orders(filters: dict | None = None):
    qs = Order.objects.select_related("user").prefetch_related("items").order_by("-created_at")
    filters = filters or {}
    for key in ("status", "payment_method", "payment"):
        if key in filters and filters[key] not in (None, ""):
            qs = qs.filter(**{key: filters[key]})
    return qs


def get_order(order_id) -> Order:
    return _get(order_id)
