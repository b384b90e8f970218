import uuid
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings

from orders.models import Order
from orders.services.exceptions import (
    EmptyCartError,
    InvalidAddressError,
    OrderNotFoundError,
    OrderStateError,
)
from orders.services.order_lifecycle import (
    create_pending_order,
    is_paid,
    mark_cancelled,
    mark_failed,
    mark_paid,
    rollback_if_initiation_failed,
    update_address,
    update_status,
)
from orders.tests.fixtures import DHAKA_ADDRESS, OUTSIDE_ADDRESS, make_product

User = get_user_model()


class OrderLifecycleTests(TestCase):
    """
    GUARANTEES:
    - Orders are created Order Placed / unpaid with amount = lines + fee
    - mark_paid is idempotent and clears the owner's cart
    - Failure states are reachable only from Order Placed
    - Operators can override status and correct addresses
    """

    def setUp(self):
        self.product = make_product()
        self.user = User.objects.create_user(
            phone="01712345678",
            password="pass",
            cart_data={str(self.product.id): {"M": 2}},
        )

    def _place(self, user=None, **kwargs):
        params = dict(
            user=user if user is not None else self.user,
            items=[{"product_id": str(self.product.id), "size": "M", "quantity": 2}],
            address=DHAKA_ADDRESS,
            payment_method=Order.METHOD_SSLCOMMERZ,
        )
        params.update(kwargs)
        return create_pending_order(**params)

    # --------------------------------------------------
    # CREATE
    # --------------------------------------------------

    def test_created_pending_with_computed_amount(self):
        order = self._place()

        self.assertEqual(order.status, Order.STATUS_PLACED)
        self.assertFalse(order.payment)
        self.assertEqual(order.amount, Decimal("980.00"))
        self.assertEqual(order.delivery_fee, Decimal("80.00"))
        self.assertEqual(order.delivery_label, "Inside Dhaka")
        self.assertEqual(order.delivery_source, "address")
        self.assertTrue(order.order_no.startswith("ORD"))

        lines_total = sum(item.line_subtotal for item in order.items.all())
        self.assertEqual(order.amount, lines_total + order.delivery_fee)

    def test_address_snapshot_is_normalized(self):
        order = self._place()
        self.assertEqual(order.address["phone"], "+8801712345678")

    def test_items_are_snapshots(self):
        order = self._place()

        self.product.price = Decimal("999.00")
        self.product.save()

        item = order.items.get()
        self.assertEqual(item.unit_base_price, Decimal("500.00"))
        self.assertEqual(item.unit_final_price, Decimal("450.00"))
        order.refresh_from_db()
        self.assertEqual(order.amount, Decimal("980.00"))

    def test_anonymous_checkout_owned_by_phone_account(self):
        order = create_pending_order(
            user=None,
            items=[{"product_id": str(self.product.id), "quantity": 1}],
            address={**OUTSIDE_ADDRESS, "phone": "8801812345678"},
            payment_method=Order.METHOD_COD,
        )

        owner = User.objects.get(phone="+8801812345678")
        self.assertEqual(order.user_id, owner.id)
        self.assertEqual(owner.created_via, User.CREATED_VIA_CHECKOUT)
        self.assertFalse(owner.has_usable_password())

    def test_invalid_input_creates_nothing(self):
        with self.assertRaises(InvalidAddressError):
            self._place(address={**DHAKA_ADDRESS, "phone": "abc"})
        with self.assertRaises(EmptyCartError):
            self._place(items=[])

        self.assertEqual(Order.objects.count(), 0)

    def test_empty_cart_creates_no_account(self):
        with self.assertRaises(EmptyCartError):
            create_pending_order(
                user=None,
                items=[],
                address=OUTSIDE_ADDRESS,
                payment_method=Order.METHOD_COD,
            )
        self.assertFalse(User.objects.filter(phone="+8801812345678").exists())

    @override_settings(CHECKOUT_REQUIRE_POSTAL_CODE=True)
    def test_strict_schema_when_configured(self):
        with self.assertRaises(InvalidAddressError):
            self._place()
        order = self._place(address={**DHAKA_ADDRESS, "postal_code": "1209"})
        self.assertEqual(order.address["postal_code"], "1209")

    # --------------------------------------------------
    # PAYMENT RESULTS
    # --------------------------------------------------

    def test_mark_paid(self):
        order = self._place()

        paid = mark_paid(order.id, reference="TX-1")

        self.assertTrue(paid.payment)
        self.assertEqual(paid.status, Order.STATUS_PAID)
        self.assertIsNotNone(paid.paid_at)
        self.user.refresh_from_db()
        self.assertEqual(self.user.cart_data, {})

    def test_mark_paid_is_idempotent(self):
        order = self._place()

        first = mark_paid(order.id)
        second = mark_paid(order.id)

        self.assertEqual(first.paid_at, second.paid_at)
        order.refresh_from_db()
        self.assertTrue(order.payment)
        self.assertEqual(order.status, Order.STATUS_PAID)

    def test_mark_paid_keeps_later_status(self):
        order = self._place(payment_method=Order.METHOD_COD)
        update_status(order.id, Order.STATUS_SHIPPED)

        paid = mark_paid(order.id)

        self.assertTrue(paid.payment)
        self.assertEqual(paid.status, Order.STATUS_SHIPPED)

    def test_mark_paid_replaces_operator_status(self):
        order = self._place()
        update_status(order.id, "On Hold")

        paid = mark_paid(order.id)

        self.assertTrue(paid.payment)
        self.assertEqual(paid.status, Order.STATUS_PAID)
        order.refresh_from_db()
        self.assertEqual(order.status, Order.STATUS_PAID)

    def test_is_paid(self):
        order = self._place()
        self.assertFalse(is_paid(order.id))

        mark_paid(order.id)

        self.assertTrue(is_paid(order.id))
        self.assertFalse(is_paid(uuid.uuid4()))
        self.assertFalse(is_paid("not-a-uuid"))

    def test_mark_paid_unknown_order(self):
        with self.assertRaises(OrderStateError):
            mark_paid(uuid.uuid4())
        with self.assertRaises(OrderStateError):
            mark_paid("not-a-uuid")

    def test_failed_order_cannot_be_paid(self):
        order = self._place()
        mark_failed(order.id, "declined")

        with self.assertRaises(OrderStateError):
            mark_paid(order.id)

    def test_mark_failed_keeps_order(self):
        order = self._place()

        failed = mark_failed(order.id, "declined")
        again = mark_failed(order.id, "declined twice")

        self.assertEqual(failed.status, Order.STATUS_PAYMENT_FAILED)
        self.assertEqual(again.failure_reason, "declined")
        self.assertTrue(Order.objects.filter(id=order.id).exists())

    def test_mark_cancelled(self):
        order = self._place()

        cancelled = mark_cancelled(order.id)

        self.assertEqual(cancelled.status, Order.STATUS_PAYMENT_CANCELLED)
        self.assertFalse(cancelled.payment)

    def test_failure_only_from_placed(self):
        order = self._place()
        mark_paid(order.id)

        result = mark_failed(order.id, "late failure callback")

        self.assertEqual(result.status, Order.STATUS_PAID)
        self.assertTrue(result.payment)

    def test_rollback_deletes_only_unpaid_placed(self):
        pending = self._place()
        paid = self._place()
        mark_paid(paid.id)

        self.assertTrue(rollback_if_initiation_failed(pending.id))
        self.assertFalse(rollback_if_initiation_failed(paid.id))

        self.assertFalse(Order.objects.filter(id=pending.id).exists())
        self.assertTrue(Order.objects.filter(id=paid.id).exists())

    # --------------------------------------------------
    # ADMINISTRATIVE
    # --------------------------------------------------

    def test_update_status_is_unconditional(self):
        order = self._place()
        mark_cancelled(order.id)

        updated = update_status(order.id, "Returned to sender")

        self.assertEqual(updated.status, "Returned to sender")

    def test_update_status_unknown_order(self):
        with self.assertRaises(OrderNotFoundError):
            update_status(uuid.uuid4(), Order.STATUS_PROCESSING)

    def test_update_address_does_not_recompute_amount(self):
        order = self._place()

        updated = update_address(order.id, OUTSIDE_ADDRESS)

        self.assertEqual(updated.address["district"], "Chattogram")
        self.assertEqual(updated.amount, Decimal("980.00"))
        self.assertEqual(updated.delivery_fee, Decimal("80.00"))

    def test_update_address_revalidates(self):
        order = self._place()

        with self.assertRaises(InvalidAddressError):
            update_address(order.id, {**OUTSIDE_ADDRESS, "recipient_name": ""})
