import uuid
from decimal import Decimal

from django.test import TestCase, override_settings

from orders.services.exceptions import EmptyCartError, ProductUnavailableError
from orders.services.pricing import price_cart, size_surcharge_per_unit, unit_final_price
from orders.tests.fixtures import DHAKA_ADDRESS, OUTSIDE_ADDRESS, make_product


class PricingEngineTests(TestCase):
    """
    GUARANTEES:
    - Totals are computed from current product prices only
    - Bad lines are discarded, missing products reject the whole cart
    - Oversize surcharge is tracked per line
    """

    def setUp(self):
        self.tee = make_product()
        self.cap = make_product(name="Cap", price="250.00", discount="0.00", sizes=[])

    def test_metro_example(self):
        priced = price_cart(
            [{"product_id": str(self.tee.id), "size": "M", "quantity": 2}],
            DHAKA_ADDRESS,
        )

        line = priced.lines[0]
        self.assertEqual(line.unit_final_price, Decimal("450.00"))
        self.assertEqual(line.line_subtotal, Decimal("900.00"))
        self.assertEqual(line.surcharge_applied, Decimal("0.00"))
        self.assertEqual(priced.delivery_fee, Decimal("80.00"))
        self.assertEqual(priced.delivery_label, "Inside Dhaka")
        self.assertEqual(priced.fee_source, "address")
        self.assertEqual(priced.total_amount, Decimal("980.00"))

    def test_oversize_surcharge_example(self):
        priced = price_cart(
            [{"product_id": str(self.tee.id), "size": "XXL2", "quantity": 2}],
            DHAKA_ADDRESS,
        )

        line = priced.lines[0]
        self.assertEqual(line.surcharge_applied, Decimal("100.00"))
        self.assertEqual(line.line_subtotal, Decimal("1000.00"))
        self.assertEqual(priced.total_amount, Decimal("1080.00"))

    def test_total_is_lines_plus_fee(self):
        priced = price_cart(
            [
                {"product_id": str(self.tee.id), "size": "L", "quantity": 1},
                {"product_id": str(self.cap.id), "quantity": 3},
                {"product_id": str(self.tee.id), "size": "xxl", "quantity": 1},
            ],
            OUTSIDE_ADDRESS,
        )

        self.assertEqual(len(priced.lines), 3)
        self.assertEqual(priced.subtotal, Decimal("450.00") + Decimal("750.00") + Decimal("500.00"))
        self.assertEqual(priced.delivery_fee, Decimal("150.00"))
        self.assertEqual(priced.total_amount, priced.subtotal + priced.delivery_fee)

    def test_invalid_lines_are_discarded(self):
        priced = price_cart(
            [
                {"product_id": str(self.tee.id), "size": "M", "quantity": 0},
                {"product_id": str(self.tee.id), "size": "M", "quantity": -1},
                {"product_id": str(self.tee.id), "size": "M", "quantity": "abc"},
                {"product_id": str(self.tee.id), "size": "M", "quantity": 1.5},
                {"product_id": "", "quantity": 2},
                {"quantity": 2},
                "not-a-line",
                {"product_id": str(self.cap.id), "quantity": "2"},
            ],
            DHAKA_ADDRESS,
        )

        self.assertEqual(len(priced.lines), 1)
        self.assertEqual(priced.lines[0].product_id, self.cap.id)
        self.assertEqual(priced.lines[0].quantity, 2)

    def test_nothing_valid_is_empty_cart(self):
        with self.assertRaises(EmptyCartError):
            price_cart([{"product_id": str(self.tee.id), "quantity": 0}], DHAKA_ADDRESS)
        with self.assertRaises(EmptyCartError):
            price_cart([], DHAKA_ADDRESS)

    def test_missing_product_rejects_whole_cart(self):
        with self.assertRaises(ProductUnavailableError):
            price_cart(
                [
                    {"product_id": str(self.tee.id), "quantity": 1},
                    {"product_id": str(uuid.uuid4()), "quantity": 1},
                ],
                DHAKA_ADDRESS,
            )

    def test_malformed_or_inactive_product_rejected(self):
        hidden = make_product(name="Hidden", is_active=False)

        with self.assertRaises(ProductUnavailableError):
            price_cart([{"product_id": "not-a-uuid", "quantity": 1}], DHAKA_ADDRESS)
        with self.assertRaises(ProductUnavailableError):
            price_cart([{"product_id": str(hidden.id), "quantity": 1}], DHAKA_ADDRESS)

    def test_products_fetched_in_one_query(self):
        items = [
            {"product_id": str(self.tee.id), "size": "M", "quantity": 1},
            {"product_id": str(self.tee.id), "size": "XXL", "quantity": 1},
            {"product_id": str(self.cap.id), "quantity": 1},
        ]
        with self.assertNumQueries(1):
            price_cart(items, DHAKA_ADDRESS)

    def test_delivery_override_applies(self):
        priced = price_cart(
            [{"product_id": str(self.cap.id), "quantity": 1}],
            OUTSIDE_ADDRESS,
            {"area": "inside", "fee": 60},
        )

        self.assertEqual(priced.delivery_fee, Decimal("60.00"))
        self.assertEqual(priced.fee_source, "override")
        self.assertEqual(priced.total_amount, Decimal("310.00"))


class UnitPriceTests(TestCase):
    def test_discount_is_clamped(self):
        self.assertEqual(unit_final_price("100.00", "150"), Decimal("0.00"))
        self.assertEqual(unit_final_price("100.00", "-20"), Decimal("100.00"))

    def test_rounding_half_up_to_minor_unit(self):
        # 99.99 - 32.9967 = 66.9933
        self.assertEqual(unit_final_price("99.99", "33"), Decimal("66.99"))
        # 10.05 - 5.025 = 5.025 -> 5.03
        self.assertEqual(unit_final_price("10.05", "50"), Decimal("5.03"))

    def test_surcharge_predicate(self):
        self.assertEqual(size_surcharge_per_unit("XXL"), Decimal("50.00"))
        self.assertEqual(size_surcharge_per_unit("xxl3"), Decimal("50.00"))
        self.assertEqual(size_surcharge_per_unit("XL"), Decimal("0.00"))
        self.assertEqual(size_surcharge_per_unit(None), Decimal("0.00"))

    @override_settings(SIZE_SURCHARGE={"AMOUNT": "75.00", "SIZE_PREFIXES": ["XXL", "3XL"]})
    def test_surcharge_is_configurable(self):
        self.assertEqual(size_surcharge_per_unit("3XL"), Decimal("75.00"))
