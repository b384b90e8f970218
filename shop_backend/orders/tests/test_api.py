import socket
import uuid
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from rest_framework.test import APIClient

from orders.models import Order
from orders.services.order_lifecycle import create_pending_order, mark_paid
from orders.tests.fixtures import DHAKA_ADDRESS, OUTSIDE_ADDRESS, make_product

User = get_user_model()

COURIER_SETTINGS = {"CHECK_URL": "https://courier.example.com/check", "API_KEY": "courier-key", "TIMEOUT": 15}


class CheckoutApiTests(TestCase):
    """
    POST /api/orders/place/ (cash on delivery)
    """

    url = "/api/orders/place/"

    def setUp(self):
        self.client = APIClient()
        self.product = make_product()

    def _payload(self, **overrides):
        payload = {
            "items": [{"product_id": str(self.product.id), "size": "M", "quantity": 2}],
            "address": DHAKA_ADDRESS,
        }
        payload.update(overrides)
        return payload

    def test_place_cod_order(self):
        res = self.client.post(self.url, self._payload(), format="json")

        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data["amount"], "980.00")
        self.assertEqual(res.data["payment_method"], "COD")
        self.assertFalse(res.data["payment"])
        self.assertEqual(res.data["status"], "Order Placed")
        self.assertEqual(len(res.data["items"]), 1)

    def test_client_amount_is_ignored(self):
        res = self.client.post(self.url, self._payload(amount="1.00"), format="json")

        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data["amount"], "980.00")

    def test_camel_case_product_id_accepted(self):
        payload = self._payload(items=[{"productId": str(self.product.id), "size": "XXL2", "quantity": 2}])

        res = self.client.post(self.url, payload, format="json")

        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data["amount"], "1080.00")

    def test_authenticated_customer_owns_order_and_cart_is_cleared(self):
        user = User.objects.create_user(phone="01912345678", password="pass", cart_data={"x": 1})
        self.client.force_authenticate(user=user)

        res = self.client.post(self.url, self._payload(), format="json")

        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data["user_id"], str(user.id))
        user.refresh_from_db()
        self.assertEqual(user.cart_data, {})

    def test_body_user_id_is_not_identity(self):
        victim = User.objects.create_user(phone="01912345678", password="pass")

        res = self.client.post(self.url, self._payload(userId=str(victim.id)), format="json")

        self.assertEqual(res.status_code, 201)
        self.assertNotEqual(res.data["user_id"], str(victim.id))
        self.assertEqual(Order.objects.get(id=res.data["id"]).user.phone, "+8801712345678")

    def test_empty_cart(self):
        res = self.client.post(self.url, self._payload(items=[]), format="json")

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["detail"], "Cart is empty")

    def test_unavailable_product(self):
        payload = self._payload(items=[{"product_id": str(uuid.uuid4()), "quantity": 1}])

        res = self.client.post(self.url, payload, format="json")

        self.assertEqual(res.status_code, 404)
        self.assertIn("Product not available", res.data["detail"])
        self.assertEqual(Order.objects.count(), 0)

    def test_invalid_address(self):
        res = self.client.post(self.url, self._payload(address={**DHAKA_ADDRESS, "district": ""}), format="json")

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["detail"], "District is required")

    def test_missing_address_is_transport_error(self):
        res = self.client.post(self.url, {"items": []}, format="json")
        self.assertEqual(res.status_code, 400)
        self.assertIn("address", res.data)


class CustomerOrderApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.product = make_product()
        self.owner = User.objects.create_user(phone="01712345678", password="pass")
        self.other = User.objects.create_user(phone="01912345678", password="pass")
        self.order = create_pending_order(
            user=self.owner,
            items=[{"product_id": str(self.product.id), "size": "M", "quantity": 2}],
            address=DHAKA_ADDRESS,
            payment_method=Order.METHOD_COD,
        )

    def test_my_orders_requires_auth(self):
        res = self.client.get("/api/orders/mine/")
        self.assertEqual(res.status_code, 401)

    def test_my_orders_lists_only_mine(self):
        self.client.force_authenticate(user=self.other)
        self.assertEqual(self.client.get("/api/orders/mine/").data, [])

        self.client.force_authenticate(user=self.owner)
        res = self.client.get("/api/orders/mine/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual([o["id"] for o in res.data], [str(self.order.id)])

    def test_track_owner(self):
        self.client.force_authenticate(user=self.owner)

        res = self.client.get(f"/api/orders/track/{self.order.id}/")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["progress"]["progress_pct"], 10)
        self.assertNotIn("address", res.data)

    def test_track_not_owner_is_404(self):
        self.client.force_authenticate(user=self.other)

        res = self.client.get(f"/api/orders/track/{self.order.id}/")

        self.assertEqual(res.status_code, 404)

    def test_public_lookup_by_phone(self):
        res = self.client.post(
            "/api/orders/track/lookup/",
            {"order_id": str(self.order.id), "phone": "+880 1712-345678"},
            format="json",
        )

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["order_no"], self.order.order_no)

    def test_public_lookup_wrong_phone_is_404(self):
        res = self.client.post(
            "/api/orders/track/lookup/",
            {"order_id": str(self.order.id), "phone": "01912345678"},
            format="json",
        )

        self.assertEqual(res.status_code, 404)


class AdminOrderApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.product = make_product()
        self.admin = User.objects.create_user(phone="01512345678", password="pass", role="admin")
        self.customer = User.objects.create_user(phone="01712345678", password="pass")

        items = [{"product_id": str(self.product.id), "size": "M", "quantity": 1}]
        self.cod = create_pending_order(
            user=self.customer, items=items, address=DHAKA_ADDRESS, payment_method=Order.METHOD_COD
        )
        self.paid = create_pending_order(
            user=self.customer, items=items, address=OUTSIDE_ADDRESS, payment_method=Order.METHOD_SSLCOMMERZ
        )
        mark_paid(self.paid.id)

    def test_anonymous_is_401(self):
        self.assertEqual(self.client.get("/api/orders/admin/").status_code, 401)

    def test_customer_is_403(self):
        self.client.force_authenticate(user=self.customer)

        self.assertEqual(self.client.get("/api/orders/admin/").status_code, 403)
        res = self.client.post(
            "/api/orders/admin/status/",
            {"order_id": str(self.cod.id), "status": "Delivered"},
            format="json",
        )
        self.assertEqual(res.status_code, 403)

    def test_list_and_filter(self):
        self.client.force_authenticate(user=self.admin)

        res = self.client.get("/api/orders/admin/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["count"], 2)

        res = self.client.get("/api/orders/admin/", {"status": "Paid"})
        self.assertEqual([o["id"] for o in res.data["results"]], [str(self.paid.id)])

        res = self.client.get("/api/orders/admin/", {"payment_method": "COD"})
        self.assertEqual([o["id"] for o in res.data["results"]], [str(self.cod.id)])

    def test_status_override(self):
        self.client.force_authenticate(user=self.admin)

        res = self.client.post(
            "/api/orders/admin/status/",
            {"order_id": str(self.cod.id), "status": "Out for Delivery"},
            format="json",
        )

        self.assertEqual(res.status_code, 200)
        self.cod.refresh_from_db()
        self.assertEqual(self.cod.status, "Out for Delivery")

    def test_status_unknown_order_is_404(self):
        self.client.force_authenticate(user=self.admin)

        res = self.client.post(
            "/api/orders/admin/status/",
            {"order_id": str(uuid.uuid4()), "status": "Processing"},
            format="json",
        )

        self.assertEqual(res.status_code, 404)

    def test_address_correction(self):
        self.client.force_authenticate(user=self.admin)

        res = self.client.post(
            "/api/orders/admin/address/",
            {"order_id": str(self.cod.id), "address": {**DHAKA_ADDRESS, "address_line1": "New house"}},
            format="json",
        )
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["address"]["address_line1"], "New house")
        self.assertEqual(res.data["amount"], str(self.cod.amount))

        res = self.client.post(
            "/api/orders/admin/address/",
            {"order_id": str(self.cod.id), "address": {**DHAKA_ADDRESS, "phone": "12"}},
            format="json",
        )
        self.assertEqual(res.status_code, 400)

    @override_settings(COURIER=COURIER_SETTINGS)
    @patch("orders.services.courier.request_json")
    def test_courier_check_passthrough(self, mock_request):
        mock_request.return_value = {"status": 200, "data": {"deliverable": True, "rate": 80}}
        self.client.force_authenticate(user=self.admin)

        res = self.client.post("/api/orders/admin/courier-check/", {"phone": "01712345678"}, format="json")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data, {"status": 200, "data": {"deliverable": True, "rate": 80}})
        args, kwargs = mock_request.call_args
        self.assertEqual(args, ("POST", COURIER_SETTINGS["CHECK_URL"]))
        self.assertEqual(kwargs["json_body"], {"phone": "+8801712345678"})
        self.assertEqual(kwargs["headers"], {"Authorization": "Bearer courier-key"})
        self.assertEqual(kwargs["timeout"], 15)

    @override_settings(COURIER=COURIER_SETTINGS)
    @patch("payments.services.http.urlopen", side_effect=socket.timeout("timed out"))
    def test_courier_timeout_is_504(self, _urlopen):
        self.client.force_authenticate(user=self.admin)

        res = self.client.post("/api/orders/admin/courier-check/", {"phone": "01712345678"}, format="json")

        self.assertEqual(res.status_code, 504)

    def test_courier_invalid_phone(self):
        self.client.force_authenticate(user=self.admin)

        res = self.client.post("/api/orders/admin/courier-check/", {"phone": "abc"}, format="json")

        self.assertEqual(res.status_code, 400)
