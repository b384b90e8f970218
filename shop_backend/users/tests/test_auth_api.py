from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from orders.tests.fixtures import DHAKA_ADDRESS, make_product
from users.services.accounts import account_setup_token, ensure_account_for_checkout

User = get_user_model()

STRONG_PASSWORD = "kantha-stitch-42"


class RegisterTests(TestCase):
    def setUp(self):
        self.client = APIClient()

    def test_register_returns_tokens(self):
        res = self.client.post(
            "/api/auth/register/",
            {"phone": "01712345678", "password": STRONG_PASSWORD, "name": "Rahim"},
            format="json",
        )

        self.assertEqual(res.status_code, 201)
        self.assertIn("access", res.data)
        self.assertIn("refresh", res.data)
        self.assertEqual(res.data["user"]["phone"], "+8801712345678")
        self.assertTrue(res.data["user"]["has_password"])

        user = User.objects.get(phone="+8801712345678")
        self.assertEqual(user.created_via, User.CREATED_VIA_REGISTER)
        self.assertTrue(user.check_password(STRONG_PASSWORD))
        self.assertIsNotNone(user.password_set_at)

    def test_short_password_rejected(self):
        res = self.client.post("/api/auth/register/", {"phone": "01712345678", "password": "short"}, format="json")

        self.assertEqual(res.status_code, 400)
        self.assertIn("password", res.data)
        self.assertEqual(User.objects.count(), 0)

    def test_invalid_phone_rejected(self):
        res = self.client.post("/api/auth/register/", {"phone": "12345", "password": STRONG_PASSWORD}, format="json")

        self.assertEqual(res.status_code, 400)
        self.assertIn("phone", res.data)

    def test_existing_phone_conflicts(self):
        User.objects.create_user(phone="01712345678", password=STRONG_PASSWORD)

        res = self.client.post("/api/auth/register/", {"phone": "+8801712345678", "password": "another-pass-99"}, format="json")

        self.assertEqual(res.status_code, 409)

    def test_checkout_account_cannot_be_claimed_by_register(self):
        user = ensure_account_for_checkout(phone="01712345678")

        res = self.client.post("/api/auth/register/", {"phone": "01712345678", "password": STRONG_PASSWORD}, format="json")

        self.assertEqual(res.status_code, 409)
        self.assertIn("account setup", res.data["detail"])
        user.refresh_from_db()
        self.assertFalse(user.has_usable_password())

    def test_registered_account_logs_in(self):
        self.client.post("/api/auth/register/", {"phone": "01712345678", "password": STRONG_PASSWORD}, format="json")

        res = self.client.post("/api/auth/jwt/create/", {"phone": "01712345678", "password": STRONG_PASSWORD}, format="json")

        self.assertEqual(res.status_code, 200)
        self.assertIn("access", res.data)


class SetPasswordTests(TestCase):
    def setUp(self):
        self.client = APIClient()

    def test_setup_token_sets_password(self):
        user = ensure_account_for_checkout(phone="01712345678")
        setup = account_setup_token(user)

        res = self.client.post("/api/auth/set-password/", {**setup, "password": STRONG_PASSWORD}, format="json")

        self.assertEqual(res.status_code, 200)
        self.assertIn("access", res.data)
        user.refresh_from_db()
        self.assertTrue(user.check_password(STRONG_PASSWORD))
        self.assertIsNotNone(user.password_set_at)

    def test_setup_token_is_single_use(self):
        user = ensure_account_for_checkout(phone="01712345678")
        setup = account_setup_token(user)
        self.client.post("/api/auth/set-password/", {**setup, "password": STRONG_PASSWORD}, format="json")

        res = self.client.post("/api/auth/set-password/", {**setup, "password": "taken-over-77"}, format="json")

        self.assertEqual(res.status_code, 400)
        user.refresh_from_db()
        self.assertTrue(user.check_password(STRONG_PASSWORD))

    def test_anonymous_without_token_rejected(self):
        user = ensure_account_for_checkout(phone="01712345678")

        res = self.client.post(
            "/api/auth/set-password/",
            {"user_id": str(user.id), "token": "forged", "password": STRONG_PASSWORD},
            format="json",
        )

        self.assertEqual(res.status_code, 400)
        user.refresh_from_db()
        self.assertFalse(user.has_usable_password())

    def test_signed_in_change_requires_current_password(self):
        user = User.objects.create_user(phone="01712345678", password=STRONG_PASSWORD)
        self.client.force_authenticate(user=user)

        wrong = self.client.post(
            "/api/auth/set-password/",
            {"current_password": "not-it", "password": "new-secret-55"},
            format="json",
        )
        right = self.client.post(
            "/api/auth/set-password/",
            {"current_password": STRONG_PASSWORD, "password": "new-secret-55"},
            format="json",
        )

        self.assertEqual(wrong.status_code, 400)
        self.assertEqual(right.status_code, 200)
        user.refresh_from_db()
        self.assertTrue(user.check_password("new-secret-55"))

    def test_signed_in_passwordless_account_sets_first_password(self):
        user = ensure_account_for_checkout(phone="01712345678")
        self.client.force_authenticate(user=user)

        res = self.client.post("/api/auth/set-password/", {"password": STRONG_PASSWORD}, format="json")

        self.assertEqual(res.status_code, 200)
        user.refresh_from_db()
        self.assertTrue(user.check_password(STRONG_PASSWORD))


class ProfileAndAddressTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(phone="01712345678", password=STRONG_PASSWORD, name="Rahim")

    def test_profile_requires_auth(self):
        res = self.client.get("/api/auth/profile/")
        self.assertEqual(res.status_code, 401)

    def test_profile(self):
        self.client.force_authenticate(user=self.user)

        res = self.client.get("/api/auth/profile/")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["phone"], "+8801712345678")
        self.assertEqual(res.data["name"], "Rahim")
        self.assertNotIn("password", res.data)
        self.assertNotIn("cart_data", res.data)

    def test_save_address(self):
        self.client.force_authenticate(user=self.user)

        res = self.client.post(
            "/api/auth/address/",
            {"address": {**DHAKA_ADDRESS, "postal_code": "1209"}},
            format="json",
        )

        self.assertEqual(res.status_code, 200)
        self.user.refresh_from_db()
        self.assertEqual(self.user.address["postal_code"], "1209")
        self.assertEqual(self.user.address["phone"], "+8801712345678")

    def test_save_address_requires_postal_code(self):
        self.client.force_authenticate(user=self.user)

        res = self.client.post("/api/auth/address/", {"address": DHAKA_ADDRESS}, format="json")

        self.assertEqual(res.status_code, 400)
        self.user.refresh_from_db()
        self.assertIsNone(self.user.address)


class CheckoutAccountSetupTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        product = make_product()
        self.payload = {
            "items": [{"product_id": str(product.id), "size": "M", "quantity": 1}],
            "address": DHAKA_ADDRESS,
        }

    def test_new_checkout_account_gets_setup_token(self):
        res = self.client.post("/api/orders/place/", self.payload, format="json")

        self.assertEqual(res.status_code, 201)
        setup = res.data["account_setup"]

        done = self.client.post("/api/auth/set-password/", {**setup, "password": STRONG_PASSWORD}, format="json")

        self.assertEqual(done.status_code, 200)
        self.assertEqual(done.data["user"]["phone"], "+8801712345678")

    def test_existing_account_gets_no_setup_token(self):
        ensure_account_for_checkout(phone="01712345678")

        res = self.client.post("/api/orders/place/", self.payload, format="json")

        self.assertEqual(res.status_code, 201)
        self.assertNotIn("account_setup", res.data)
