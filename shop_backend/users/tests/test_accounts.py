from django.contrib.auth import authenticate, get_user_model
from django.test import TestCase
from rest_framework.test import APIRequestFactory

from users.identity import resolve_identity
from users.permissions import IsAdmin
from users.services.accounts import clear_cart, ensure_account_for_checkout

User = get_user_model()


class CheckoutAccountTests(TestCase):
    """
    GUARANTEES:
    - Checkout finds or creates the account keyed by canonical phone
    - Checkout-created accounts have no usable password
    - Existing profile data is not overwritten
    """

    def test_creates_passwordless_account(self):
        user = ensure_account_for_checkout(phone="01712345678", name="Rahim")

        self.assertEqual(user.phone, "+8801712345678")
        self.assertEqual(user.name, "Rahim")
        self.assertEqual(user.created_via, User.CREATED_VIA_CHECKOUT)
        self.assertFalse(user.has_usable_password())

    def test_reuses_account_across_phone_formats(self):
        first = ensure_account_for_checkout(phone="01712345678")
        second = ensure_account_for_checkout(phone="+880 1712-345678", name="Later Name")

        self.assertEqual(first.id, second.id)
        self.assertEqual(User.objects.count(), 1)
        self.assertEqual(second.name, "Later Name")

    def test_does_not_overwrite_existing_name(self):
        User.objects.create_user(phone="01712345678", name="Original")

        user = ensure_account_for_checkout(phone="01712345678", name="Other")

        self.assertEqual(user.name, "Original")

    def test_invalid_phone_rejected(self):
        with self.assertRaises(ValueError):
            ensure_account_for_checkout(phone="12345")

    def test_clear_cart(self):
        user = User.objects.create_user(phone="01712345678", cart_data={"sku": {"M": 2}})

        clear_cart(user_id=user.id)

        user.refresh_from_db()
        self.assertEqual(user.cart_data, {})


class PhoneBackendTests(TestCase):
    def test_login_with_any_phone_format(self):
        user = User.objects.create_user(phone="01712345678", password="s3cret-pass")

        self.assertEqual(authenticate(phone="8801712345678", password="s3cret-pass"), user)
        self.assertIsNone(authenticate(phone="01712345678", password="wrong"))

    def test_checkout_account_cannot_log_in(self):
        User.objects.create_user(phone="01712345678")

        self.assertIsNone(authenticate(phone="01712345678", password=""))


class IdentityTests(TestCase):
    def setUp(self):
        self.factory = APIRequestFactory()
        self.admin = User.objects.create_user(phone="01812345678", password="pass", role="admin")
        self.customer = User.objects.create_user(phone="01912345678", password="pass")

    def test_identity_comes_from_authenticated_user_only(self):
        request = self.factory.post("/")
        request.user = self.customer
        request.data = {"userId": str(self.admin.id)}

        identity = resolve_identity(request)

        self.assertEqual(identity.user_id, self.customer.id)
        self.assertFalse(identity.is_admin)

    def test_body_user_id_never_creates_identity(self):
        request = self.factory.post("/")
        request.user = None
        request.data = {"userId": str(self.customer.id)}

        self.assertIsNone(resolve_identity(request))

    def test_admin_permission(self):
        request = self.factory.get("/")

        request.user = self.admin
        self.assertTrue(IsAdmin().has_permission(request, None))

        request.user = self.customer
        self.assertFalse(IsAdmin().has_permission(request, None))
