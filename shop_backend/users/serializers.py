from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers

from users.phone import is_valid_bd_phone, normalize_bd_phone

User = get_user_model()


# ---------------- REGISTER ----------------
class RegisterSerializer(serializers.Serializer):
    phone = serializers.CharField(max_length=32)
    password = serializers.CharField(
        write_only=True,
        validators=[validate_password],
        style={"input_type": "password"},
    )
    name = serializers.CharField(required=False, allow_blank=True, max_length=150, default="")

    def validate_phone(self, value):
        phone = normalize_bd_phone(value)
        if not is_valid_bd_phone(phone):
            raise serializers.ValidationError("Phone must be a valid Bangladesh mobile number")
        return phone


# ---------------- SET PASSWORD ----------------
class SetPasswordSerializer(serializers.Serializer):
    """
    Signed in: password (+ current_password when one is already set).
    Signed out: user_id + token from the checkout's account_setup.
    """

    password = serializers.CharField(
        write_only=True,
        validators=[validate_password],
        style={"input_type": "password"},
    )
    current_password = serializers.CharField(
        write_only=True,
        required=False,
        allow_blank=True,
        style={"input_type": "password"},
    )
    user_id = serializers.UUIDField(required=False)
    token = serializers.CharField(required=False, allow_blank=True)


# ---------------- ADDRESS ----------------
class SaveAddressSerializer(serializers.Serializer):
    address = serializers.DictField()


# ---------------- USER OUTPUT ----------------
class UserSerializer(serializers.ModelSerializer):
    """
    Safe user representation for frontend consumption.
    """

    has_password = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            "id",
            "phone",
            "name",
            "address",
            "role",
            "created_via",
            "has_password",
            "created_at",
        ]

    def get_has_password(self, obj) -> bool:
        return obj.has_usable_password()
