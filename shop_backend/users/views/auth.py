"""
ACCOUNT AUTH

POST /api/auth/register/       phone + password (+ name) -> 201 tokens + user
POST /api/auth/set-password/   signed in, or user_id + token from account_setup

Login itself is SimpleJWT's /api/auth/jwt/create/ (phone + password).
"""

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken

from orders.views.errors import error_response
from users.serializers import RegisterSerializer, SetPasswordSerializer, UserSerializer
from users.services.accounts import (
    AccountExistsError,
    register_account,
    set_account_password,
    user_from_setup_token,
)


class AuthThrottle(AnonRateThrottle):
    scope = "auth"


def token_response(user, *, status_code=status.HTTP_200_OK) -> Response:
    refresh = RefreshToken.for_user(user)
    return Response(
        {
            "access": str(refresh.access_token),
            "refresh": str(refresh),
            "user": UserSerializer(user).data,
        },
        status=status_code,
    )


class RegisterView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [AuthThrottle]
    serializer_class = RegisterSerializer

    @extend_schema(
        request=RegisterSerializer,
        responses={
            201: OpenApiResponse(description="{access, refresh, user}"),
            400: OpenApiResponse(description="Invalid phone / weak password"),
            409: OpenApiResponse(description="Phone already has an account"),
        },
        description="Register a customer account with phone and password",
        tags=["Auth"],
    )
    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            user = register_account(phone=data["phone"], password=data["password"], name=data.get("name", ""))
        except AccountExistsError as exc:
            return error_response(exc)

        return token_response(user, status_code=status.HTTP_201_CREATED)


class SetPasswordView(APIView):
    permission_classes = [AllowAny]
    throttle_classes = [AuthThrottle]
    serializer_class = SetPasswordSerializer

    @extend_schema(
        request=SetPasswordSerializer,
        responses={
            200: OpenApiResponse(description="{access, refresh, user}"),
            400: OpenApiResponse(description="Weak password / wrong current password / bad setup token"),
        },
        description="Set or change the account password",
        tags=["Auth"],
    )
    def post(self, request):
        serializer = SetPasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        if request.user and request.user.is_authenticated:
            user = request.user
            if user.has_usable_password() and not user.check_password(data.get("current_password") or ""):
                return Response(
                    {"detail": "Current password is incorrect"},
                    status=status.HTTP_400_BAD_REQUEST,
                )
        else:
            user = user_from_setup_token(data.get("user_id"), data.get("token"))
            if user is None:
                return Response(
                    {"detail": "Invalid or expired account setup token"},
                    status=status.HTTP_400_BAD_REQUEST,
                )

        set_account_password(user, data["password"])
        return token_response(user)
