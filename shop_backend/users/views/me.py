from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework.parsers import JSONParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from orders.services.address import clean_address
from orders.services.exceptions import InvalidAddressError
from orders.views.errors import error_response
from users.serializers import SaveAddressSerializer, UserSerializer
from users.services.accounts import save_address


class ProfileView(APIView):
    permission_classes = [IsAuthenticated]
    serializer_class = UserSerializer

    @extend_schema(
        responses={200: UserSerializer},
        description="Get current authenticated user profile",
        tags=["Auth"],
    )
    def get(self, request):
        return Response(UserSerializer(request.user).data)


class SaveAddressView(APIView):
    permission_classes = [IsAuthenticated]
    parser_classes = [JSONParser]
    serializer_class = SaveAddressSerializer

    @extend_schema(
        request=SaveAddressSerializer,
        responses={
            200: UserSerializer,
            400: OpenApiResponse(description="Invalid address"),
        },
        description="Save the default delivery address (same rules as checkout, postal code required)",
        tags=["Auth"],
    )
    def post(self, request):
        serializer = SaveAddressSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            snapshot = clean_address(serializer.validated_data["address"], strict=True)
        except InvalidAddressError as exc:
            return error_response(exc)

        user = save_address(request.user, snapshot)
        return Response(UserSerializer(user).data)
