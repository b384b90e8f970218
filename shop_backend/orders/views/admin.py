# orders/views/admin.py
"""
ORDER DESK (ADMIN ROLE)

GET  /api/orders/admin/                 list all orders (filters: status, payment_method, payment)
POST /api/orders/admin/status/          set any status string (escape hatch)
POST /api/orders/admin/address/         correct the destination snapshot
POST /api/orders/admin/courier-check/   courier rate/feasibility passthrough
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import generics, status
from rest_framework.parsers import JSONParser
from rest_framework.response import Response
from rest_framework.views import APIView

from orders.serializers import (
    AddressUpdateSerializer,
    CourierCheckSerializer,
    OrderSerializer,
    StatusUpdateSerializer,
)
from orders.services.courier import check_courier
from orders.services.exceptions import CheckoutError, OrderNotFoundError, UpstreamProviderError
from orders.services.order_lifecycle import list_orders, update_address, update_status
from orders.views.errors import error_response
from users.permissions import IsAdmin


class AdminOrderListView(generics.ListAPIView):
    permission_classes = [IsAdmin]
    serializer_class = OrderSerializer
    filterset_fields = ["status", "payment_method", "payment"]

    def get_queryset(self):
        return list_orders()

    @extend_schema(tags=["Orders (admin)"])
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)


class AdminOrderStatusView(APIView):
    permission_classes = [IsAdmin]
    parser_classes = [JSONParser]

    @extend_schema(
        request=StatusUpdateSerializer,
        responses={200: OrderSerializer, 404: OpenApiResponse(description="Order not found")},
        tags=["Orders (admin)"],
    )
    def post(self, request):
        s = StatusUpdateSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            order = update_status(s.validated_data["order_id"], s.validated_data["status"])
        except OrderNotFoundError as exc:
            return error_response(exc)
        except ValueError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(OrderSerializer(order).data, status=status.HTTP_200_OK)


class AdminOrderAddressView(APIView):
    permission_classes = [IsAdmin]
    parser_classes = [JSONParser]

    @extend_schema(
        request=AddressUpdateSerializer,
        responses={
            200: OrderSerializer,
            400: OpenApiResponse(description="Invalid address"),
            404: OpenApiResponse(description="Order not found"),
        },
        tags=["Orders (admin)"],
    )
    def post(self, request):
        s = AddressUpdateSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            order = update_address(s.validated_data["order_id"], s.validated_data["address"])
        except (CheckoutError, OrderNotFoundError) as exc:
            return error_response(exc)

        return Response(OrderSerializer(order).data, status=status.HTTP_200_OK)


class AdminCourierCheckView(APIView):
    permission_classes = [IsAdmin]
    parser_classes = [JSONParser]

    @extend_schema(
        request=CourierCheckSerializer,
        responses={
            200: OpenApiResponse(description="Courier provider response (verbatim)"),
            502: OpenApiResponse(description="Courier provider error"),
            504: OpenApiResponse(description="Courier provider timeout"),
        },
        tags=["Orders (admin)"],
    )
    def post(self, request):
        s = CourierCheckSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            data = check_courier(phone=s.validated_data["phone"])
        except ValueError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except UpstreamProviderError as exc:
            return error_response(exc)

        return Response(data, status=status.HTTP_200_OK)
