# orders/views/customer.py
"""
CUSTOMER ORDER VIEWS

GET  /api/orders/mine/                my orders (JWT)
GET  /api/orders/track/<uuid>/        tracking view, owner only (JWT)
POST /api/orders/track/lookup/        public tracking by order id + phone

Tracking responses are the sanitized projection (orders.services.tracking):
no account link, no phone, no provider payloads.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.exceptions import NotAuthenticated
from rest_framework.parsers import JSONParser
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle
from rest_framework.views import APIView

from orders.models import Order
from orders.serializers import OrderSerializer, TrackingLookupSerializer
from orders.services.order_lifecycle import orders_for_user
from orders.services.tracking import project_order
from users.identity import resolve_identity
from users.phone import normalize_bd_phone


class PublicPollThrottle(AnonRateThrottle):
    scope = "public_poll"


NOT_FOUND = {"detail": "Order not found"}


class MyOrdersView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(responses={200: OrderSerializer(many=True)}, tags=["Orders"])
    def get(self, request):
        identity = resolve_identity(request)
        if identity is None:
            raise NotAuthenticated()
        orders = orders_for_user(identity.user)
        return Response(OrderSerializer(orders, many=True).data, status=status.HTTP_200_OK)


class TrackOrderView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        responses={
            200: OpenApiResponse(description="Sanitized tracking view"),
            404: OpenApiResponse(description="Not found (or not yours)"),
        },
        tags=["Orders"],
    )
    def get(self, request, order_id):
        identity = resolve_identity(request)
        if identity is None:
            raise NotAuthenticated()

        qs = Order.objects.prefetch_related("items").filter(id=order_id)
        if not identity.is_admin:
            qs = qs.filter(user_id=identity.user_id)

        order = qs.first()
        if order is None:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)

        return Response(project_order(order), status=status.HTTP_200_OK)


class TrackLookupView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    parser_classes = [JSONParser]
    throttle_classes = [PublicPollThrottle]

    @extend_schema(
        request=TrackingLookupSerializer,
        responses={
            200: OpenApiResponse(description="Sanitized tracking view"),
            404: OpenApiResponse(description="No order with this id and phone"),
        },
        tags=["Orders"],
    )
    def post(self, request):
        s = TrackingLookupSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        order = Order.objects.prefetch_related("items").filter(id=data["order_id"]).first()
        phone = normalize_bd_phone(data["phone"])

        # Same 404 for "no such order" and "wrong phone".
        if order is None or (order.address or {}).get("phone") != phone:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)

        return Response(project_order(order), status=status.HTTP_200_OK)
