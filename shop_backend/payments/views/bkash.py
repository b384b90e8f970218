# payments/views/bkash.py
"""
BKASH ENDPOINTS

POST /api/payments/bkash/create/     JSON -> provider session + order_id
GET  /api/payments/bkash/callback/   ?orderId&sig&paymentID&status -> 302 result page
"""

from __future__ import annotations

import logging

from django.shortcuts import redirect
from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.parsers import JSONParser
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from orders.models import Order
from orders.serializers import CheckoutInputSerializer
from orders.services.exceptions import CheckoutError, UpstreamProviderError
from orders.views.checkout import PublicWriteThrottle, create_order_from_request, with_account_setup
from orders.views.errors import error_response
from payments.services.base import RESULT_ERROR, payment_result_url
from payments.services.bkash import BkashGateway
from payments.views.sslcommerz import WebhookThrottle

logger = logging.getLogger(__name__)


class BkashCreateView(APIView):
    permission_classes = [AllowAny]
    parser_classes = [JSONParser]
    throttle_classes = [PublicWriteThrottle]

    @extend_schema(
        request=CheckoutInputSerializer,
        responses={
            200: OpenApiResponse(description="bKash create payload (paymentID, bkashURL) + order_id"),
            400: OpenApiResponse(description="Empty cart / invalid address"),
            404: OpenApiResponse(description="Unknown or inactive product"),
            502: OpenApiResponse(description="bKash error (pending order rolled back)"),
            504: OpenApiResponse(description="bKash timeout (pending order rolled back)"),
        },
        tags=["Payments"],
    )
    def post(self, request):
        try:
            order = create_order_from_request(request, payment_method=Order.METHOD_BKASH)
            initiation = BkashGateway().initiate(order, base_url=request.build_absolute_uri("/"))
        except (CheckoutError, UpstreamProviderError) as exc:
            return error_response(exc)

        return Response(
            with_account_setup({**initiation.session, "order_id": str(order.id)}, order),
            status=status.HTTP_200_OK,
        )


class BkashCallbackView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [WebhookThrottle]

    @extend_schema(exclude=True)
    def get(self, request, *args, **kwargs):
        params = request.query_params
        logger.info("bKash callback received", extra={"status": params.get("status", "")})
        try:
            target = BkashGateway().handle_callback(
                order_id=params.get("orderId"),
                payment_id=params.get("paymentID"),
                status=params.get("status"),
                signature=params.get("sig"),
            )
        except Exception:
            logger.exception("Unhandled bKash callback error")
            target = payment_result_url(RESULT_ERROR)
        return redirect(target)
