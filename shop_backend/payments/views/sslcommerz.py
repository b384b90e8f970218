# payments/views/sslcommerz.py
"""
SSLCOMMERZ ENDPOINTS

POST /api/payments/sslcommerz/initiate/   JSON  -> {url, order_id}
POST /api/payments/sslcommerz/success/    form  -> 302 storefront result page
POST /api/payments/sslcommerz/fail/       form  -> 302
POST /api/payments/sslcommerz/cancel/     form  -> 302
POST /api/payments/sslcommerz/ipn/        form  -> "OK" (logging hook)

Callbacks are called by the customer's browser mid-redirect: they never
answer with JSON errors, they redirect to ?status=error instead.
"""

from __future__ import annotations

import logging

from django.http import HttpResponse
from django.shortcuts import redirect
from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle
from rest_framework.views import APIView

from orders.models import Order
from orders.serializers import CheckoutInputSerializer
from orders.services.exceptions import CheckoutError, UpstreamProviderError
from orders.views.checkout import PublicWriteThrottle, create_order_from_request, with_account_setup
from orders.views.errors import error_response
from payments.services.base import RESULT_CANCELLED, RESULT_ERROR, RESULT_FAILED, RESULT_SUCCESS, payment_result_url
from payments.services.sslcommerz import SSLCommerzGateway

logger = logging.getLogger(__name__)


class WebhookThrottle(AnonRateThrottle):
    scope = "webhook"


class SSLCommerzInitiateView(APIView):
    permission_classes = [AllowAny]
    parser_classes = [JSONParser]
    throttle_classes = [PublicWriteThrottle]

    @extend_schema(
        request=CheckoutInputSerializer,
        responses={
            200: OpenApiResponse(description="{url, order_id}: redirect the customer to url"),
            400: OpenApiResponse(description="Empty cart / invalid address"),
            404: OpenApiResponse(description="Unknown or inactive product"),
            502: OpenApiResponse(description="Gateway error (pending order rolled back)"),
            504: OpenApiResponse(description="Gateway timeout (pending order rolled back)"),
        },
        tags=["Payments"],
    )
    def post(self, request):
        try:
            order = create_order_from_request(request, payment_method=Order.METHOD_SSLCOMMERZ)
            initiation = SSLCommerzGateway().initiate(order, base_url=request.build_absolute_uri("/"))
        except (CheckoutError, UpstreamProviderError) as exc:
            return error_response(exc)

        return Response(
            with_account_setup({"url": initiation.redirect_url, "order_id": str(order.id)}, order),
            status=status.HTTP_200_OK,
        )


class SSLCommerzCallbackView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    parser_classes = [FormParser, MultiPartParser]
    throttle_classes = [WebhookThrottle]

    outcome = RESULT_ERROR

    @extend_schema(exclude=True)
    def post(self, request, *args, **kwargs):
        logger.info("SSLCommerz callback received", extra={"outcome": self.outcome})
        try:
            target = SSLCommerzGateway().handle_callback(self.outcome, request.data)
        except Exception:
            logger.exception("Unhandled SSLCommerz callback error", extra={"outcome": self.outcome})
            target = payment_result_url(RESULT_ERROR)
        return redirect(target)


class SSLCommerzSuccessView(SSLCommerzCallbackView):
    outcome = RESULT_SUCCESS


class SSLCommerzFailView(SSLCommerzCallbackView):
    outcome = RESULT_FAILED


class SSLCommerzCancelView(SSLCommerzCallbackView):
    outcome = RESULT_CANCELLED


class SSLCommerzIpnView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    parser_classes = [FormParser, MultiPartParser]
    throttle_classes = [WebhookThrottle]

    @extend_schema(exclude=True)
    def post(self, request, *args, **kwargs):
        data = request.data
        logger.info(
            "SSLCommerz IPN received",
            extra={
                "tran_id": data.get("tran_id", ""),
                "status": data.get("status", ""),
                "order_id": data.get("value_a", ""),
            },
        )
        return HttpResponse("OK", content_type="text/plain")
