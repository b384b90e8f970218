# orders/views/errors.py

from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.response import Response

from orders.services.exceptions import UpstreamProviderError

logger = logging.getLogger(__name__)


def error_response(exc: Exception) -> Response:
    """Domain error -> {"detail": ...} with the error's HTTP status."""
    code = getattr(exc, "status_code", status.HTTP_400_BAD_REQUEST)
    if isinstance(exc, UpstreamProviderError):
        logger.warning("Upstream provider error", extra={"error": str(exc), "status_code": code})
    return Response({"detail": str(exc)}, status=code)
