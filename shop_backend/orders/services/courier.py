# orders/services/courier.py

"""
COURIER RATE / FEASIBILITY CHECK (ADMIN PASSTHROUGH)

POST COURIER["CHECK_URL"] {"phone": "+8801..."} with a bearer key.
The provider's response is surfaced verbatim to the operator.
"""

from __future__ import annotations

import logging

from django.conf import settings

from orders.services.exceptions import UpstreamProviderError
from payments.services.http import request_json
from users.phone import is_valid_bd_phone, normalize_bd_phone

logger = logging.getLogger(__name__)


def _courier_cfg() -> dict:
    cfg = getattr(settings, "COURIER", None) or {}
    return cfg if isinstance(cfg, dict) else {}


def check_courier(*, phone: str) -> dict:
    phone = normalize_bd_phone(phone)
    if not is_valid_bd_phone(phone):
        raise ValueError("Phone must be a valid Bangladesh mobile number")

    cfg = _courier_cfg()
    url = (cfg.get("CHECK_URL") or "").strip()
    api_key = (cfg.get("API_KEY") or "").strip()
    if not url or not api_key:
        raise UpstreamProviderError("Courier check is not configured")

    logger.info("Courier check requested")
    return request_json(
        "POST",
        url,
        json_body={"phone": phone},
        headers={"Authorization": f"Bearer {api_key}"},
        timeout=cfg.get("TIMEOUT", 15),
        provider="Courier",
    )
