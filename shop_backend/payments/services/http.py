# payments/services/http.py
"""
OUTBOUND HTTP (PROVIDERS)

request_json(method, url, *, json_body=None, form_body=None, headers=None, timeout=15)

- Every call carries an explicit timeout.
- Timeouts raise ProviderTimeoutError (504); any other transport error,
  HTTP error status or non-JSON answer raises UpstreamProviderError (502).
- Provider error messages are passed through where present.
"""

from __future__ import annotations

import json
import logging
import socket
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from orders.services.exceptions import ProviderTimeoutError, UpstreamProviderError

logger = logging.getLogger(__name__)

USER_AGENT = "storefront-backend/1.0 Python-urllib"


def _safe_preview(text: str, limit: int = 800) -> str:
    text = (text or "").strip()
    if len(text) <= limit:
        return text
    return text[:limit] + " ...(truncated)"


def _parse_json_or_text(raw: str) -> dict[str, Any]:
    raw = raw or ""
    try:
        parsed = json.loads(raw)
    except ValueError:
        return {"kind": "text", "raw": raw}
    if isinstance(parsed, dict):
        return {"kind": "json", "json": parsed, "raw": raw}
    return {"kind": "json_non_object", "json": parsed, "raw": raw}


def _is_timeout(exc: BaseException) -> bool:
    if isinstance(exc, (socket.timeout, TimeoutError)):
        return True
    reason = getattr(exc, "reason", None)
    return isinstance(reason, (socket.timeout, TimeoutError))


def request_json(
    method: str,
    url: str,
    *,
    json_body: dict | None = None,
    form_body: dict | None = None,
    headers: dict | None = None,
    timeout: float = 15,
    provider: str = "provider",
) -> dict[str, Any]:
    data = None
    req_headers = {
        "Accept": "application/json",
        "User-Agent": USER_AGENT,
    }

    if json_body is not None:
        data = json.dumps(json_body, ensure_ascii=False).encode("utf-8")
        req_headers["Content-Type"] = "application/json"
    elif form_body is not None:
        data = urlencode(form_body).encode("utf-8")
        req_headers["Content-Type"] = "application/x-www-form-urlencoded"

    req_headers.update(headers or {})
    req = Request(url, data=data, headers=req_headers, method=method)

    try:
        with urlopen(req, timeout=timeout) as resp:
            raw = resp.read().decode("utf-8", errors="replace")
    except HTTPError as e:
        try:
            raw = e.read().decode("utf-8", errors="replace")
        except OSError:
            raw = ""
        parsed_any = _parse_json_or_text(raw)

        if parsed_any.get("kind") == "json":
            j = parsed_any.get("json") or {}
            msg = (
                j.get("message")
                or j.get("errorMessage")
                or j.get("statusMessage")
                or j.get("failedreason")
                or j.get("error")
                or f"{provider} rejected request"
            )
            raise UpstreamProviderError(
                f"{provider} HTTPError: {e.code} {msg}", upstream_status=e.code
            ) from e

        raise UpstreamProviderError(
            f"{provider} HTTPError: {e.code} {_safe_preview(parsed_any.get('raw') or str(e))}",
            upstream_status=e.code,
        ) from e
    except (URLError, OSError) as e:
        if _is_timeout(e):
            logger.warning("Provider call timed out", extra={"provider": provider, "timeout": timeout})
            raise ProviderTimeoutError(f"{provider} did not respond within {timeout}s") from e
        raise UpstreamProviderError(f"{provider} request failed: {e}") from e

    parsed_any = _parse_json_or_text(raw)
    if parsed_any.get("kind") != "json":
        raise UpstreamProviderError(
            f"{provider} returned non-JSON: {_safe_preview(parsed_any.get('raw') or '')}"
        )

    return parsed_any.get("json") or {}
