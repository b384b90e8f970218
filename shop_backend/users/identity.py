"""
PATH: users/identity.py

REQUEST IDENTITY (RESOLVED ONCE AT THE BOUNDARY)

Views call resolve_identity(request) exactly once and pass the result down.
Only a verified credential (JWT via DRF authentication) produces an identity.

A `userId` field in the request body is NEVER treated as identity. Older
storefront builds still send one; it is logged so the client can be fixed,
then ignored.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthenticatedIdentity:
    user_id: object
    phone: str
    is_admin: bool
    user: object


def resolve_identity(request) -> Optional[AuthenticatedIdentity]:
    user = getattr(request, "user", None)

    data = getattr(request, "data", None)
    if isinstance(data, dict) and data.get("userId"):
        logger.warning(
            "Ignoring body-supplied userId (identity comes from the token only)",
            extra={"path": getattr(request, "path", "")},
        )

    if not user or not getattr(user, "is_authenticated", False):
        return None

    return AuthenticatedIdentity(
        user_id=user.pk,
        phone=getattr(user, "phone", ""),
        is_admin=bool(getattr(user, "is_admin", False)),
        user=user,
    )
