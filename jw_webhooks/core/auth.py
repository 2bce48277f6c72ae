"""Admin authentication for the registration endpoints.

The receive route is authenticated per request by its HMAC signature; the
admin routes that create and delete webhooks at JW are instead protected by a
single operator secret passed as a bearer token.
"""

from __future__ import annotations

import logging
import secrets

from fastapi import HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from jw_webhooks.core.config import settings

logger = logging.getLogger(__name__)

admin_scheme = HTTPBearer(
    scheme_name="Admin Secret",
    description="Pass the admin secret as: `Authorization: Bearer <ADMIN_SECRET>`",
)


async def require_admin(
    credentials: HTTPAuthorizationCredentials = Security(admin_scheme),
) -> bool:
    """Validate the admin secret for webhook-management endpoints."""
    if not secrets.compare_digest(
        credentials.credentials.encode("utf-8"), settings.admin_secret.encode("utf-8")
    ):
        logger.warning("Rejected admin request with an invalid secret")
        raise HTTPException(
            status_code=403,
            detail={
                "code": "FORBIDDEN",
                "message": "Invalid admin secret.",
            },
        )
    return True
