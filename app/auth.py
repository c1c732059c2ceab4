"""Shared-secret check for the refresh trigger."""

from __future__ import annotations

import hmac

from fastapi import HTTPException, Security
from fastapi.security import APIKeyHeader

from app.config import settings

_header = APIKeyHeader(name="X-Cron-Secret", auto_error=False)


async def require_cron_secret(secret: str | None = Security(_header)) -> str:
    """Dependency that guards POST /cron/refresh.

    Only enforced in production, so local development and tests can trigger
    a refresh without extra setup. A production deploy without CRON_SECRET
    rejects every request.
    """
    if settings.environment != "production":
        return secret or ""
    if not settings.cron_secret or not secret or not hmac.compare_digest(
        secret, settings.cron_secret
    ):
        raise HTTPException(401, "Unauthorized")
    return secret
