"""Auth middleware -- FastAPI dependencies guarding the sync endpoints.

Sync is protected by a shared secret sent as ``Authorization: Bearer
<secret>``. When ``SUBAGENTS_SYNC_SECRET`` is unset the endpoints are
open (local development). Scheduled jobs may authenticate with
``SUBAGENTS_CRON_SECRET`` instead, on the GET endpoint only.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Header, HTTPException, status

from subagents import config


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() == "bearer" and token:
        return token
    return None


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def require_sync_secret(authorization: Optional[str] = Header(None)) -> None:
    """Reject the request unless it carries the sync secret (when one is set)."""
    if not config.SYNC_SECRET:
        return
    if _bearer_token(authorization) != config.SYNC_SECRET:
        raise _unauthorized()


async def require_cron_or_sync_secret(authorization: Optional[str] = Header(None)) -> None:
    """Same as ``require_sync_secret`` but also accepts the cron secret."""
    if not config.SYNC_SECRET:
        return
    token = _bearer_token(authorization)
    if token == config.SYNC_SECRET:
        return
    if config.CRON_SECRET and token == config.CRON_SECRET:
        return
    raise _unauthorized()
