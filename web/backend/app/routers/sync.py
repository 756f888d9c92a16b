"""Sync router -- trigger GitHub sync of registered sources."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from subagents.catalog.store import LocalCatalog
from subagents.catalog.sync import RemoteSync
from subagents.github.client import GitHubClient

from web.backend.app.dependencies import get_catalog, get_github
from web.backend.app.middleware.auth import require_cron_or_sync_secret, require_sync_secret
from web.backend.app.models.api import (
    SyncAllResponse,
    SyncErrorResponse,
    SyncRequest,
    SyncSourceResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sync", tags=["sync"])


def _sync_failed(exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content=SyncErrorResponse(message=str(exc) or type(exc).__name__).model_dump(),
    )


async def _sync_all(engine: RemoteSync):
    summary = await engine.sync_all()
    return SyncAllResponse(
        total_synced=summary.total_synced,
        total_errors=summary.total_errors,
        sources_processed=summary.sources_processed,
    ).model_dump(by_alias=True)


@router.post("", dependencies=[Depends(require_sync_secret)], summary="Sync sources")
async def trigger_sync(
    body: Optional[SyncRequest] = None,
    catalog: LocalCatalog = Depends(get_catalog),
    github: GitHubClient = Depends(get_github),
):
    """Sync one source (``{owner, repo}``) or every active source."""
    engine = RemoteSync(catalog, github)
    try:
        if body and body.owner and body.repo:
            result = await engine.sync_one(body.owner, body.repo)
            return SyncSourceResponse(
                source=f"{body.owner}/{body.repo}",
                synced=result.synced,
                errors=result.errors,
            )
        return await _sync_all(engine)
    except Exception as exc:
        logger.exception("Error in POST /api/sync")
        return _sync_failed(exc)


@router.get("", dependencies=[Depends(require_cron_or_sync_secret)], summary="Scheduled sync")
async def scheduled_sync(
    catalog: LocalCatalog = Depends(get_catalog),
    github: GitHubClient = Depends(get_github),
):
    """Sync every active source; intended for cron jobs."""
    try:
        return await _sync_all(RemoteSync(catalog, github))
    except Exception as exc:
        logger.exception("Error in GET /api/sync")
        return _sync_failed(exc)
