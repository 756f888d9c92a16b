"""Stats router -- platform-wide totals."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from subagents.catalog.store import LocalCatalog

from web.backend.app.dependencies import get_catalog
from web.backend.app.models.api import PlatformStatsResponse

router = APIRouter(prefix="/api/stats", tags=["stats"])


@router.get("", response_model=PlatformStatsResponse, summary="Platform totals")
async def get_stats(catalog: LocalCatalog = Depends(get_catalog)):
    stats = catalog.stats()
    return PlatformStatsResponse(
        total_subagents=stats.total_subagents,
        total_downloads=stats.total_downloads,
        total_sources=stats.total_sources,
    )
