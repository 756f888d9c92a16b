"""Subagents router -- lookup, search and leaderboard over the catalog."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from subagents.catalog.models import CatalogSubagent, TimeFilter
from subagents.catalog.store import LocalCatalog

from web.backend.app.dependencies import get_catalog
from web.backend.app.models.api import (
    LeaderboardResponse,
    SearchResponse,
    SubagentResponse,
    WeeklyDownloadsResponse,
)

router = APIRouter(prefix="/api/subagents", tags=["subagents"])


def _entry_to_response(entry: CatalogSubagent) -> SubagentResponse:
    """Convert a CatalogSubagent dataclass to a Pydantic response model."""
    return SubagentResponse(**entry.to_dict())


@router.get("", summary="Get, search or rank subagents")
async def get_subagents(
    q: Optional[str] = Query(None, description="Free-text search"),
    owner: Optional[str] = Query(None),
    repo: Optional[str] = Query(None),
    slug: Optional[str] = Query(None),
    limit: int = Query(50, ge=0, le=500),
    offset: int = Query(0, ge=0),
    time_filter: TimeFilter = Query("all", alias="filter"),
    category: Optional[str] = Query(None),
    catalog: LocalCatalog = Depends(get_catalog),
):
    """One endpoint, three shapes.

    - ``owner``, ``repo`` and ``slug`` together return that single entry.
    - ``q`` returns ``{data, query, count}`` search results.
    - Otherwise the download leaderboard is returned, paginated with
      ``limit``/``offset`` and filtered by ``filter`` and ``category``.
    """
    if owner and repo and slug:
        entry = catalog.get_subagent(owner, repo, slug)
        if entry is None:
            raise HTTPException(status_code=404, detail="Subagent not found")
        return _entry_to_response(entry)

    if q:
        results = catalog.search(q, limit=limit)
        return SearchResponse(
            data=[_entry_to_response(e) for e in results],
            query=q,
            count=len(results),
        )

    entries = catalog.leaderboard(limit, offset, time_filter, category)
    return LeaderboardResponse(
        data=[_entry_to_response(e) for e in entries],
        limit=limit,
        offset=offset,
        filter=time_filter,
        category=category,
        count=len(entries),
    )


@router.get(
    "/{subagent_id}/downloads",
    response_model=WeeklyDownloadsResponse,
    summary="Weekly download counts",
)
async def weekly_downloads(
    subagent_id: str,
    weeks: int = Query(8, ge=1, le=52),
    catalog: LocalCatalog = Depends(get_catalog),
):
    """Downloads per week for one subagent, oldest week first."""
    if catalog.get_subagent_by_id(subagent_id) is None:
        raise HTTPException(status_code=404, detail="Subagent not found")
    return WeeklyDownloadsResponse(
        subagent_id=subagent_id, weeks=catalog.weekly_downloads(subagent_id, weeks)
    )
