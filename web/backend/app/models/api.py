"""Pydantic models for API request/response serialization.

These models mirror the catalog dataclasses and provide proper JSON
serialization for the FastAPI endpoints. Fields that the CLI and the
website read in camelCase carry an alias.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Subagent models
# ---------------------------------------------------------------------------


class SubagentResponse(BaseModel):
    """Mirrors subagents.catalog.models.CatalogSubagent."""

    id: str
    name: str
    slug: str
    owner: str
    repo: str
    description: Optional[str] = None
    content: str = ""
    file_path: str = ""
    tools: Optional[list[str]] = None
    category: Optional[str] = None
    github_url: Optional[str] = None
    content_hash: Optional[str] = None
    download_count: int = 0
    view_count: int = 0
    last_synced_at: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""


class SearchResponse(BaseModel):
    data: list[SubagentResponse] = Field(default_factory=list)
    query: str
    count: int = 0


class LeaderboardResponse(BaseModel):
    data: list[SubagentResponse] = Field(default_factory=list)
    limit: int
    offset: int
    filter: str = "all"
    category: Optional[str] = None
    count: int = 0


class WeeklyDownloadsResponse(BaseModel):
    subagent_id: str
    weeks: list[int] = Field(default_factory=list)


class PlatformStatsResponse(BaseModel):
    """Mirrors subagents.catalog.models.PlatformStats."""

    total_subagents: int = 0
    total_downloads: int = 0
    total_sources: int = 0


# ---------------------------------------------------------------------------
# Sync models
# ---------------------------------------------------------------------------


class SyncRequest(BaseModel):
    owner: Optional[str] = None
    repo: Optional[str] = None


class SyncSourceResponse(BaseModel):
    success: bool = True
    source: str
    synced: int = 0
    errors: int = 0


class SyncAllResponse(BaseModel):
    success: bool = True
    total_synced: int = Field(0, alias="totalSynced")
    total_errors: int = Field(0, alias="totalErrors")
    sources_processed: int = Field(0, alias="sourcesProcessed")

    model_config = {"populate_by_name": True}


class SyncErrorResponse(BaseModel):
    error: str = "Sync failed"
    message: str = ""


# ---------------------------------------------------------------------------
# Telemetry models
# ---------------------------------------------------------------------------


class TelemetryRequest(BaseModel):
    subagent_id: Optional[str] = Field(None, alias="subagentId")
    event: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None

    model_config = {"populate_by_name": True}


class TelemetryResponse(BaseModel):
    success: bool = True
