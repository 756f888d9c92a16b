"""Catalog data models: subagents, sync sources, telemetry and stats."""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, Literal, Optional

TimeFilter = Literal["all", "7d", "24h"]


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_id() -> str:
    return str(uuid.uuid4())


def _from_dict(cls, data: dict[str, Any]):
    known = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in data.items() if k in known})


@dataclass
class CatalogSubagent:
    """A subagent as stored in the catalog. Unique on (owner, repo, slug)."""

    name: str
    slug: str
    owner: str
    repo: str
    content: str = ""
    file_path: str = ""
    description: Optional[str] = None
    tools: Optional[list[str]] = None
    category: Optional[str] = None
    github_url: Optional[str] = None
    content_hash: Optional[str] = None
    download_count: int = 0
    view_count: int = 0
    id: str = ""
    last_synced_at: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""

    def __post_init__(self) -> None:
        if not self.id:
            self.id = new_id()
        if not self.created_at:
            self.created_at = utc_now()
        if not self.updated_at:
            self.updated_at = self.created_at

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CatalogSubagent":
        return _from_dict(cls, data)


@dataclass
class SubagentUpsert:
    """Fields written by sync and registration; counters are never touched."""

    name: str
    slug: str
    owner: str
    repo: str
    content: str
    file_path: str
    description: Optional[str] = None
    tools: Optional[list[str]] = None
    category: Optional[str] = None
    github_url: Optional[str] = None
    content_hash: Optional[str] = None


@dataclass
class Source:
    """A repository directory registered for batch sync."""

    owner: str
    repo: str
    branch: str = "main"
    agents_path: str = ".claude/agents"
    is_active: bool = True
    last_synced_at: Optional[str] = None
    sync_error: Optional[str] = None
    id: str = ""
    created_at: str = ""
    updated_at: str = ""

    def __post_init__(self) -> None:
        if not self.id:
            self.id = new_id()
        if not self.created_at:
            self.created_at = utc_now()
        if not self.updated_at:
            self.updated_at = self.created_at

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Source":
        return _from_dict(cls, data)


@dataclass
class TelemetryRecord:
    subagent_id: Optional[str]
    event_type: str  # download | view | copy
    metadata: dict[str, Any] = field(default_factory=dict)
    id: str = ""
    created_at: str = ""

    def __post_init__(self) -> None:
        if not self.id:
            self.id = new_id()
        if not self.created_at:
            self.created_at = utc_now()


@dataclass
class PlatformStats:
    total_subagents: int = 0
    total_downloads: int = 0
    total_sources: int = 0


def catalog_key(owner: str, repo: str, slug: str) -> str:
    return f"{owner}/{repo}/{slug}"
