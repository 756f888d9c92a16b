"""Local file-based catalog implementation.

A simple, file-system-backed catalog for development and single-host
deployments. Subagents and sources are kept as JSON documents in the
catalog directory; telemetry events are appended to a JSONL log.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Optional

from subagents.catalog.models import (
    CatalogSubagent,
    PlatformStats,
    Source,
    SubagentUpsert,
    TelemetryRecord,
    TimeFilter,
    catalog_key,
    utc_now,
)

logger = logging.getLogger(__name__)

TIME_WINDOWS = {
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
}

# Per-token weights for search scoring.
NAME_WEIGHT = 3
SLUG_WEIGHT = 2
TEXT_WEIGHT = 1


class LocalCatalog:
    """File-based catalog of synced subagents."""

    SUBAGENTS_FILE = "subagents.json"
    SOURCES_FILE = "sources.json"
    TELEMETRY_FILE = "telemetry.jsonl"

    def __init__(self, catalog_dir: str | Path):
        self.catalog_dir = Path(catalog_dir)
        self.catalog_dir.mkdir(parents=True, exist_ok=True)
        self.subagents_path = self.catalog_dir / self.SUBAGENTS_FILE
        self.sources_path = self.catalog_dir / self.SOURCES_FILE
        self.telemetry_path = self.catalog_dir / self.TELEMETRY_FILE
        self._subagents: dict[str, dict] = self._load(self.subagents_path)
        self._sources: dict[str, dict] = self._load(self.sources_path)

    # -- subagents -----------------------------------------------------------

    def upsert_subagent(self, data: SubagentUpsert) -> CatalogSubagent:
        """Insert or overwrite the entry for ``(owner, repo, slug)``.

        Identity, creation time and counters survive the overwrite; every
        other field is last-write-wins.
        """
        key = catalog_key(data.owner, data.repo, data.slug)
        now = utc_now()
        existing = self._subagents.get(key)

        if existing:
            entry = CatalogSubagent.from_dict({**existing, **asdict(data)})
            entry.updated_at = now
        else:
            entry = CatalogSubagent(**asdict(data), created_at=now)
        entry.last_synced_at = now

        self._subagents[key] = entry.to_dict()
        self._save(self.subagents_path, self._subagents)
        return entry

    def get_subagent(self, owner: str, repo: str, slug: str) -> CatalogSubagent | None:
        data = self._subagents.get(catalog_key(owner, repo, slug))
        return CatalogSubagent.from_dict(data) if data else None

    def get_subagent_by_id(self, subagent_id: str) -> CatalogSubagent | None:
        key = self._key_for_id(subagent_id)
        return CatalogSubagent.from_dict(self._subagents[key]) if key else None

    def list_subagents(self) -> list[CatalogSubagent]:
        return [CatalogSubagent.from_dict(d) for d in self._subagents.values()]

    def search(self, text: str, limit: int = 20) -> list[CatalogSubagent]:
        """Keyword search over name, slug, description and tools."""
        tokens = [t for t in text.lower().split() if t]
        if not tokens:
            return []

        scored: list[tuple[int, CatalogSubagent]] = []
        for entry in self.list_subagents():
            score = _search_score(entry, tokens)
            if score > 0:
                scored.append((score, entry))

        scored.sort(key=lambda pair: (-pair[0], -pair[1].download_count, pair[1].id))
        return [entry for _, entry in scored[: max(limit, 0)]]

    def leaderboard(
        self,
        limit: int = 50,
        offset: int = 0,
        time_filter: TimeFilter = "all",
        category: Optional[str] = None,
    ) -> list[CatalogSubagent]:
        """Entries ordered by downloads (then id for stable pagination)."""
        entries = self.list_subagents()

        if category:
            entries = [e for e in entries if e.category == category]

        window = TIME_WINDOWS.get(time_filter)
        if window is not None:
            cutoff = datetime.now(timezone.utc) - window
            entries = [e for e in entries if _parse_time(e.created_at) >= cutoff]

        entries.sort(key=lambda e: (-e.download_count, e.id))
        offset = max(offset, 0)
        return entries[offset : offset + max(limit, 0)]

    def increment_download_count(self, subagent_id: str) -> None:
        self._increment(subagent_id, "download_count")

    def increment_view_count(self, subagent_id: str) -> None:
        self._increment(subagent_id, "view_count")

    def list_uncategorized(self) -> list[CatalogSubagent]:
        return [e for e in self.list_subagents() if not e.category]

    def set_category(self, subagent_id: str, category: str) -> None:
        key = self._key_for_id(subagent_id)
        if key is None:
            raise KeyError(f"Subagent {subagent_id} not found")
        self._subagents[key]["category"] = category
        self._subagents[key]["updated_at"] = utc_now()
        self._save(self.subagents_path, self._subagents)

    # -- telemetry -----------------------------------------------------------

    def record_telemetry(
        self, subagent_id: str, event_type: str, metadata: dict[str, Any] | None = None
    ) -> TelemetryRecord:
        record = TelemetryRecord(
            subagent_id=subagent_id, event_type=event_type, metadata=metadata or {}
        )
        with open(self.telemetry_path, "a", encoding="utf-8") as f:
            f.write(json.dumps(asdict(record)) + "\n")
        return record

    def telemetry_events(self, subagent_id: str | None = None) -> list[TelemetryRecord]:
        if not self.telemetry_path.exists():
            return []
        records = []
        with open(self.telemetry_path, encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    data = json.loads(line)
                except json.JSONDecodeError:
                    continue
                if subagent_id and data.get("subagent_id") != subagent_id:
                    continue
                records.append(TelemetryRecord(**data))
        return records

    def weekly_downloads(self, subagent_id: str, weeks: int = 8) -> list[int]:
        """Download events per Monday-based week, oldest first.

        The last bucket is the current week; weeks without downloads are
        reported as zero.
        """
        now = datetime.now(timezone.utc)
        this_monday = (now - timedelta(days=now.weekday())).replace(
            hour=0, minute=0, second=0, microsecond=0
        )
        start = this_monday - timedelta(weeks=weeks - 1)

        counts = [0] * weeks
        for record in self.telemetry_events(subagent_id):
            if record.event_type != "download":
                continue
            index = (_parse_time(record.created_at) - start) // timedelta(weeks=1)
            if 0 <= index < weeks:
                counts[index] += 1
        return counts

    # -- sources -------------------------------------------------------------

    def add_source(self, source: Source) -> Source:
        """Register a source; re-adding the same owner/repo replaces its settings."""
        for existing in self.list_sources():
            if existing.owner == source.owner and existing.repo == source.repo:
                source.id = existing.id
                source.created_at = existing.created_at
                source.last_synced_at = existing.last_synced_at
                source.sync_error = existing.sync_error
                source.updated_at = utc_now()
                break
        self._sources[source.id] = source.to_dict()
        self._save(self.sources_path, self._sources)
        return source

    def list_sources(self) -> list[Source]:
        return [Source.from_dict(d) for d in self._sources.values()]

    def active_sources(self) -> list[Source]:
        return [s for s in self.list_sources() if s.is_active]

    def update_source_sync_status(self, source_id: str, error: str | None = None) -> None:
        """Stamp ``last_synced_at`` and overwrite ``sync_error`` (None clears it)."""
        data = self._sources.get(source_id)
        if data is None:
            raise KeyError(f"Source {source_id} not found")
        now = utc_now()
        data["last_synced_at"] = now
        data["sync_error"] = error or None
        data["updated_at"] = now
        self._save(self.sources_path, self._sources)

    # -- stats ---------------------------------------------------------------

    def stats(self) -> PlatformStats:
        entries = self.list_subagents()
        return PlatformStats(
            total_subagents=len(entries),
            total_downloads=sum(e.download_count for e in entries),
            total_sources=len(self._sources),
        )

    # -- internals -----------------------------------------------------------

    def _key_for_id(self, subagent_id: str) -> str | None:
        for key, data in self._subagents.items():
            if data.get("id") == subagent_id:
                return key
        return None

    def _increment(self, subagent_id: str, counter: str) -> None:
        key = self._key_for_id(subagent_id)
        if key is None:
            raise KeyError(f"Subagent {subagent_id} not found")
        self._subagents[key][counter] = int(self._subagents[key].get(counter, 0)) + 1
        self._save(self.subagents_path, self._subagents)

    @staticmethod
    def _load(path: Path) -> dict[str, dict]:
        if not path.exists():
            return {}
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError):
            logger.warning("Ignoring unreadable catalog file %s", path)
            return {}
        return data if isinstance(data, dict) else {}

    @staticmethod
    def _save(path: Path, data: dict[str, dict]) -> None:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)


def _search_score(entry: CatalogSubagent, tokens: list[str]) -> int:
    name = entry.name.lower()
    slug = entry.slug.lower()
    text = " ".join([entry.description or "", *(entry.tools or [])]).lower()

    score = 0
    for token in tokens:
        if token in name:
            score += NAME_WEIGHT
        if token in slug:
            score += SLUG_WEIGHT
        if token in text:
            score += TEXT_WEIGHT
    return score


def _parse_time(value: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return datetime.min.replace(tzinfo=timezone.utc)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
