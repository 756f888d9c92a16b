"""Telemetry ingestion for the catalog API."""

from __future__ import annotations

import logging
from typing import Any, Optional

from subagents.catalog.models import CatalogSubagent
from subagents.catalog.store import LocalCatalog
from subagents.catalog.sync import build_entry
from subagents.github.identifier import Identifier
from subagents.github.locator import ContentLocator
from subagents.install.telemetry import TELEMETRY_EVENTS

logger = logging.getLogger(__name__)


def parse_subagent_id(subagent_id: str) -> Identifier | None:
    """Split ``owner/repo/name``; anything else is not a catalog id."""
    parts = subagent_id.split("/")
    if len(parts) != 3 or not all(parts):
        return None
    return Identifier(owner=parts[0], repo=parts[1], name=parts[2])


class TelemetryRecorder:
    """Records usage events and keeps the catalog counters current.

    A download of a subagent the catalog has never seen registers it
    first, so installs straight from GitHub still show up on the
    leaderboard.
    """

    def __init__(self, catalog: LocalCatalog, locator: ContentLocator | None = None):
        self.catalog = catalog
        self.locator = locator

    async def record(
        self, subagent_id: str, event: str, metadata: Optional[dict[str, Any]] = None
    ) -> bool:
        """Record one event. Returns False when nothing could be recorded.

        Raises:
            ValueError: If ``event`` is not a known event type.
        """
        if event not in TELEMETRY_EVENTS:
            raise ValueError(f"Invalid event type. Must be one of: {', '.join(TELEMETRY_EVENTS)}")

        try:
            self.catalog.record_telemetry(subagent_id, event, metadata)

            ident = parse_subagent_id(subagent_id)
            if ident is None:
                return True

            existing = self.catalog.get_subagent(ident.owner, ident.repo, ident.name)
            if event == "download":
                if existing is None:
                    existing = await self.register(ident)
                if existing is not None:
                    self.catalog.increment_download_count(existing.id)
            elif event == "view" and existing is not None:
                self.catalog.increment_view_count(existing.id)
        except Exception:
            logger.exception("Failed to record %s event for %s", event, subagent_id)
            return False
        return True

    async def register(self, ident: Identifier) -> CatalogSubagent | None:
        """Fetch an unknown subagent from GitHub and add it to the catalog."""
        if self.locator is None:
            return None

        try:
            branch = await self.locator.get_default_branch(ident.owner, ident.repo)
            located = await self.locator.locate(ident.owner, ident.repo, ident.name, branch)
        except Exception as exc:
            logger.info("Could not fetch agent %s from GitHub: %s", ident.source, exc)
            return None

        data = build_entry(
            located.content,
            located.path,
            ident.owner,
            ident.repo,
            located.branch,
            tolerant=True,
        )
        if data is None:
            return None

        # The catalog slug is the requested name, whatever the file is called.
        data.slug = ident.name
        entry = self.catalog.upsert_subagent(data)
        logger.info("Registered new agent: %s", ident.source)
        return entry
