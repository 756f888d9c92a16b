"""Remote sync: mirror registered GitHub directories into the catalog.

Each active source names a repository directory (``agents_path`` on
``branch``). Syncing lists it through the contents API, parses every
Markdown file tolerantly and upserts one catalog entry per file. Files
that cannot be read, parsed or stored are counted as errors without stopping the
source; a source whose listing fails is marked with ``sync_error``.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass

from subagents.artifacts import humanize_slug, parse_tools, split_frontmatter
from subagents.catalog.models import Source, SubagentUpsert
from subagents.catalog.store import LocalCatalog
from subagents.categories import normalize_category
from subagents.exceptions import ArtifactParseError, SourceNotFoundError
from subagents.github.client import ContentEntry, GitHubClient

logger = logging.getLogger(__name__)

EXCLUDED_FILES = frozenset({"README.md", "LICENSE.md", "CHANGELOG.md", "CONTRIBUTING.md"})


@dataclass
class SyncResult:
    synced: int = 0
    errors: int = 0


@dataclass
class SyncSummary:
    total_synced: int = 0
    total_errors: int = 0
    sources_processed: int = 0


def content_hash(content: str) -> str:
    return hashlib.md5(content.encode("utf-8")).hexdigest()


def github_blob_url(owner: str, repo: str, branch: str, path: str) -> str:
    return f"https://github.com/{owner}/{repo}/blob/{branch}/{path}"


def is_agent_file(entry: ContentEntry) -> bool:
    return entry.is_file and entry.name.endswith(".md") and entry.name not in EXCLUDED_FILES


def build_entry(
    content: str,
    file_path: str,
    owner: str,
    repo: str,
    branch: str,
    tolerant: bool = False,
) -> SubagentUpsert | None:
    """Build a catalog entry from raw file content.

    Unlike installation, a missing ``name`` is not an error here: the
    entry falls back to the humanized slug. Returns ``None`` when the file
    has no usable slug.

    Raises:
        ArtifactParseError: If the frontmatter is not valid YAML and
            ``tolerant`` is false. A tolerant build treats it as empty.
    """
    slug = file_path.rsplit("/", 1)[-1].removesuffix(".md")
    if not slug:
        logger.warning("Could not extract slug from file path: %s", file_path)
        return None

    try:
        metadata, _ = split_frontmatter(content)
    except ArtifactParseError:
        if not tolerant:
            raise
        logger.warning("Ignoring malformed frontmatter in %s/%s/%s", owner, repo, file_path)
        metadata = {}
    name = metadata.get("name")
    description = metadata.get("description")

    return SubagentUpsert(
        name=str(name).strip() if name and str(name).strip() else humanize_slug(slug),
        slug=slug,
        owner=owner,
        repo=repo,
        # Full file including frontmatter.
        content=content,
        file_path=file_path,
        description=str(description) if description else None,
        tools=parse_tools(metadata.get("tools")),
        category=normalize_category(metadata.get("category")),
        github_url=github_blob_url(owner, repo, branch, file_path),
        content_hash=content_hash(content),
    )


class RemoteSync:
    """Synchronizes catalog sources from GitHub."""

    def __init__(self, catalog: LocalCatalog, github: GitHubClient):
        self.catalog = catalog
        self.github = github

    async def sync_source(self, source: Source) -> SyncResult:
        """Sync one source.

        Raises:
            GitHubError: If the directory listing fails. ``sync_error`` is
                recorded on the source before the error propagates.
        """
        result = SyncResult()

        try:
            listing = await self.github.list_directory(
                source.owner, source.repo, source.agents_path, source.branch
            )
        except Exception as exc:
            logger.error("Error syncing source %s: %s", source.full_name, exc)
            self.catalog.update_source_sync_status(source.id, str(exc) or type(exc).__name__)
            raise

        files = [entry for entry in listing if is_agent_file(entry)]
        logger.info(
            "Found %d markdown files in %s/%s", len(files), source.full_name, source.agents_path
        )

        for entry in files:
            if await self._sync_file(source, entry):
                result.synced += 1
            else:
                result.errors += 1

        self.catalog.update_source_sync_status(source.id)
        return result

    async def _sync_file(self, source: Source, entry: ContentEntry) -> bool:
        try:
            content = await self.github.get_file_content(
                source.owner, source.repo, entry.path, source.branch
            )
        except Exception as exc:
            logger.error("Error fetching %s from %s: %s", entry.path, source.full_name, exc)
            return False

        if not content:
            logger.warning("Could not read content for %s", entry.path)
            return False

        try:
            data = build_entry(content, entry.path, source.owner, source.repo, source.branch)
        except ArtifactParseError as exc:
            logger.error("Error parsing subagent file %s: %s", entry.path, exc)
            return False
        if data is None:
            return False

        try:
            self.catalog.upsert_subagent(data)
        except Exception as exc:
            logger.error("Error storing %s from %s: %s", entry.path, source.full_name, exc)
            return False
        logger.info("Synced: %s/%s", source.full_name, data.slug)
        return True

    async def sync_all(self) -> SyncSummary:
        """Sync every active source in turn; a failing source counts as one error."""
        sources = self.catalog.active_sources()
        summary = SyncSummary(sources_processed=len(sources))

        logger.info("Starting sync for %d active sources", len(sources))

        for source in sources:
            try:
                result = await self.sync_source(source)
            except Exception as exc:
                logger.error("Failed to sync source %s: %s", source.full_name, exc)
                summary.total_errors += 1
                continue
            summary.total_synced += result.synced
            summary.total_errors += result.errors

        logger.info(
            "Sync complete: %d synced, %d errors across %d sources",
            summary.total_synced, summary.total_errors, summary.sources_processed,
        )
        return summary

    async def sync_one(self, owner: str, repo: str) -> SyncResult:
        """Sync the active source registered for ``owner/repo``.

        Raises:
            SourceNotFoundError: If no active source matches.
        """
        for source in self.catalog.active_sources():
            if source.owner == owner and source.repo == repo:
                return await self.sync_source(source)
        raise SourceNotFoundError(f"Source not found: {owner}/{repo}")
