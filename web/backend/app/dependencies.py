"""Shared FastAPI dependencies."""

from __future__ import annotations

from typing import AsyncIterator

from subagents import config
from subagents.catalog.store import LocalCatalog
from subagents.github.client import GitHubClient


def get_catalog() -> LocalCatalog:
    """Return a LocalCatalog for the configured directory."""
    return LocalCatalog(config.CATALOG_DIR)


async def get_github() -> AsyncIterator[GitHubClient]:
    """Yield a GitHub client that is closed after the request."""
    async with GitHubClient() as github:
        yield github
