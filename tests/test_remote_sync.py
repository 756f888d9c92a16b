"""Tests for the remote sync engine."""

import hashlib

import pytest

from conftest import agent_md
from subagents.catalog.models import Source
from subagents.catalog.store import LocalCatalog
from subagents.catalog.sync import RemoteSync, build_entry
from subagents.exceptions import ArtifactParseError, GitHubError, SourceNotFoundError


@pytest.fixture
def catalog(tmp_path) -> LocalCatalog:
    return LocalCatalog(tmp_path / "catalog")


def _publish(fake_github, names, owner="acme", repo="agents", path=".claude/agents"):
    fake_github.add_dir(owner, repo, "main", path, list(names))
    for name, text in names.items():
        if text is not None:
            fake_github.add_file(owner, repo, "main", f"{path}/{name}", text)


def test_build_entry_fields():
    text = agent_md("API Designer", "Designs APIs", tools="Read, Write", category=" Backend ")
    entry = build_entry(text, ".claude/agents/api-designer.md", "acme", "agents", "main")

    assert entry.slug == "api-designer"
    assert entry.name == "API Designer"
    assert entry.tools == ["Read", "Write"]
    assert entry.category == "backend"
    assert entry.content == text
    assert entry.content_hash == hashlib.md5(text.encode("utf-8")).hexdigest()
    assert entry.github_url == (
        "https://github.com/acme/agents/blob/main/.claude/agents/api-designer.md"
    )


def test_build_entry_falls_back_to_humanized_slug():
    entry = build_entry("---\ncategory: poetry\n---\nbody", "agents/backend-architect.md", "a", "b", "main")
    assert entry.name == "Backend Architect"
    assert entry.description is None
    assert entry.category is None


def test_build_entry_malformed_yaml():
    bad = "---\nname: [oops\n---\n"
    with pytest.raises(ArtifactParseError):
        build_entry(bad, "x.md", "a", "b", "main")
    assert build_entry(bad, "x.md", "a", "b", "main", tolerant=True).name == "X"


@pytest.mark.asyncio
async def test_sync_source_filters_and_counts(fake_github, catalog):
    _publish(
        fake_github,
        {
            "reviewer.md": agent_md("reviewer"),
            "tester.md": agent_md("tester"),
            "README.md": "# readme",
            "CONTRIBUTING.md": "# contributing",
            "notes.txt": "ignore",
            "broken.md": "---\nname: [oops\n---\n",
            "empty.md": None,
        },
    )
    source = catalog.add_source(Source(owner="acme", repo="agents"))

    result = await RemoteSync(catalog, fake_github.client()).sync_source(source)

    assert (result.synced, result.errors) == (2, 2)
    assert {e.slug for e in catalog.list_subagents()} == {"reviewer", "tester"}
    stored = catalog.list_sources()[0]
    assert stored.last_synced_at is not None
    assert stored.sync_error is None


class FailingCatalog(LocalCatalog):
    """Refuses to store one slug."""

    def __init__(self, catalog_dir, failing_slug):
        super().__init__(catalog_dir)
        self.failing_slug = failing_slug

    def upsert_subagent(self, data):
        if data.slug == self.failing_slug:
            raise OSError("disk full")
        return super().upsert_subagent(data)


@pytest.mark.asyncio
async def test_store_failure_does_not_stop_siblings(fake_github, tmp_path):
    catalog = FailingCatalog(tmp_path / "catalog", failing_slug="a")
    _publish(fake_github, {"a.md": agent_md("a"), "b.md": agent_md("b")})
    source = catalog.add_source(Source(owner="acme", repo="agents"))

    result = await RemoteSync(catalog, fake_github.client()).sync_source(source)

    assert (result.synced, result.errors) == (1, 1)
    assert [e.slug for e in catalog.list_subagents()] == ["b"]
    stored = catalog.list_sources()[0]
    assert stored.last_synced_at is not None
    assert stored.sync_error is None


@pytest.mark.asyncio
async def test_missing_directory_is_empty(fake_github, catalog):
    source = catalog.add_source(Source(owner="acme", repo="nothing"))

    result = await RemoteSync(catalog, fake_github.client()).sync_source(source)

    assert (result.synced, result.errors) == (0, 0)


@pytest.mark.asyncio
async def test_listing_failure_records_error_and_raises(fake_github, catalog):
    fake_github.contents_status["acme/agents/.claude/agents@main"] = 500
    source = catalog.add_source(Source(owner="acme", repo="agents"))

    with pytest.raises(GitHubError):
        await RemoteSync(catalog, fake_github.client()).sync_source(source)

    assert "500" in catalog.list_sources()[0].sync_error


@pytest.mark.asyncio
async def test_resync_clears_error_and_keeps_counters(fake_github, catalog):
    _publish(fake_github, {"x.md": agent_md("x")})
    source = catalog.add_source(Source(owner="acme", repo="agents"))
    catalog.update_source_sync_status(source.id, "earlier failure")
    engine = RemoteSync(catalog, fake_github.client())

    await engine.sync_source(source)
    entry = catalog.get_subagent("acme", "agents", "x")
    catalog.increment_download_count(entry.id)
    fake_github.add_file("acme", "agents", "main", ".claude/agents/x.md", agent_md("x", "v2"))
    await engine.sync_source(source)

    updated = catalog.get_subagent("acme", "agents", "x")
    assert updated.id == entry.id
    assert updated.download_count == 1
    assert updated.description == "v2"
    assert catalog.list_sources()[0].sync_error is None


@pytest.mark.asyncio
async def test_sync_all_continues_past_failing_source(fake_github, catalog):
    _publish(fake_github, {"a.md": agent_md("a")}, repo="good")
    fake_github.contents_status["acme/bad/.claude/agents@main"] = 500
    catalog.add_source(Source(owner="acme", repo="bad"))
    catalog.add_source(Source(owner="acme", repo="good"))
    catalog.add_source(Source(owner="acme", repo="off", is_active=False))

    summary = await RemoteSync(catalog, fake_github.client()).sync_all()

    assert summary.sources_processed == 2
    assert summary.total_synced == 1
    assert summary.total_errors == 1


@pytest.mark.asyncio
async def test_sync_one(fake_github, catalog):
    _publish(fake_github, {"a.md": agent_md("a")})
    catalog.add_source(Source(owner="acme", repo="agents"))
    catalog.add_source(Source(owner="acme", repo="off", is_active=False))
    engine = RemoteSync(catalog, fake_github.client())

    result = await engine.sync_one("acme", "agents")
    assert result.synced == 1

    with pytest.raises(SourceNotFoundError):
        await engine.sync_one("acme", "off")
    with pytest.raises(SourceNotFoundError):
        await engine.sync_one("acme", "unknown")
