"""CLI tests driven through click's CliRunner with injected collaborators."""

import json

import httpx
import pytest
from click.testing import CliRunner

from conftest import agent_md
from subagents import config
from subagents.catalog.models import Source, SubagentUpsert
from subagents.catalog.store import LocalCatalog
from subagents.cli import CliContext, main
from subagents.install.manifest import ManifestStore
from subagents.install.paths import Scope
from subagents.install.telemetry import TelemetryClient

SEARCH_HITS = {
    "data": [
        {
            "name": "Code Reviewer",
            "owner": "acme",
            "repo": "agents",
            "slug": "code-reviewer",
            "category": "testing",
            "description": "Reviews pull requests",
            "tools": ["Read", "Grep", "Glob", "Bash", "Edit"],
            "download_count": 1500,
        }
    ]
}


@pytest.fixture
def search_requests():
    return []


@pytest.fixture
def obj(fake_github, install_paths, search_requests):
    def api_handler(request):
        search_requests.append(request)
        if request.url.params.get("q") == "nothing":
            return httpx.Response(200, json={"data": []})
        if request.url.params.get("q") == "broken":
            return httpx.Response(500)
        return httpx.Response(200, json=SEARCH_HITS)

    return CliContext(
        paths=install_paths,
        github_factory=fake_github.client,
        telemetry_factory=lambda: TelemetryClient(enabled=False),
        api_client_factory=lambda: httpx.Client(transport=httpx.MockTransport(api_handler)),
    )


def invoke(obj, *args, input=None):
    return CliRunner().invoke(main, list(args), obj=obj, input=input)


# ── add ──────────────────────────────────────────────────────────────


def test_add_with_explicit_category(obj, fake_github, install_paths):
    fake_github.add_file("acme", "agents", "main", ".claude/agents/x.md", agent_md("x"))

    result = invoke(obj, "add", "acme/agents/x", "--category", "testing")

    assert result.exit_code == 0, result.output
    assert "Installed" in result.output
    assert (install_paths.root(Scope.GLOBAL) / "x.md").is_file()
    assert ManifestStore(install_paths).get("x").category == "testing"


def test_add_prompts_with_detected_default(obj, fake_github, install_paths):
    fake_github.add_file(
        "acme", "agents", "main", ".claude/agents/deployer.md",
        agent_md("deployer", "Ships docker images with terraform and kubernetes"),
    )

    result = invoke(obj, "add", "acme/agents/deployer", "--local", input="\n")

    assert result.exit_code == 0, result.output
    assert "Suggested category" in result.output
    record = ManifestStore(install_paths).get("deployer", Scope.LOCAL)
    assert record.category == "devops"


def test_add_uses_frontmatter_category_without_prompt(obj, fake_github, install_paths):
    fake_github.add_file(
        "acme", "agents", "main", ".claude/agents/x.md", agent_md("x", category="Security")
    )

    result = invoke(obj, "add", "acme/agents/x")

    assert result.exit_code == 0, result.output
    assert "from frontmatter" in result.output
    assert ManifestStore(install_paths).get("x").category == "security"


def test_add_existing_requires_force(obj, fake_github, install_paths):
    fake_github.add_file("acme", "agents", "main", ".claude/agents/x.md", agent_md("x"))
    invoke(obj, "add", "acme/agents/x", "-c", "other")
    requests_before = len(fake_github.requests)

    result = invoke(obj, "add", "acme/agents/x", "-c", "other")

    assert result.exit_code == 1
    assert result.output.count("--force") == 1
    assert len(fake_github.requests) == requests_before

    forced = invoke(obj, "add", "acme/agents/x", "-c", "other", "--force")
    assert forced.exit_code == 0, forced.output
    assert "Updated" in forced.output


def test_add_reports_not_found(obj):
    result = invoke(obj, "add", "acme/agents/ghost", "-c", "other")

    assert result.exit_code == 1
    assert "Could not find" in result.output


def test_add_rejects_bad_identifier(obj):
    result = invoke(obj, "add", "not-an-identifier")
    assert result.exit_code == 1


# ── list / remove ────────────────────────────────────────────────────


def test_list_empty(obj):
    result = invoke(obj, "list")
    assert result.exit_code == 0
    assert "No subagents installed." in result.output


def test_list_shows_tracked_missing_and_untracked(obj, fake_github, install_paths):
    for name in ("kept", "gone"):
        fake_github.add_file("acme", "agents", "main", f".claude/agents/{name}.md", agent_md(name))
        invoke(obj, "add", f"acme/agents/{name}", "-c", "other")
    root = install_paths.root(Scope.GLOBAL)
    (root / "gone.md").unlink()
    (root / "stray.md").write_text("hand-written")

    result = invoke(obj, "ls")

    assert result.exit_code == 0, result.output
    assert "kept" in result.output
    assert "(file missing)" in result.output
    assert "Untracked files:" in result.output
    assert "stray" in result.output
    assert "Total: 3 subagent(s)" in result.output


def test_list_all_includes_local(obj, fake_github):
    fake_github.add_file("acme", "agents", "main", ".claude/agents/x.md", agent_md("x"))
    invoke(obj, "add", "acme/agents/x", "-l", "-c", "other")

    assert "Total" not in invoke(obj, "list").output
    result = invoke(obj, "list", "--all")
    assert "Local/Project agents" in result.output
    assert "Total: 1 subagent(s)" in result.output


def test_remove(obj, fake_github, install_paths):
    fake_github.add_file("acme", "agents", "main", ".claude/agents/x.md", agent_md("x"))
    invoke(obj, "add", "acme/agents/x", "-c", "other")

    result = invoke(obj, "rm", "x")

    assert result.exit_code == 0, result.output
    assert "Removed" in result.output
    assert not (install_paths.root(Scope.GLOBAL) / "x.md").exists()

    again = invoke(obj, "remove", "x")
    assert again.exit_code == 1


# ── update ───────────────────────────────────────────────────────────


def test_update_reports_tally(obj, fake_github):
    for name in ("a", "b"):
        fake_github.add_file("acme", "agents", "main", f".claude/agents/{name}.md", agent_md(name))
        invoke(obj, "add", f"acme/agents/{name}", "-c", "other")
    del fake_github.raw_files["acme/agents/main/.claude/agents/b.md"]

    result = invoke(obj, "up")

    assert result.exit_code == 0, result.output
    assert "Updated 1 subagent(s)" in result.output
    assert "Failed to update 1 subagent(s)" in result.output


def test_update_nothing_installed(obj, fake_github):
    result = invoke(obj, "update", "--all")
    assert "No subagents installed in any scope." in result.output
    assert fake_github.requests == []


# ── search ───────────────────────────────────────────────────────────


def test_search_prints_results(obj, search_requests):
    result = invoke(obj, "search", "review")

    assert result.exit_code == 0, result.output
    assert "Code Reviewer" in result.output
    assert "acme/agents/code-reviewer" in result.output
    assert "1.5K" in result.output
    assert "+1 more" in result.output
    assert search_requests[0].url.params["q"] == "review"
    assert search_requests[0].url.params["limit"] == "10"
    assert str(search_requests[0].url).startswith(config.API_BASE)


def test_search_no_results(obj):
    result = invoke(obj, "search", "nothing")
    assert result.exit_code == 0
    assert "No subagents found" in result.output


def test_search_failure_exits_1(obj):
    result = invoke(obj, "search", "broken")
    assert result.exit_code == 1
    assert "Failed to search" in result.output


# ── catalog ──────────────────────────────────────────────────────────


def test_catalog_add_source_and_list(obj, tmp_path):
    catalog_dir = str(tmp_path / "catalog")

    result = invoke(obj, "catalog", "add-source", "acme/agents", "-b", "dev", "-d", catalog_dir)
    assert result.exit_code == 0, result.output

    sources = LocalCatalog(catalog_dir).list_sources()
    assert [(s.full_name, s.branch) for s in sources] == [("acme/agents", "dev")]

    listing = invoke(obj, "catalog", "sources", "-d", catalog_dir)
    assert "acme/agents" in listing.output

    bad = invoke(obj, "catalog", "add-source", "acme", "-d", catalog_dir)
    assert bad.exit_code == 2


def test_catalog_sync(obj, fake_github, tmp_path):
    catalog_dir = tmp_path / "catalog"
    LocalCatalog(catalog_dir).add_source(Source(owner="acme", repo="agents"))
    fake_github.add_dir("acme", "agents", "main", ".claude/agents", ["a.md", "README.md"])
    fake_github.add_file("acme", "agents", "main", ".claude/agents/a.md", agent_md("a"))

    result = invoke(obj, "catalog", "sync", "-d", str(catalog_dir))
    assert result.exit_code == 0, result.output
    assert "1 synced, 0 errors across 1 sources" in result.output

    one = invoke(obj, "catalog", "sync", "--source", "acme/agents", "-d", str(catalog_dir))
    assert "acme/agents: 1 synced, 0 errors" in one.output

    missing = invoke(obj, "catalog", "sync", "--source", "acme/other", "-d", str(catalog_dir))
    assert missing.exit_code == 1
    assert "Source not found" in missing.output


def _seed_uncategorized(catalog_dir):
    LocalCatalog(catalog_dir).upsert_subagent(
        SubagentUpsert(
            name="deployer",
            slug="deployer",
            owner="acme",
            repo="agents",
            content="",
            file_path="deployer.md",
            description="docker terraform kubernetes",
        )
    )


def test_categorize_modes(obj, tmp_path):
    catalog_dir = tmp_path / "catalog"
    _seed_uncategorized(catalog_dir)

    dry = invoke(obj, "catalog", "categorize", "--dry-run", "-d", str(catalog_dir))
    assert dry.exit_code == 0, dry.output
    assert "HIGH CONFIDENCE" in dry.output
    assert LocalCatalog(catalog_dir).list_uncategorized()

    out = tmp_path / "suggestions.csv"
    exported = invoke(obj, "catalog", "categorize", "--export", str(out), "-d", str(catalog_dir))
    assert exported.exit_code == 0, exported.output
    assert out.read_text(encoding="utf-8").startswith("id,name,owner,repo")

    applied = invoke(obj, "catalog", "categorize", "--apply", "-d", str(catalog_dir))
    assert applied.exit_code == 0, applied.output
    assert LocalCatalog(catalog_dir).get_subagent("acme", "agents", "deployer").category == "devops"

    done = invoke(obj, "catalog", "categorize", "--apply", "-d", str(catalog_dir))
    assert "already categorized" in done.output


def test_categorize_requires_one_mode(obj, tmp_path):
    catalog_dir = str(tmp_path / "catalog")

    assert invoke(obj, "catalog", "categorize", "-d", catalog_dir).exit_code == 2
    conflicting = invoke(
        obj, "catalog", "categorize", "--apply", "--export", "x.csv", "-d", catalog_dir
    )
    assert conflicting.exit_code == 2


def test_version():
    result = CliRunner().invoke(main, ["--version"])
    assert result.exit_code == 0


def test_manifest_file_is_json(obj, fake_github, install_paths):
    fake_github.add_file("acme", "agents", "main", ".claude/agents/x.md", agent_md("x"))
    invoke(obj, "add", "acme/agents/x", "-c", "api")

    data = json.loads(install_paths.manifest_path(Scope.GLOBAL).read_text())
    assert data["subagents"]["x"]["source"] == "acme/agents/x"
    assert data["subagents"]["x"]["category"] == "api"
