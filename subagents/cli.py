"""subagents CLI: discover, install and manage Claude Code subagents."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, NoReturn, TypeVar

import click
import httpx
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from subagents import __version__, config
from subagents.artifacts import Frontmatter
from subagents.categories import (
    CATEGORY_LABELS,
    VALID_CATEGORIES,
    Confidence,
    classify,
    normalize_category,
)
from subagents.exceptions import AlreadyInstalledError, SubagentsError
from subagents.github.client import GitHubClient
from subagents.github.identifier import resolve_identifier
from subagents.github.locator import ContentLocator
from subagents.install.installer import Installer
from subagents.install.manifest import EntryStatus, ManifestStore
from subagents.install.paths import InstallPaths, Scope
from subagents.install.telemetry import TelemetryClient

console = Console()

T = TypeVar("T")


def _api_client() -> httpx.Client:
    return httpx.Client(timeout=config.HTTP_TIMEOUT)


@dataclass
class CliContext:
    """Collaborators the commands build on. Tests pass their own via ``obj``."""

    paths: InstallPaths = field(default_factory=InstallPaths)
    github_factory: Callable[[], GitHubClient] = GitHubClient
    telemetry_factory: Callable[[], TelemetryClient] = TelemetryClient
    api_client_factory: Callable[[], httpx.Client] = _api_client


def _fail(message: str) -> NoReturn:
    console.print(f"[red]{escape(message)}[/]")
    raise SystemExit(1)


def _run_with_installer(state: CliContext, fn: Callable[[Installer], Awaitable[T]]) -> T:
    async def runner() -> T:
        telemetry = state.telemetry_factory()
        async with state.github_factory() as github:
            installer = Installer(ContentLocator(github), ManifestStore(state.paths), telemetry)
            try:
                return await fn(installer)
            finally:
                await telemetry.flush()

    return asyncio.run(runner())


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, verbose: bool):
    """subagents: discover and install Claude Code subagents from GitHub.

    Subagents install globally into ~/.claude/agents/ by default, or into
    the current project's ./.claude/agents/ with --local.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s - %(levelname)s - %(message)s",
    )
    if ctx.obj is None:
        ctx.obj = CliContext()


# ── Add ──────────────────────────────────────────────────────────────


def _choose_category(fm: Frontmatter) -> str:
    declared = normalize_category(fm.category)
    if declared:
        console.print(f"  Category: [cyan]{CATEGORY_LABELS[declared]}[/] (from frontmatter)")
        return declared

    detection = classify(fm.name, fm.description, fm.tools)
    if detection.confidence is not Confidence.LOW:
        keywords = ", ".join(detection.matched_keywords)
        console.print(
            f"  Suggested category: [cyan]{detection.label}[/] "
            f"({detection.confidence.value} confidence, matched: {keywords})"
        )
    return click.prompt(
        "  Select a category for this subagent",
        type=click.Choice(VALID_CATEGORIES),
        default=detection.category,
    )


@main.command()
@click.argument("identifier")
@click.option("--force", "-f", is_flag=True, help="Overwrite an existing subagent")
@click.option("--local", "-l", is_flag=True, help="Install into ./.claude/agents/")
@click.option(
    "--category", "-c", type=click.Choice(VALID_CATEGORIES), default=None,
    help="Category to record instead of prompting",
)
@click.pass_obj
def add(state: CliContext, identifier: str, force: bool, local: bool, category: str | None):
    """Install a subagent from GitHub.

    IDENTIFIER is owner/repo/name, owner/repo (name defaults to the repo)
    or a github.com URL of the file.
    """
    scope = Scope.LOCAL if local else Scope.GLOBAL

    async def _add(installer: Installer):
        ident = resolve_identifier(identifier)
        installer.check_installable(ident.name, scope, force)

        console.print(f"\nFetching [cyan]{ident.source}[/]...")
        fetched = await installer.fetch(ident)
        console.print(f"  Fetched [green]{fetched.parsed.frontmatter.name}[/]")

        chosen = category or _choose_category(fetched.parsed.frontmatter)
        return await installer.install(
            identifier, force=force, scope=scope, category=chosen, fetched=fetched
        ), chosen

    try:
        result, chosen = _run_with_installer(state, _add)
    except AlreadyInstalledError as exc:
        _fail(exc.message)
    except SubagentsError as exc:
        _fail(str(exc))

    verb = "Updated" if result.is_update else "Installed"
    console.print(f"\n[green]{verb}[/] {result.name}")
    console.print(f"  [dim]Location:[/] {result.path}")
    console.print(f"  [dim]Scope:[/] {result.scope.value}")
    console.print(f"  [dim]Category:[/] {CATEGORY_LABELS.get(chosen, chosen)}")


# ── List ─────────────────────────────────────────────────────────────


def _print_scope(manifests: ManifestStore, scope: Scope) -> int:
    title = "Global agents" if scope is Scope.GLOBAL else "Local/Project agents"
    console.print(f"\n[bold]{title}[/] [dim]({scope.display_dir})[/]\n")

    entries = manifests.reconcile(scope)
    if not entries:
        console.print(f"  [dim]No subagents installed in {scope.value} scope[/]\n")
        return 0

    orphans = []
    for entry in entries:
        if entry.status is EntryStatus.ORPHAN:
            orphans.append(entry.key)
            continue

        record = entry.record
        line = f"  [green]{record.name}[/] [dim]({record.source})[/]"
        if record.description:
            line += f" - {record.description}"
        if entry.status is EntryStatus.MISSING:
            line += " [red](file missing)[/]"
        console.print(line)
        if record.tools_list:
            console.print(f"    [dim]Tools:[/] [cyan]{', '.join(record.tools_list)}[/]")

    if orphans:
        console.print("  [dim]Untracked files:[/]")
        for name in orphans:
            console.print(f"    [yellow]{name}[/] [dim](not in manifest)[/]")
    console.print()
    return len(entries)


@main.command(name="list")
@click.option("--global", "-g", "global_", is_flag=True, help="Show global agents (default)")
@click.option("--local", "-l", is_flag=True, help="Show project agents only")
@click.option("--all", "-a", "all_", is_flag=True, help="Show agents from both locations")
@click.pass_obj
def list_installed(state: CliContext, global_: bool, local: bool, all_: bool):
    """List installed subagents, including untracked and missing files."""
    manifests = ManifestStore(state.paths)
    total = 0
    if global_ or all_ or not local:
        total += _print_scope(manifests, Scope.GLOBAL)
    if local or all_:
        total += _print_scope(manifests, Scope.LOCAL)

    if total == 0:
        console.print("No subagents installed.")
        console.print("Run [cyan]subagents add owner/repo/name[/] to install one.")
        return
    console.print(f"[dim]Total: {total} subagent(s)[/]")


# ── Remove ───────────────────────────────────────────────────────────


@main.command()
@click.argument("name")
@click.option("--global", "-g", "global_", is_flag=True, help="Remove from global scope")
@click.option("--local", "-l", is_flag=True, help="Remove from project scope")
@click.pass_obj
def remove(state: CliContext, name: str, global_: bool, local: bool):
    """Remove an installed subagent.

    Without a scope flag the project scope is checked first, then global.
    """
    scope = Scope.GLOBAL if global_ else Scope.LOCAL if local else None
    installer = Installer(None, ManifestStore(state.paths))

    try:
        result = installer.uninstall(name, scope)
    except SubagentsError as exc:
        _fail(str(exc))

    console.print(f"[green]Removed[/] {name} from {result.scope.value} scope")
    if result.removed_file:
        console.print(f"  [dim]Deleted: {result.path}[/]")


# ── Update ───────────────────────────────────────────────────────────


def _progress(name: str, status: str, error: str | None, label: str = "") -> None:
    suffix = f" [dim]\\[{label}][/]" if label else ""
    if status == "updating":
        console.print(f"  [dim]Updating[/] {name}{suffix}...")
    elif status == "updated":
        console.print(f"  [green]v[/] {name}{suffix}")
    else:
        console.print(f"  [red]x[/] {name}{suffix}: {error}")


def _print_tally(updated: int, errors: int) -> None:
    console.print()
    if updated:
        console.print(f"[green]Updated {updated} subagent(s)[/]")
    if errors:
        console.print(f"[yellow]Failed to update {errors} subagent(s)[/]")


@main.command()
@click.option("--global", "-g", "global_", is_flag=True, help="Update global agents (default)")
@click.option("--local", "-l", is_flag=True, help="Update project agents only")
@click.option("--all", "-a", "all_", is_flag=True, help="Update agents in both locations")
@click.pass_obj
def update(state: CliContext, global_: bool, local: bool, all_: bool):
    """Re-fetch every installed subagent from its source."""
    manifests = ManifestStore(state.paths)

    if all_:
        count = len(manifests.list(Scope.GLOBAL)) + len(manifests.list(Scope.LOCAL))
        if count == 0:
            console.print("No subagents installed in any scope.")
            return
        console.print(f"\n[bold]Updating {count} subagent(s) across all scopes...[/]\n")
        results = _run_with_installer(
            state,
            lambda installer: installer.update_all_scopes(
                lambda name, scope, status, error: _progress(name, status, error, scope.value)
            ),
        )
        _print_tally(results.total_updated, results.total_errors)
        return

    scope = Scope.LOCAL if local and not global_ else Scope.GLOBAL
    count = len(manifests.list(scope))
    if count == 0:
        console.print(f"No subagents installed in {scope.value} scope.")
        return

    console.print(f"\n[bold]Updating {count} subagent(s) in {scope.value} scope...[/]")
    console.print(f"  [dim]{scope.display_dir}[/]\n")
    result = _run_with_installer(state, lambda installer: installer.update_all(scope, _progress))
    _print_tally(len(result.updated), len(result.errors))


main.add_command(list_installed, name="ls")
main.add_command(remove, name="rm")
main.add_command(update, name="up")


# ── Search ───────────────────────────────────────────────────────────


def format_count(num: int) -> str:
    if num >= 1_000_000:
        return f"{num / 1_000_000:.1f}M"
    if num >= 1000:
        return f"{num / 1000:.1f}K"
    return str(num)


@main.command()
@click.argument("query")
@click.pass_obj
def search(state: CliContext, query: str):
    """Search the subagent catalog."""
    try:
        with state.api_client_factory() as client:
            resp = client.get(
                f"{config.API_BASE}/api/subagents", params={"q": query, "limit": 10}
            )
            resp.raise_for_status()
            data = resp.json()
    except (httpx.HTTPError, ValueError) as exc:
        _fail(f"Failed to search: {exc}")

    results = data.get("data") or []
    if not results:
        console.print(f'[yellow]No subagents found for "{query}".[/]')
        console.print(f"Try a different search term or browse at {config.API_BASE}")
        return

    console.print(f"\n[bold]Found {len(results)} subagent(s):[/]\n")
    for agent in results:
        category = f"[dim]\\[{agent['category']}][/]" if agent.get("category") else ""
        downloads = format_count(int(agent.get("download_count") or 0))
        console.print(f"  [cyan]{agent['name']}[/] {category} [dim]downloads:[/] {downloads}")
        console.print(f"  [dim]{agent['owner']}/{agent['repo']}/{agent['slug']}[/]")

        description = agent.get("description")
        if description:
            if len(description) > 70:
                description = description[:67] + "..."
            console.print(f"  {description}")

        tools = agent.get("tools") or []
        if tools:
            more = f" +{len(tools) - 4} more" if len(tools) > 4 else ""
            console.print(f"  [magenta]Tools:[/] [dim]{', '.join(tools[:4])}{more}[/]")
        console.print()

    console.print("  [bold]Install:[/] subagents add [cyan]<owner/repo/name>[/]")


# ── Catalog (admin) ──────────────────────────────────────────────────


catalog_dir_option = click.option(
    "--catalog-dir", "-d",
    default=lambda: str(config.CATALOG_DIR),
    show_default="$SUBAGENTS_CATALOG_DIR or ~/.subagents/catalog",
    help="Catalog directory",
)


def _split_full_name(value: str) -> tuple[str, str]:
    parts = value.split("/")
    if len(parts) != 2 or not all(parts):
        raise click.BadParameter(f"expected owner/repo, got {value!r}")
    return parts[0], parts[1]


@main.group()
def catalog():
    """Administer the server-side subagent catalog."""


@catalog.command(name="add-source")
@click.argument("full_name")
@click.option("--branch", "-b", default="main", help="Branch to sync")
@click.option("--path", "-p", "agents_path", default=".claude/agents", help="Directory of agent files")
@click.option("--inactive", is_flag=True, help="Register without syncing it")
@catalog_dir_option
def add_source(full_name: str, branch: str, agents_path: str, inactive: bool, catalog_dir: str):
    """Register FULL_NAME (owner/repo) as a sync source."""
    from subagents.catalog.models import Source
    from subagents.catalog.store import LocalCatalog

    owner, repo = _split_full_name(full_name)
    source = LocalCatalog(catalog_dir).add_source(
        Source(owner=owner, repo=repo, branch=branch, agents_path=agents_path, is_active=not inactive)
    )
    console.print(f"  Registered [cyan]{source.full_name}[/] ({source.branch}:{source.agents_path})")


@catalog.command(name="sources")
@catalog_dir_option
def list_sources(catalog_dir: str):
    """List registered sync sources."""
    from subagents.catalog.store import LocalCatalog

    sources = LocalCatalog(catalog_dir).list_sources()
    if not sources:
        console.print("[yellow]No sources registered.[/]")
        return

    table = Table(title=f"Sources ({len(sources)})")
    table.add_column("Repository", style="cyan")
    table.add_column("Branch")
    table.add_column("Path")
    table.add_column("Active", justify="center")
    table.add_column("Last synced")
    table.add_column("Error", style="red")

    for s in sources:
        active = "[green]Y[/]" if s.is_active else "[red]N[/]"
        table.add_row(
            s.full_name, s.branch, s.agents_path, active, s.last_synced_at or "-", s.sync_error or ""
        )

    console.print(table)


@catalog.command(name="sync")
@click.option("--source", "-s", "full_name", default=None, help="Sync only this owner/repo")
@catalog_dir_option
@click.pass_obj
def sync_catalog(state: CliContext, full_name: str | None, catalog_dir: str):
    """Sync active sources from GitHub into the catalog."""
    from subagents.catalog.store import LocalCatalog
    from subagents.catalog.sync import RemoteSync

    store = LocalCatalog(catalog_dir)
    target = _split_full_name(full_name) if full_name else None

    async def run():
        async with state.github_factory() as github:
            engine = RemoteSync(store, github)
            if target:
                return await engine.sync_one(*target)
            return await engine.sync_all()

    try:
        result = asyncio.run(run())
    except SubagentsError as exc:
        _fail(str(exc))

    if full_name:
        console.print(f"  {full_name}: {result.synced} synced, {result.errors} errors")
    else:
        console.print(
            f"  {result.total_synced} synced, {result.total_errors} errors "
            f"across {result.sources_processed} sources"
        )


@catalog.command()
@click.option("--dry-run", "mode", flag_value="dry-run", help="Preview suggestions")
@click.option("--export", "export_path", default=None, help="Write suggestions to a CSV file")
@click.option("--apply", "mode", flag_value="apply", help="Write suggestions to the catalog")
@catalog_dir_option
def categorize(mode: str | None, export_path: str | None, catalog_dir: str):
    """Suggest categories for uncategorized catalog entries."""
    from subagents.catalog.backfill import (
        apply_suggestions,
        export_csv,
        group_by_confidence,
        suggest_categories,
    )
    from subagents.catalog.store import LocalCatalog

    if export_path:
        if mode:
            raise click.UsageError("--export cannot be combined with --dry-run or --apply")
        mode = "export"
    if not mode:
        raise click.UsageError("Choose one of --dry-run, --export PATH or --apply")

    store = LocalCatalog(catalog_dir)
    suggestions = suggest_categories(store)
    if not suggestions:
        console.print("[green]All subagents are already categorized.[/]")
        return

    console.print(f"Found {len(suggestions)} uncategorized subagents\n")

    if mode == "dry-run":
        groups = group_by_confidence(suggestions)
        for confidence, items in groups.items():
            console.print(f"[bold]{confidence.value.upper()} CONFIDENCE[/] ({len(items)})")
            for s in items:
                matched = ", ".join(s.classification.matched_keywords)
                detail = f" (matched: {matched})" if matched else ""
                console.print(f"  {s.subagent.name} -> [cyan]{s.category}[/]{detail}")
            console.print()
        console.print("Run with --apply to update the catalog.")
    elif mode == "export":
        path = export_csv(suggestions, export_path)
        console.print(f"[green]Exported to[/] {path}")
    else:

        def report(s, error):
            if error:
                console.print(f"  [red]x[/] {s.subagent.name}: {error}")
            else:
                console.print(f"  [green]v[/] {s.subagent.name} -> {s.category}")

        result = apply_suggestions(store, suggestions, on_item=report)
        console.print(f"\nUpdated {result.updated} subagents, {result.errors} errors")


if __name__ == "__main__":
    main()
