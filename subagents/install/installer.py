"""Install, update and uninstall workflows.

Composes identifier resolution, the content locator, the artifact parser
and the per-scope stores. Batch updates run sequentially and collect
per-subagent failures instead of stopping at the first one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Literal, Optional

from subagents.artifacts import ParsedArtifact, parse_artifact
from subagents.exceptions import AlreadyInstalledError, NotInstalledError
from subagents.github.identifier import Identifier, resolve_identifier
from subagents.github.locator import ContentLocator, LocatedArtifact
from subagents.install.manifest import InstalledRecord, ManifestStore, utc_now
from subagents.install.paths import InstallPaths, Scope
from subagents.install.telemetry import TelemetryClient

logger = logging.getLogger(__name__)

UpdateStatus = Literal["updating", "updated", "error"]
ProgressCallback = Callable[[str, UpdateStatus, Optional[str]], None]
ScopedProgressCallback = Callable[[str, Scope, UpdateStatus, Optional[str]], None]


@dataclass
class FetchedArtifact:
    """A validated subagent fetched from GitHub, not yet written anywhere."""

    ident: Identifier
    located: LocatedArtifact
    parsed: ParsedArtifact


@dataclass
class InstallResult:
    name: str
    path: str
    is_update: bool
    scope: Scope


@dataclass
class UninstallResult:
    path: str
    scope: Scope
    removed_file: bool = False
    removed_entry: bool = False


@dataclass
class UpdateError:
    name: str
    error: str


@dataclass
class UpdateResult:
    """Outcome of updating every subagent in one scope."""

    updated: list[str] = field(default_factory=list)
    errors: list[UpdateError] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.updated) + len(self.errors)


@dataclass
class ScopedUpdateResult:
    global_: UpdateResult = field(default_factory=UpdateResult)
    local: UpdateResult = field(default_factory=UpdateResult)

    @property
    def total_updated(self) -> int:
        return len(self.global_.updated) + len(self.local.updated)

    @property
    def total_errors(self) -> int:
        return len(self.global_.errors) + len(self.local.errors)


class Installer:
    """Install/update/uninstall orchestrator for one machine."""

    def __init__(
        self,
        locator: ContentLocator | None,
        manifests: ManifestStore | None = None,
        telemetry: TelemetryClient | None = None,
    ) -> None:
        self.locator = locator
        self.manifests = manifests or ManifestStore()
        self.telemetry = telemetry or TelemetryClient(enabled=False)

    @property
    def paths(self) -> InstallPaths:
        return self.manifests.paths

    def check_installable(self, name: str, scope: Scope, force: bool = False) -> bool:
        """Return whether installing ``name`` into ``scope`` would be an update.

        Raises:
            AlreadyInstalledError: If a manifest entry or file exists and
                ``force`` is false.
        """
        existing = self.manifests.get(name, scope)
        if (existing or self.paths.exists(name, scope)) and not force:
            raise AlreadyInstalledError(
                f'Subagent "{name}" is already installed in {scope.value} scope. '
                "Use --force to overwrite."
            )
        return existing is not None

    async def fetch(self, identifier: str | Identifier) -> FetchedArtifact:
        """Resolve, locate and validate a subagent without installing it.

        Raises:
            InvalidIdentifierError: If ``identifier`` cannot be resolved.
            NotFoundError: If no candidate path holds the file.
            ArtifactParseError: If the content is not a valid subagent.
        """
        if self.locator is None:
            raise RuntimeError("Installer was created without a content locator")
        ident = identifier if isinstance(identifier, Identifier) else resolve_identifier(identifier)
        branch = await self.locator.get_default_branch(ident.owner, ident.repo)
        located = await self.locator.locate(ident.owner, ident.repo, ident.name, branch)
        return FetchedArtifact(ident=ident, located=located, parsed=parse_artifact(located.content))

    async def install(
        self,
        identifier: str,
        force: bool = False,
        scope: Scope = Scope.GLOBAL,
        category: str | None = None,
        fetched: FetchedArtifact | None = None,
    ) -> InstallResult:
        """Fetch, validate and install a subagent into ``scope``.

        Pass ``fetched`` to install content already obtained through
        :meth:`fetch` instead of fetching it again.

        Raises:
            InvalidIdentifierError: If ``identifier`` cannot be resolved.
            AlreadyInstalledError: If it is installed and ``force`` is false.
            NotFoundError: If no candidate path holds the file.
            ArtifactParseError: If the content is not a valid subagent.
        """
        ident = fetched.ident if fetched else resolve_identifier(identifier)
        name = ident.name

        existing = self.manifests.get(name, scope)
        is_update = self.check_installable(name, scope, force)

        # Must not write anything for malformed content.
        if fetched is None:
            fetched = await self.fetch(ident)
        located = fetched.located

        file_path = self.paths.path_for(name, scope)
        with open(file_path, "w", encoding="utf-8", newline="") as f:
            f.write(located.content)

        now = utc_now()
        fm = fetched.parsed.frontmatter
        record = InstalledRecord(
            name=fm.name,
            path=str(file_path),
            source=ident.source,
            description=fm.description,
            tools=fm.tools,
            category=category or fm.category,
            installed_at=existing.installed_at if existing and existing.installed_at else now,
            updated_at=now,
        )
        self.manifests.add(name, record, scope)

        logger.info(
            "%s %s into %s (%s@%s:%s)",
            "Updated" if is_update else "Installed",
            name, scope.value, ident.source, located.branch, located.path,
        )

        self.telemetry.send(
            ident.source,
            "download",
            {
                "owner": ident.owner,
                "repo": ident.repo,
                "name": name,
                "isUpdate": is_update,
                "scope": scope.value,
            },
        )

        return InstallResult(name=name, path=str(file_path), is_update=is_update, scope=scope)

    def uninstall(self, name: str, scope: Scope | None = None) -> UninstallResult:
        """Remove a subagent's file and manifest entry.

        With no ``scope`` the subagent is looked up locally first, then
        globally. Deleting the file and dropping the entry are independent:
        either may already be gone.

        Raises:
            NotInstalledError: If nothing is installed under ``name``.
        """
        if scope is None:
            scope = self.manifests.find_scope(name)
            if scope is None:
                raise NotInstalledError(f'Subagent "{name}" is not installed.')

        file_path = self.paths.path_for(name, scope)
        existing = self.manifests.get(name, scope)
        file_exists = file_path.is_file()

        if existing is None and not file_exists:
            raise NotInstalledError(f'Subagent "{name}" is not installed in {scope.value} scope.')

        removed_file = False
        if file_exists:
            try:
                file_path.unlink()
                removed_file = True
            except FileNotFoundError:
                pass

        removed_entry = self.manifests.remove(name, scope) if existing is not None else False

        return UninstallResult(
            path=str(file_path),
            scope=scope,
            removed_file=removed_file,
            removed_entry=removed_entry,
        )

    async def update_all(
        self,
        scope: Scope = Scope.GLOBAL,
        on_progress: ProgressCallback | None = None,
    ) -> UpdateResult:
        """Re-install every manifest entry of ``scope`` from its source."""
        result = UpdateResult()

        for record in self.manifests.list(scope):
            if on_progress:
                on_progress(record.name, "updating", None)
            try:
                await self.install(record.source, force=True, scope=scope)
            except Exception as exc:
                message = str(exc) or type(exc).__name__
                logger.warning("Update failed for %s (%s): %s", record.name, scope.value, message)
                result.errors.append(UpdateError(name=record.name, error=message))
                if on_progress:
                    on_progress(record.name, "error", message)
                continue

            result.updated.append(record.name)
            if on_progress:
                on_progress(record.name, "updated", None)

        return result

    async def update_all_scopes(
        self, on_progress: ScopedProgressCallback | None = None
    ) -> ScopedUpdateResult:
        """Update global then local, independently."""

        def _bind(scope: Scope) -> ProgressCallback | None:
            if on_progress is None:
                return None
            return lambda name, status, error: on_progress(name, scope, status, error)

        return ScopedUpdateResult(
            global_=await self.update_all(Scope.GLOBAL, _bind(Scope.GLOBAL)),
            local=await self.update_all(Scope.LOCAL, _bind(Scope.LOCAL)),
        )
