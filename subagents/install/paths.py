"""Scoped storage roots for installed subagents.

``global`` lives under the user's home directory and is shared by every
project; ``local`` lives under the current working directory and is meant
to be committed with the project.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

AGENTS_SUBDIR = Path(".claude") / "agents"
MANIFEST_FILE = ".subagents.json"
ARTIFACT_SUFFIX = ".md"


class Scope(str, Enum):
    """Where a subagent is installed."""

    GLOBAL = "global"
    LOCAL = "local"

    @property
    def display_dir(self) -> str:
        return "~/.claude/agents/" if self is Scope.GLOBAL else "./.claude/agents/"


# Local wins when a name is installed in both scopes.
LOOKUP_ORDER = (Scope.LOCAL, Scope.GLOBAL)


class InstallPaths:
    """Resolves scope roots and artifact paths.

    Roots are computed on each call so ``local`` follows the current working
    directory; pass explicit roots to pin them (tests do this).
    """

    def __init__(
        self,
        global_root: str | Path | None = None,
        local_root: str | Path | None = None,
    ) -> None:
        self._global_root = Path(global_root) if global_root else None
        self._local_root = Path(local_root) if local_root else None

    def root(self, scope: Scope) -> Path:
        """Return the scope's directory without creating it."""
        if scope is Scope.GLOBAL:
            return self._global_root or Path.home() / AGENTS_SUBDIR
        return self._local_root or Path.cwd() / AGENTS_SUBDIR

    def ensure_root(self, scope: Scope) -> Path:
        root = self.root(scope)
        root.mkdir(parents=True, exist_ok=True)
        return root

    def path_for(self, name: str, scope: Scope) -> Path:
        """Return ``<root>/<name>.md``, creating the root on first access."""
        return self.ensure_root(scope) / f"{name}{ARTIFACT_SUFFIX}"

    def manifest_path(self, scope: Scope) -> Path:
        return self.root(scope) / MANIFEST_FILE

    def exists(self, name: str, scope: Scope) -> bool:
        return self.path_for(name, scope).is_file()

    def list_files(self, scope: Scope) -> list[str]:
        """Names of every ``.md`` file in the scope root (read-only probe)."""
        root = self.root(scope)
        if not root.is_dir():
            return []
        return sorted(
            p.name[: -len(ARTIFACT_SUFFIX)]
            for p in root.iterdir()
            if p.is_file() and p.name.endswith(ARTIFACT_SUFFIX)
        )

    def root_exists(self, scope: Scope) -> bool:
        return self.root(scope).is_dir()
