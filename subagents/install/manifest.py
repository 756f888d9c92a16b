"""Manifest store: the record of what is installed in each scope.

Each scope keeps ``<root>/.subagents.json``::

    {
      "version": "1",
      "subagents": {
        "code-reviewer": {"name": ..., "source": "owner/repo/code-reviewer", ...}
      }
    }

The manifest is authoritative for metadata; the ``.md`` files next to it
are authoritative for whether the payload exists. ``reconcile`` computes
the union of both views.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union

from subagents.install.paths import InstallPaths, LOOKUP_ORDER, Scope

MANIFEST_VERSION = "1"


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass
class InstalledRecord:
    """One manifest entry."""

    name: str
    path: str
    source: str  # owner/repo/name
    description: Optional[str] = None
    tools: Optional[Union[list[str], str]] = None
    category: Optional[str] = None
    installed_at: str = ""
    updated_at: str = ""

    @property
    def tools_list(self) -> list[str]:
        """Tools as a list whether stored as a list or a comma-separated string."""
        if isinstance(self.tools, list):
            return [str(t) for t in self.tools]
        if isinstance(self.tools, str):
            return [t.strip() for t in self.tools.split(",") if t.strip()]
        return []

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "path": self.path,
            "source": self.source,
        }
        if self.description is not None:
            data["description"] = self.description
        if self.tools is not None:
            data["tools"] = self.tools
        if self.category is not None:
            data["category"] = self.category
        data["installedAt"] = self.installed_at
        data["updatedAt"] = self.updated_at
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any], key: str = "") -> "InstalledRecord":
        return cls(
            name=data.get("name") or key,
            path=data.get("path", ""),
            source=data.get("source", ""),
            description=data.get("description"),
            tools=data.get("tools"),
            category=data.get("category"),
            installed_at=data.get("installedAt", ""),
            updated_at=data.get("updatedAt", ""),
        )


@dataclass
class Manifest:
    """In-memory manifest for one scope, keyed by artifact name."""

    version: str = MANIFEST_VERSION
    subagents: dict[str, InstalledRecord] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "subagents": {k: v.to_dict() for k, v in self.subagents.items()},
        }


class EntryStatus(Enum):
    """Reconciliation status of one installed name."""

    TRACKED = "tracked"  # manifest entry and file
    ORPHAN = "orphan"  # file without manifest entry
    MISSING = "missing"  # manifest entry without file


@dataclass
class InstalledEntry:
    """Union view of manifest entries and files for one name."""

    key: str
    scope: Scope
    status: EntryStatus
    record: Optional[InstalledRecord] = None


class ManifestStore:
    """Load, mutate and persist per-scope manifests."""

    def __init__(self, paths: InstallPaths | None = None) -> None:
        self.paths = paths or InstallPaths()

    def load(self, scope: Scope = Scope.GLOBAL) -> Manifest:
        """Load a scope's manifest; missing or unreadable files load as empty."""
        manifest_path = self.paths.manifest_path(scope)
        if not manifest_path.is_file():
            return Manifest()

        try:
            data = json.loads(manifest_path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return Manifest()

        if not isinstance(data, dict) or not isinstance(data.get("subagents"), dict):
            return Manifest()

        return Manifest(
            version=str(data.get("version") or MANIFEST_VERSION),
            subagents={
                key: InstalledRecord.from_dict(value, key)
                for key, value in data["subagents"].items()
                if isinstance(value, dict)
            },
        )

    def save(self, manifest: Manifest, scope: Scope = Scope.GLOBAL) -> Path:
        """Rewrite the whole manifest file, pretty-printed."""
        self.paths.ensure_root(scope)
        manifest_path = self.paths.manifest_path(scope)
        with open(manifest_path, "w", encoding="utf-8") as f:
            json.dump(manifest.to_dict(), f, indent=2)
        return manifest_path

    def add(self, name: str, record: InstalledRecord, scope: Scope = Scope.GLOBAL) -> None:
        manifest = self.load(scope)
        manifest.subagents[name] = record
        self.save(manifest, scope)

    def remove(self, name: str, scope: Scope = Scope.GLOBAL) -> bool:
        """Drop ``name``; returns False (and writes nothing) when absent."""
        manifest = self.load(scope)
        if manifest.subagents.pop(name, None) is None:
            return False
        self.save(manifest, scope)
        return True

    def get(self, name: str, scope: Scope = Scope.GLOBAL) -> InstalledRecord | None:
        return self.load(scope).subagents.get(name)

    def list(self, scope: Scope = Scope.GLOBAL) -> list[InstalledRecord]:
        return list(self.load(scope).subagents.values())

    # -- cross-view queries --------------------------------------------------

    def is_installed(self, name: str, scope: Scope) -> bool:
        return self.get(name, scope) is not None or self.paths.exists(name, scope)

    def find_scope(self, name: str) -> Scope | None:
        """Return the scope holding ``name``, checking local before global."""
        for scope in LOOKUP_ORDER:
            if self.is_installed(name, scope):
                return scope
        return None

    def reconcile(self, scope: Scope) -> list[InstalledEntry]:
        """Classify every name known to the manifest or the filesystem."""
        manifest = self.load(scope)
        files = set(self.paths.list_files(scope))

        entries = [
            InstalledEntry(
                key=key,
                scope=scope,
                status=EntryStatus.TRACKED if key in files else EntryStatus.MISSING,
                record=record,
            )
            for key, record in manifest.subagents.items()
        ]
        entries.extend(
            InstalledEntry(key=name, scope=scope, status=EntryStatus.ORPHAN)
            for name in sorted(files - set(manifest.subagents))
        )
        return entries
