"""Artifact parsing: split a subagent file into frontmatter and body.

A subagent is a Markdown file that starts with a YAML frontmatter block::

    ---
    name: code-reviewer
    description: Reviews diffs for style and correctness
    tools: Read, Grep, Glob
    ---

    You are a meticulous code reviewer...

``name`` is the only required key. Unknown keys are kept as-is so newer
frontmatter fields survive a round trip through this package.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Optional

import frontmatter
import yaml

from subagents.exceptions import ArtifactParseError, MissingNameError

KNOWN_FIELDS = ("name", "description", "tools", "category")


@dataclass
class Frontmatter:
    """Structured frontmatter. ``extra`` holds every key not modelled here."""

    name: str
    description: Optional[str] = None
    tools: Optional[list[str]] = None
    category: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name}
        if self.description is not None:
            data["description"] = self.description
        if self.tools is not None:
            data["tools"] = list(self.tools)
        if self.category is not None:
            data["category"] = self.category
        data.update(self.extra)
        return data


@dataclass
class ParsedArtifact:
    """A parsed subagent file."""

    frontmatter: Frontmatter
    content: str  # body, trimmed, without the frontmatter block
    raw: str  # untouched original text


def parse_tools(tools: Any) -> list[str] | None:
    """Normalise ``tools`` from a YAML list or a comma-separated string."""
    if isinstance(tools, (list, tuple)):
        cleaned = [str(t).strip() for t in tools]
        return [t for t in cleaned if t]
    if isinstance(tools, str) and tools.strip():
        return [t.strip() for t in tools.split(",") if t.strip()]
    return None


def humanize_slug(slug: str) -> str:
    """``backend-architect`` -> ``Backend Architect``."""
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), slug.replace("-", " "))


def split_frontmatter(raw: str) -> tuple[dict[str, Any], str]:
    """Return ``(metadata, body)`` without validating required fields.

    A block only counts as frontmatter when ``---`` opens the very first
    line; anything else is all body.

    Raises:
        ArtifactParseError: If the frontmatter block is not valid YAML.
    """
    if not raw.startswith("---"):
        return {}, raw.strip()
    try:
        post = frontmatter.loads(raw)
    except yaml.YAMLError as exc:
        raise ArtifactParseError("Subagent frontmatter is not valid YAML", str(exc)) from exc

    metadata = post.metadata if isinstance(post.metadata, dict) else {}
    return metadata, post.content.strip()


def parse_artifact(raw: str) -> ParsedArtifact:
    """Parse and validate subagent content.

    Raises:
        MissingNameError: If there is no frontmatter, the block is empty, or
            it has no non-empty ``name``.
        ArtifactParseError: If the frontmatter is not valid YAML.
    """
    metadata, body = split_frontmatter(raw)

    name = metadata.get("name")
    if name is None or not str(name).strip():
        raise MissingNameError('Subagent is missing required "name" field in frontmatter')

    description = metadata.get("description")
    category = metadata.get("category")

    fm = Frontmatter(
        name=str(name).strip(),
        description=str(description) if description is not None else None,
        tools=parse_tools(metadata.get("tools")),
        category=str(category) if category is not None else None,
        extra={k: v for k, v in metadata.items() if k not in KNOWN_FIELDS},
    )
    return ParsedArtifact(frontmatter=fm, content=body, raw=raw)
