"""Identifier resolution: turn user input into an (owner, repo, name) triple.

Accepted forms::

    owner/repo/name        owner/repo/name.md
    owner/repo             (name defaults to repo)
    https://github.com/owner/repo/blob/main/.claude/agents/name.md
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlparse

from subagents.exceptions import InvalidIdentifierError

GITHUB_HOSTS = {"github.com", "www.github.com"}
REF_MARKERS = {"blob", "tree"}
MARKDOWN_SUFFIX = ".md"


@dataclass(frozen=True)
class Identifier:
    """A resolved subagent identifier."""

    owner: str
    repo: str
    name: str

    @property
    def source(self) -> str:
        """The canonical ``owner/repo/name`` form stored in manifests."""
        return f"{self.owner}/{self.repo}/{self.name}"

    def __str__(self) -> str:
        return self.source


def strip_markdown_suffix(value: str) -> str:
    return value.removesuffix(MARKDOWN_SUFFIX)


def is_github_url(value: str) -> bool:
    lowered = value.lower()
    if not lowered.startswith(("https://", "http://")):
        return False
    host = lowered.split("://", 1)[1].split("/", 1)[0]
    return host in GITHUB_HOSTS


def resolve_identifier(identifier: str) -> Identifier:
    """Parse ``identifier`` into an :class:`Identifier`.

    Raises:
        InvalidIdentifierError: If the input is empty, has a single path
            segment, or is a GitHub URL without owner and repo.
    """
    value = (identifier or "").strip()
    if not value:
        raise InvalidIdentifierError("Identifier is empty. Expected owner/repo/name or GitHub URL.")

    if is_github_url(value):
        return _resolve_url(value)

    parts = value.split("/")
    if any(not p for p in parts):
        raise _invalid(value)

    if len(parts) == 3:
        return Identifier(owner=parts[0], repo=parts[1], name=strip_markdown_suffix(parts[2]))

    if len(parts) == 2:
        return Identifier(owner=parts[0], repo=parts[1], name=parts[1])

    raise _invalid(value)


def _resolve_url(url: str) -> Identifier:
    try:
        parsed = urlparse(url)
    except ValueError as exc:
        raise InvalidIdentifierError(f'Malformed GitHub URL: "{url}"', str(exc)) from exc

    parts = [p for p in parsed.path.split("/") if p]
    if len(parts) < 2:
        raise InvalidIdentifierError(
            f'Malformed GitHub URL: "{url}". Expected https://github.com/owner/repo[/...].'
        )

    owner, repo = parts[0], parts[1]
    name = repo

    if len(parts) > 4 and parts[2] in REF_MARKERS:
        # /owner/repo/blob/<ref>/<sub/path>/<file>.md
        sub_path = parts[4:]
        name = strip_markdown_suffix(sub_path[-1]) or repo
    elif len(parts) > 2:
        name = strip_markdown_suffix(parts[-1])

    return Identifier(owner=owner, repo=repo, name=name)


def _invalid(value: str) -> InvalidIdentifierError:
    return InvalidIdentifierError(
        f'Invalid identifier format: "{value}". Expected owner/repo/name or GitHub URL.'
    )
