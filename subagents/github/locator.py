"""Content locator: find a named subagent file in a GitHub repository.

Repositories do not agree on where agent files live, so the locator probes
a fixed list of candidate directories and falls back from ``main`` to
``master`` before giving up.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from subagents.exceptions import NotFoundError
from subagents.github.client import GitHubClient

logger = logging.getLogger(__name__)

# Probe order matters: the first hit wins.
SEARCH_PATHS = (".claude/agents", "agents", ".claude", "")

DEFAULT_BRANCH = "main"
FALLBACK_BRANCH = "master"


@dataclass
class LocatedArtifact:
    """Raw content of a subagent plus where it was found."""

    content: str
    owner: str
    repo: str
    name: str
    branch: str
    path: str


def candidate_paths(name: str) -> list[str]:
    """Return the candidate file paths for ``name`` in probe order."""
    return [f"{base}/{name}.md" if base else f"{name}.md" for base in SEARCH_PATHS]


class ContentLocator:
    """Locate subagent files via raw fetches against candidate paths."""

    def __init__(self, github: GitHubClient) -> None:
        self.github = github

    async def locate(
        self, owner: str, repo: str, name: str, branch: str = DEFAULT_BRANCH
    ) -> LocatedArtifact:
        """Fetch ``name`` from ``owner/repo``.

        Raises:
            NotFoundError: When no candidate path answers 200 on ``branch``
                (and on ``master`` when ``branch`` is ``main``).
        """
        attempted: list[tuple[str, str]] = []
        soft_errors: list[str] = []

        branches = [branch]
        if branch == DEFAULT_BRANCH:
            branches.append(FALLBACK_BRANCH)

        for ref in branches:
            found = await self._probe_branch(owner, repo, name, ref, attempted, soft_errors)
            if found is not None:
                return found

        searched = ", ".join(base or "(root)" for base in SEARCH_PATHS)
        raise NotFoundError(
            f'Could not find subagent "{name}" in {owner}/{repo}.\n'
            f"Searched in: {searched} (branches: {', '.join(branches)})\n"
            f"Make sure the file exists at one of these locations.",
            attempted=attempted,
            soft_errors=soft_errors,
        )

    async def _probe_branch(
        self,
        owner: str,
        repo: str,
        name: str,
        branch: str,
        attempted: list[tuple[str, str]],
        soft_errors: list[str],
    ) -> LocatedArtifact | None:
        for file_path in candidate_paths(name):
            attempted.append((branch, file_path))
            try:
                resp = await self.github.fetch_raw(owner, repo, branch, file_path)
            except httpx.HTTPError as exc:
                soft_errors.append(f"{branch}:{file_path}: {str(exc) or type(exc).__name__}")
                logger.debug("Fetch failed for %s/%s@%s:%s: %s", owner, repo, branch, file_path, exc)
                continue

            if resp.status_code == 200:
                return LocatedArtifact(
                    content=resp.text,
                    owner=owner,
                    repo=repo,
                    name=name,
                    branch=branch,
                    path=file_path,
                )

            if resp.status_code != 404:
                soft_errors.append(f"{branch}:{file_path}: HTTP {resp.status_code}")
                logger.debug(
                    "Unexpected HTTP %s for %s/%s@%s:%s",
                    resp.status_code, owner, repo, branch, file_path,
                )
        return None

    async def check_repo_exists(self, owner: str, repo: str) -> bool:
        """Return True when the repository metadata is reachable."""
        try:
            await self.github.get_repository(owner, repo)
        except Exception:
            logger.debug("Repository probe failed for %s/%s", owner, repo, exc_info=True)
            return False
        return True

    async def get_default_branch(self, owner: str, repo: str) -> str:
        """Return the declared default branch, or ``main`` on any failure."""
        try:
            data = await self.github.get_repository(owner, repo)
        except Exception:
            logger.debug("Falling back to %s for %s/%s", DEFAULT_BRANCH, owner, repo, exc_info=True)
            return DEFAULT_BRANCH
        branch = data.get("default_branch") if isinstance(data, dict) else None
        return branch if isinstance(branch, str) and branch else DEFAULT_BRANCH
