"""Async GitHub HTTP client.

Thin wrapper around ``httpx.AsyncClient`` covering the three endpoints the
pipeline needs: raw file fetches, repository metadata and the contents API
(directory listings and base64 file bodies).
"""

from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from subagents import config
from subagents.exceptions import GitHubError

logger = logging.getLogger(__name__)


@dataclass
class ContentEntry:
    """One item of a contents API directory listing."""

    name: str
    path: str
    type: str  # file | dir | symlink | submodule
    download_url: Optional[str] = None

    @property
    def is_file(self) -> bool:
        return self.type == "file"


class GitHubClient:
    """Async client for raw.githubusercontent.com and the GitHub REST API.

    Use as an async context manager so the underlying connection pool is
    closed::

        async with GitHubClient() as gh:
            listing = await gh.list_directory("owner", "repo", "agents", "main")

    Pass ``http_client`` to share a pool or to inject a mock transport; a
    client passed in this way is not closed by ``aclose``.
    """

    def __init__(
        self,
        token: str | None = None,
        raw_base: str | None = None,
        api_base: str | None = None,
        timeout: float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.token = config.GITHUB_TOKEN if token is None else token
        self.raw_base = (raw_base or config.GITHUB_RAW_BASE).rstrip("/")
        self.api_base = (api_base or config.GITHUB_API_BASE).rstrip("/")
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            timeout=timeout if timeout is not None else config.HTTP_TIMEOUT,
            follow_redirects=True,
        )

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    # -- helpers -------------------------------------------------------------

    def _api_headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        # Use GitHub token if available for higher rate limits
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _api_get(self, path: str, params: dict[str, str] | None = None) -> httpx.Response:
        return await self._http.get(
            f"{self.api_base}{path}", params=params, headers=self._api_headers()
        )

    # -- raw content ---------------------------------------------------------

    def raw_url(self, owner: str, repo: str, branch: str, path: str) -> str:
        return f"{self.raw_base}/{owner}/{repo}/{branch}/{path}"

    async def fetch_raw(self, owner: str, repo: str, branch: str, path: str) -> httpx.Response:
        """GET a raw file. The response is returned whatever its status.

        Raises:
            httpx.HTTPError: On transport failures.
        """
        return await self._http.get(self.raw_url(owner, repo, branch, path))

    # -- repository metadata -------------------------------------------------

    async def get_repository(self, owner: str, repo: str) -> dict[str, Any]:
        """Return the repository metadata document.

        Raises:
            GitHubError: On a non-2xx response or a transport failure.
        """
        try:
            resp = await self._api_get(f"/repos/{owner}/{repo}")
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as exc:
            raise GitHubError(
                f"GitHub API error for {owner}/{repo}: {exc.response.status_code}",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise GitHubError(f"Failed to reach GitHub API: {exc}") from exc

    # -- contents API --------------------------------------------------------

    async def _get_contents(self, owner: str, repo: str, path: str, ref: str) -> Any:
        """Return the decoded contents API payload, or ``None`` on 404."""
        path = path.strip("/")
        try:
            resp = await self._api_get(f"/repos/{owner}/{repo}/contents/{path}", params={"ref": ref})
        except httpx.HTTPError as exc:
            raise GitHubError(f"Failed to reach GitHub API: {exc}") from exc

        if resp.status_code == 404:
            return None
        if resp.status_code == 403:
            raise GitHubError(
                "GitHub API rate limit exceeded. Set GITHUB_TOKEN for higher limits.",
                status_code=403,
            )
        if resp.status_code >= 400:
            raise GitHubError(
                f"GitHub API error for {owner}/{repo}/{path}: {resp.status_code}",
                status_code=resp.status_code,
            )
        return resp.json()

    async def list_directory(
        self, owner: str, repo: str, path: str, ref: str
    ) -> list[ContentEntry]:
        """List a directory. A missing directory yields an empty list.

        Raises:
            GitHubError: On any failure other than 404.
        """
        data = await self._get_contents(owner, repo, path, ref)
        if data is None:
            logger.warning("Directory not found: %s/%s/%s", owner, repo, path)
            return []
        if not isinstance(data, list):
            return []
        return [
            ContentEntry(
                name=item.get("name", ""),
                path=item.get("path", ""),
                type=item.get("type", ""),
                download_url=item.get("download_url"),
            )
            for item in data
        ]

    async def get_file_content(self, owner: str, repo: str, path: str, ref: str) -> str | None:
        """Return a file's decoded text, or ``None`` when it is absent or empty.

        Raises:
            GitHubError: On any failure other than 404.
        """
        data = await self._get_contents(owner, repo, path, ref)
        if not isinstance(data, dict) or not data.get("content"):
            return None
        try:
            return base64.b64decode(data["content"]).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as exc:
            raise GitHubError(f"Could not decode {owner}/{repo}/{path}", details=str(exc)) from exc
