"""Shared fixtures: an in-memory GitHub and per-test install roots."""

import base64

import httpx
import pytest

from subagents.github.client import GitHubClient
from subagents.install.paths import InstallPaths

RAW_BASE = "https://raw.test"
API_BASE = "https://api.test"

AGENT_MD = """---
name: code-reviewer
description: Reviews pull requests for style and correctness
tools: Read, Grep, Glob
---

You are a meticulous code reviewer.
"""


def agent_md(name: str, description: str = "A helpful agent", **fields) -> str:
    lines = ["---", f"name: {name}", f"description: {description}"]
    lines += [f"{key}: {value}" for key, value in fields.items()]
    lines += ["---", "", f"You are {name}.", ""]
    return "\n".join(lines)


class FakeGitHub:
    """Serves raw files, repository metadata and contents API documents."""

    def __init__(self):
        self.raw_files: dict[str, str] = {}
        self.raw_status: dict[str, int] = {}
        self.repos: dict[str, dict] = {}
        self.contents: dict[str, object] = {}
        self.contents_status: dict[str, int] = {}
        self.requests: list[httpx.Request] = []

    # -- setup ---------------------------------------------------------------

    def add_repo(self, owner: str, repo: str, default_branch: str = "main") -> None:
        self.repos[f"{owner}/{repo}"] = {"full_name": f"{owner}/{repo}", "default_branch": default_branch}

    def add_file(self, owner: str, repo: str, branch: str, path: str, text: str) -> None:
        self.raw_files[f"{owner}/{repo}/{branch}/{path}"] = text
        self.contents[f"{owner}/{repo}/{path}@{branch}"] = {
            "type": "file",
            "name": path.rsplit("/", 1)[-1],
            "path": path,
            "content": base64.b64encode(text.encode("utf-8")).decode("ascii"),
            "encoding": "base64",
        }

    def add_dir(self, owner: str, repo: str, branch: str, path: str, names: list[str]) -> None:
        self.contents[f"{owner}/{repo}/{path}@{branch}"] = [
            {
                "name": name,
                "path": f"{path}/{name}",
                "type": "dir" if name.endswith("/") else "file",
                "download_url": f"{RAW_BASE}/{owner}/{repo}/{branch}/{path}/{name}",
            }
            for name in names
        ]

    # -- inspection ----------------------------------------------------------

    @property
    def raw_requests(self) -> list[str]:
        return [r.url.path.lstrip("/") for r in self.requests if r.url.host == "raw.test"]

    # -- transport -----------------------------------------------------------

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = request.url

        if url.host == "raw.test":
            key = url.path.lstrip("/")
            if key in self.raw_status:
                return httpx.Response(self.raw_status[key])
            if key in self.raw_files:
                return httpx.Response(200, text=self.raw_files[key])
            return httpx.Response(404, text="404: Not Found")

        parts = url.path.split("/", 5)  # "", "repos", owner, repo, "contents", path
        if len(parts) >= 4 and parts[1] == "repos":
            full_name = f"{parts[2]}/{parts[3]}"
            if len(parts) == 4:
                if full_name in self.repos:
                    return httpx.Response(200, json=self.repos[full_name])
                return httpx.Response(404, json={"message": "Not Found"})
            if parts[4] == "contents":
                path = parts[5] if len(parts) > 5 else ""
                key = f"{full_name}/{path}@{url.params.get('ref')}"
                if key in self.contents_status:
                    return httpx.Response(self.contents_status[key], json={"message": "error"})
                if key in self.contents:
                    return httpx.Response(200, json=self.contents[key])

        return httpx.Response(404, json={"message": "Not Found"})

    def client(self) -> GitHubClient:
        return GitHubClient(
            token="",
            raw_base=RAW_BASE,
            api_base=API_BASE,
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(self.handler)),
        )


@pytest.fixture
def fake_github() -> FakeGitHub:
    return FakeGitHub()


@pytest.fixture
def install_paths(tmp_path) -> InstallPaths:
    return InstallPaths(
        global_root=tmp_path / "home" / ".claude" / "agents",
        local_root=tmp_path / "project" / ".claude" / "agents",
    )
