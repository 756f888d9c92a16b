"""Tests for identifier resolution."""

import pytest

from subagents.exceptions import InvalidIdentifierError
from subagents.github.identifier import Identifier, is_github_url, resolve_identifier


def test_three_part_identifier():
    ident = resolve_identifier("acme/agents/code-reviewer")
    assert ident == Identifier("acme", "agents", "code-reviewer")
    assert ident.source == "acme/agents/code-reviewer"


def test_markdown_suffix_is_stripped():
    assert resolve_identifier("acme/agents/code-reviewer.md").name == "code-reviewer"


def test_two_part_identifier_uses_repo_as_name():
    ident = resolve_identifier("acme/test-writer")
    assert ident == Identifier("acme", "test-writer", "test-writer")


def test_blob_url():
    ident = resolve_identifier(
        "https://github.com/acme/agents/blob/main/.claude/agents/code-reviewer.md"
    )
    assert ident == Identifier("acme", "agents", "code-reviewer")


def test_tree_url_uses_last_segment():
    ident = resolve_identifier("https://github.com/acme/agents/tree/dev/agents/api-designer")
    assert ident.name == "api-designer"


def test_repo_url_uses_repo_as_name():
    ident = resolve_identifier("https://github.com/acme/helper")
    assert ident == Identifier("acme", "helper", "helper")


def test_whitespace_is_trimmed():
    assert resolve_identifier("  acme/agents/x  ").name == "x"


@pytest.mark.parametrize(
    "value",
    ["", "   ", "single", "a/b/c/d", "a//c", "/repo/name", "https://github.com/acme"],
)
def test_invalid_identifiers(value):
    with pytest.raises(InvalidIdentifierError):
        resolve_identifier(value)


def test_github_url_detection():
    assert is_github_url("https://github.com/a/b")
    assert is_github_url("http://www.github.com/a/b")
    assert not is_github_url("https://gitlab.com/a/b")
    assert not is_github_url("github.com/a/b")
