"""Exception hierarchy for subagents.

Every error raised on purpose by this package derives from
``SubagentsError`` so the CLI and the HTTP layer can render a concise,
user-friendly message without a traceback.
"""

from __future__ import annotations


class SubagentsError(Exception):
    """Base exception for all subagents errors."""

    def __init__(self, message: str, details: str | None = None):
        """Initialize the exception.

        Args:
            message: User-friendly error message.
            details: Additional technical details for debugging.
        """
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}\n  Details: {self.details}"
        return self.message


class InvalidIdentifierError(SubagentsError, ValueError):
    """Raised when an identifier is not owner/repo[/name] or a GitHub URL."""


class NotFoundError(SubagentsError):
    """Raised when an artifact cannot be found after the full path search."""

    def __init__(
        self,
        message: str,
        attempted: list[tuple[str, str]] | None = None,
        soft_errors: list[str] | None = None,
    ):
        self.attempted = list(attempted or [])
        self.soft_errors = list(soft_errors or [])
        details = "; ".join(self.soft_errors) if self.soft_errors else None
        super().__init__(message, details)


class ArtifactParseError(SubagentsError, ValueError):
    """Raised when artifact content cannot be parsed."""


class MissingNameError(ArtifactParseError):
    """Raised when an artifact has no ``name`` in its frontmatter."""


class AlreadyInstalledError(SubagentsError):
    """Raised when installing over an existing subagent without force."""


class NotInstalledError(SubagentsError):
    """Raised when removing or updating a subagent that is not installed."""


class GitHubError(SubagentsError):
    """Raised when a GitHub request fails in a way the caller must see."""

    def __init__(self, message: str, status_code: int | None = None, details: str | None = None):
        super().__init__(message, details)
        self.status_code = status_code


class SourceNotFoundError(SubagentsError, LookupError):
    """Raised when a sync source is not registered or not active."""
