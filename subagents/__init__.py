"""subagents: discover, sync and install Claude Code subagents from GitHub."""

__version__ = "0.1.0"
