"""subagents catalog web service."""
