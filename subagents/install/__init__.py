"""Local installation into the global and project scopes."""
