"""Environment configuration.

Every value can be overridden through the environment; classes that use
these settings also accept explicit arguments so callers (and tests) can
bypass the environment entirely.
"""

from __future__ import annotations

import os
from pathlib import Path

# ---------------------------------------------------------------------------
# GitHub
# ---------------------------------------------------------------------------

GITHUB_TOKEN = os.environ.get("GITHUB_TOKEN", "")
GITHUB_RAW_BASE = os.environ.get(
    "SUBAGENTS_GITHUB_RAW_BASE", "https://raw.githubusercontent.com"
).rstrip("/")
GITHUB_API_BASE = os.environ.get(
    "SUBAGENTS_GITHUB_API_BASE", "https://api.github.com"
).rstrip("/")

HTTP_TIMEOUT = float(os.environ.get("SUBAGENTS_HTTP_TIMEOUT", "15"))

# ---------------------------------------------------------------------------
# Catalog API and telemetry
# ---------------------------------------------------------------------------

API_BASE = os.environ.get("SUBAGENTS_API_BASE", "https://subagents.sh").rstrip("/")
TELEMETRY_URL = f"{API_BASE}/api/telemetry"
TELEMETRY_DISABLED = os.environ.get("SUBAGENTS_TELEMETRY_DISABLED", "").lower() in (
    "1",
    "true",
    "yes",
)

# ---------------------------------------------------------------------------
# Server side
# ---------------------------------------------------------------------------

CATALOG_DIR = Path(
    os.environ.get("SUBAGENTS_CATALOG_DIR", str(Path.home() / ".subagents" / "catalog"))
)
SYNC_SECRET = os.environ.get("SUBAGENTS_SYNC_SECRET", "")
CRON_SECRET = os.environ.get("SUBAGENTS_CRON_SECRET", "")
