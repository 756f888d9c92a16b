"""FastAPI application for the subagents catalog.

Provides REST API endpoints wrapping the subagents package for:
- Catalog lookup, search and the download leaderboard
- GitHub sync of registered sources (manual and scheduled)
- Usage telemetry from the CLI and the website
- Platform statistics

Run with ``uvicorn web.backend.app.main:app``.
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from subagents import __version__
from web.backend.app.routers import stats, subagents, sync, telemetry

app = FastAPI(
    title="subagents API",
    description=(
        "REST API for the subagents catalog. "
        "Provides endpoints for browsing and searching subagents, "
        "syncing them from GitHub and recording usage telemetry."
    ),
    version=__version__,
)

# ---------------------------------------------------------------------------
# CORS middleware (the CLI and the website call from anywhere)
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Include routers
# ---------------------------------------------------------------------------
app.include_router(subagents.router)
app.include_router(sync.router)
app.include_router(telemetry.router)
app.include_router(stats.router)


# ---------------------------------------------------------------------------
# Root and health-check endpoints
# ---------------------------------------------------------------------------


@app.get("/", tags=["meta"])
async def root():
    """Return basic API information."""
    return {
        "name": "subagents API",
        "version": __version__,
        "description": "Catalog of Claude Code subagents",
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


@app.get("/health", tags=["meta"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
