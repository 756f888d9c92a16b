"""Telemetry router -- usage events from the CLI and the website."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import ValidationError

from subagents.catalog.events import TelemetryRecorder
from subagents.catalog.store import LocalCatalog
from subagents.github.client import GitHubClient
from subagents.github.locator import ContentLocator
from subagents.install.telemetry import TELEMETRY_EVENTS

from web.backend.app.dependencies import get_catalog, get_github
from web.backend.app.models.api import TelemetryRequest, TelemetryResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/telemetry", tags=["telemetry"])


@router.post("", response_model=TelemetryResponse, summary="Record a usage event")
async def record_event(
    request: Request,
    catalog: LocalCatalog = Depends(get_catalog),
    github: GitHubClient = Depends(get_github),
):
    """Record ``{subagentId, event, metadata}``.

    Only malformed events are rejected; failures while recording are
    logged and still answered with success so clients never retry.
    """
    try:
        payload = TelemetryRequest.model_validate(await request.json())
    except (ValueError, ValidationError):
        logger.warning("Ignoring unreadable telemetry payload")
        return TelemetryResponse()

    if not payload.subagent_id or not payload.event:
        raise HTTPException(
            status_code=400, detail="Missing required fields: subagentId and event"
        )
    if payload.event not in TELEMETRY_EVENTS:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid event type. Must be: {', '.join(TELEMETRY_EVENTS)}",
        )

    recorder = TelemetryRecorder(catalog, ContentLocator(github))
    await recorder.record(payload.subagent_id, payload.event, payload.metadata or {})
    return TelemetryResponse()
