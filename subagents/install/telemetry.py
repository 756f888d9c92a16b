"""Fire-and-forget usage telemetry.

``send`` schedules the POST on the running event loop and returns
immediately; nothing about the request (network errors, non-2xx answers,
timeouts) ever reaches the caller. ``flush`` gives in-flight sends a short
grace period so a CLI process does not cancel them on exit.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Literal, Optional

import httpx

from subagents import __version__, config

logger = logging.getLogger(__name__)

TelemetryEvent = Literal["download", "view", "copy"]
TELEMETRY_EVENTS = ("download", "view", "copy")


class TelemetryClient:
    """Posts ``{subagentId, event, metadata}`` to the catalog API."""

    def __init__(
        self,
        url: str | None = None,
        enabled: bool | None = None,
        timeout: float = 5.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.url = url or config.TELEMETRY_URL
        self.enabled = (not config.TELEMETRY_DISABLED) if enabled is None else enabled
        self.timeout = timeout
        self._http = http_client
        self._pending: set[asyncio.Task] = set()

    def send(
        self,
        subagent_id: str,
        event: TelemetryEvent,
        metadata: Optional[dict[str, Any]] = None,
    ) -> None:
        """Schedule a telemetry POST. Never raises, never blocks."""
        if not self.enabled:
            return
        payload = {
            "subagentId": subagent_id,
            "event": event,
            "metadata": {**(metadata or {}), "cli": True, "version": __version__},
        }
        try:
            task = asyncio.get_running_loop().create_task(self._post(payload))
        except RuntimeError:
            # No running loop: there is nothing to attach a detached send to.
            logger.debug("Telemetry skipped for %s: no running event loop", subagent_id)
            return
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _post(self, payload: dict[str, Any]) -> None:
        try:
            if self._http is not None:
                resp = await self._http.post(self.url, json=payload, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    resp = await client.post(self.url, json=payload)
            if not resp.is_success:
                logger.debug("Telemetry rejected with HTTP %s", resp.status_code)
        except Exception as exc:
            logger.debug("Telemetry failed: %s", exc)

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def flush(self, timeout: float = 2.0) -> None:
        """Wait up to ``timeout`` seconds for in-flight sends, then give up."""
        if not self._pending:
            return
        _, not_done = await asyncio.wait(set(self._pending), timeout=timeout)
        for task in not_done:
            task.cancel()
