"""
NewsNext Backend — GA4 Analytics Forwarding
============================================

What:  Sends server-side events to Google Analytics 4 through the
       Measurement Protocol (`POST /mp/collect`).
Who:   AdService (ad impressions / clicks) and the /analytics/track relay.

Fire-and-forget:
    Tracking must never slow down or fail the request that triggered it.
    `dispatch()` schedules the HTTP call with `asyncio.create_task` and
    returns immediately. Tasks are kept in a set until done (the event loop
    only holds weak references), failures are logged from the done
    callback, and `drain()` lets the lifespan wait for stragglers on
    shutdown.
"""

import asyncio
import logging
import uuid
from typing import Any, Dict, Optional, Set

import httpx

from newsnext.config import settings
from newsnext.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)

SERVER_CLIENT_ID = "newsnext-backend"


class AnalyticsService:
    def __init__(self) -> None:
        self._pending: Set[asyncio.Task] = set()

    @property
    def is_configured(self) -> bool:
        return bool(settings.ga4_measurement_id and settings.ga4_api_secret)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def send_event(
        self,
        name: str,
        params: Dict[str, Any],
        client_id: Optional[str] = None,
    ) -> bool:
        """
        Send one event and wait for GA4 to accept it.

        Returns False when GA4 is not configured.

        Raises:
            ExternalServiceError: network failure or a non-2xx answer.
        """
        if not self.is_configured:
            logger.debug("GA4 not configured; dropping event %s", name)
            return False

        body = {
            "client_id": client_id or SERVER_CLIENT_ID,
            "events": [{"name": name, "params": params}],
        }
        query = {
            "measurement_id": settings.ga4_measurement_id,
            "api_secret": settings.ga4_api_secret,
        }
        try:
            async with httpx.AsyncClient(timeout=settings.ga4_timeout_seconds) as client:
                response = await client.post(settings.ga4_endpoint, params=query, json=body)
        except httpx.HTTPError as e:
            raise ExternalServiceError(
                message="GA4 is unreachable",
                service="ga4",
                context={"event": name, "error": str(e)},
            )

        if response.status_code >= 300:
            raise ExternalServiceError(
                message="GA4 rejected the event",
                service="ga4",
                context={"event": name, "status_code": response.status_code},
            )
        return True

    def dispatch(
        self,
        name: str,
        params: Dict[str, Any],
        client_id: Optional[str] = None,
    ) -> Optional[asyncio.Task]:
        """Schedule `send_event` without awaiting it; returns the task (None if GA4 is off)."""
        if not self.is_configured:
            return None

        task = asyncio.create_task(
            self.send_event(name, params, client_id),
            name=f"ga4:{name}:{uuid.uuid4().hex[:8]}",
        )
        self._pending.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Failed to send GA4 event (%s): %s", task.get_name(), exc)

    async def drain(self, timeout: float = 5.0) -> None:
        """Wait (bounded) for in-flight events; used on shutdown."""
        if not self._pending:
            return
        done, pending = await asyncio.wait(set(self._pending), timeout=timeout)
        for task in pending:
            task.cancel()
        if pending:
            logger.warning("Cancelled %d GA4 event(s) still in flight at shutdown", len(pending))

    # ── Ad events ─────────────────────────────────────────────────────────

    def track_ad_impression(self, ad_id: str, title: str) -> Optional[asyncio.Task]:
        return self.dispatch("ad_impression", {"ad_id": ad_id, "ad_title": title})

    def track_ad_click(self, ad_id: str, title: str) -> Optional[asyncio.Task]:
        return self.dispatch("ad_click", {"ad_id": ad_id, "ad_title": title})


analytics_service = AnalyticsService()
