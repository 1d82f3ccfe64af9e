"""Band Events — SSE stream of live rehearsal and availability changes for one band.

Invariants:
    - Only band members (or ADMIN) may subscribe; others get 403 before the stream opens
    - Events are delivered in publish order per subscriber
    - A keepalive event is sent after each idle interval
    - The subscription is released when the client disconnects

Design Decisions:
    - Live channel only: nothing is replayed on connect, the rehearsal list
      endpoint is the source of truth for current state
"""

import asyncio
import json
import logging
from typing import AsyncGenerator
from uuid import UUID

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from scheduler.api.deps import get_access_control, get_caller
from scheduler.config import get_settings
from scheduler.core.domain_types import Capability
from scheduler.core.format_events import keepalive_event
from scheduler.core.identity import CallerIdentity
from scheduler.infrastructure.broadcast import BandChannelHub, get_band_hub
from scheduler.services.access_control import AccessControl

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/bands", tags=["bands"])

# Proxies and browsers must not buffer the stream.
_SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
    "Connection": "keep-alive",
}


@router.get("/{band_id}/events")
async def stream_band_events(
    band_id: UUID,
    caller: CallerIdentity = Depends(get_caller),
    access: AccessControl = Depends(get_access_control),
    hub: BandChannelHub = Depends(get_band_hub),
):
    """SSE stream of band changes."""
    await access.require(caller, band_id, Capability.MEMBER)
    keepalive = get_settings().broadcast_keepalive_seconds
    return StreamingResponse(
        band_event_stream(hub, band_id, keepalive),
        media_type="text/event-stream",
        headers=_SSE_HEADERS,
    )


async def band_event_stream(
    hub: BandChannelHub, band_id: UUID, keepalive_seconds: float,
) -> AsyncGenerator[str, None]:
    async with hub.subscribe(band_id) as queue:
        try:
            while True:
                try:
                    event = await asyncio.wait_for(queue.get(), timeout=keepalive_seconds)
                except asyncio.TimeoutError:
                    event = keepalive_event()
                yield _sse_line(event)
        except asyncio.CancelledError:
            logger.info("Client disconnected from band stream", extra={"band_id": band_id})
            raise


def _sse_line(event: dict) -> str:
    return f"data: {json.dumps(event, ensure_ascii=False)}\n\n"
