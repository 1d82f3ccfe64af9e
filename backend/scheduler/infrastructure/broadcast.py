"""Band Channel Hub — in-process fan-out of live rehearsal changes per band.

Invariants:
    - publish() never raises and never blocks the request path
    - Each subscriber owns a bounded queue; when it is full the event is dropped
      for that subscriber only (and logged)
    - Subscriptions are keyed by band_id; unsubscribe is idempotent

Design Decisions:
    - asyncio.Queue per subscriber: single-process uvicorn, no external broker.
      Multi-worker deployments need a shared channel in its place
"""

import asyncio
import logging
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import AsyncGenerator
from uuid import UUID

logger = logging.getLogger(__name__)


class BandChannelHub:
    """Broadcast to subscribers of a band channel, fire-and-forget."""

    def __init__(self, queue_size: int = 100):
        self._queue_size = queue_size
        self._subscribers: dict[UUID, set[asyncio.Queue]] = defaultdict(set)

    def subscriber_count(self, band_id: UUID) -> int:
        return len(self._subscribers.get(band_id, ()))

    def publish(self, band_id: UUID, event: dict) -> None:
        for queue in list(self._subscribers.get(band_id, ())):
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                logger.warning(
                    "Band channel subscriber queue full, event dropped",
                    extra={"band_id": band_id},
                )

    @asynccontextmanager
    async def subscribe(self, band_id: UUID) -> AsyncGenerator[asyncio.Queue, None]:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._queue_size)
        self._subscribers[band_id].add(queue)
        try:
            yield queue
        finally:
            subscribers = self._subscribers.get(band_id)
            if subscribers is not None:
                subscribers.discard(queue)
                if not subscribers:
                    self._subscribers.pop(band_id, None)


# Singleton (initialized on startup)
band_hub: BandChannelHub = BandChannelHub()


def init_broadcast(queue_size: int) -> BandChannelHub:
    global band_hub
    band_hub = BandChannelHub(queue_size=queue_size)
    return band_hub


def get_band_hub() -> BandChannelHub:
    """FastAPI dependency for the band channel hub."""
    return band_hub
