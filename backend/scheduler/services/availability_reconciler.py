"""Availability Reconciler — idempotent per-user availability declarations.

Invariants:
    - status in {AVAILABLE, UNAVAILABLE, MAYBE}, else ValidationError
    - NotFound before Unauthorized; plain membership suffices (no manage capability)
    - Exactly one row per (user, rehearsal): a single atomic upsert, never
      check-then-write; repeated or racing calls overwrite, they never conflict
    - response_time is the instant of the latest write
"""

import logging
from datetime import datetime
from typing import Any, Callable

from scheduler.core.domain_types import (
    AvailabilityStatus, Capability, parse_enum, parse_identifier, utc_now,
)
from scheduler.core.errors import ResourceNotFoundError
from scheduler.core.format_events import availability_event
from scheduler.core.identity import CallerIdentity
from scheduler.core.repository_protocols import (
    AvailabilityRepository, BandBroadcaster, RehearsalRepository, UnitOfWork,
)
from scheduler.services.access_control import AccessControl

logger = logging.getLogger(__name__)


class AvailabilityReconciler:
    def __init__(
        self,
        rehearsals: RehearsalRepository,
        availability: AvailabilityRepository,
        access: AccessControl,
        uow: UnitOfWork,
        broadcaster: BandBroadcaster | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.rehearsals = rehearsals
        self.availability = availability
        self.access = access
        self.uow = uow
        self.broadcaster = broadcaster
        self.clock = clock

    async def set_availability(
        self, caller: CallerIdentity, rehearsal_id, status,
    ) -> Any:
        """Declare the caller's availability for a rehearsal (insert or overwrite)."""
        rid = parse_identifier(rehearsal_id, "rehearsal_id")
        declared = parse_enum(AvailabilityStatus, status, "status")

        rehearsal = await self.rehearsals.get(rid)
        if rehearsal is None:
            raise ResourceNotFoundError("Rehearsal", str(rid))
        band_id = rehearsal.band_id
        await self.access.require(caller, band_id, Capability.MEMBER)

        record = await self.availability.upsert_availability(
            caller.user_id, rid, declared.value, self.clock(),
        )
        await self.uow.commit()
        logger.info(
            f"Availability set to {declared.value}",
            extra={"band_id": band_id, "rehearsal_id": rid, "user_id": caller.user_id},
        )

        if self.broadcaster is not None:
            try:
                self.broadcaster.publish(band_id, availability_event(band_id, record))
            except Exception as e:
                logger.warning(f"Band broadcast failed: {e}", extra={"band_id": band_id})
        return record
