"""Rehearsal Lifecycle — list, get, create and update rehearsals for a caller.

Invariants:
    - Mutations: parse -> authorize -> validate against stored state -> single write
      -> commit -> fan-out -> broadcast
    - Input that fails validation never reaches the store (no partial effects)
    - Create: ValidationError before Unauthorized; Unauthorized before NotFound(band)
    - Get/Update: NotFound before Unauthorized (existence is visible to non-members)
    - Fan-out runs after the primary commit; its failure becomes a warning on the
      outcome, never an exception
    - Any update that sets status CANCELED notifies, with the pre-update title
    - Broadcast is fire-and-forget and never affects the outcome
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable
from uuid import UUID

from scheduler.core.domain_types import (
    Capability, NotificationType, RehearsalStatus, parse_enum,
    parse_identifier, utc_now,
)
from scheduler.core.enforce_schedule import (
    build_agenda, is_cancellation, normalize_patch, validate_time_range,
    validate_title,
)
from scheduler.core.errors import ResourceNotFoundError
from scheduler.core.format_events import rehearsal_event
from scheduler.core.format_notifications import (
    format_cancellation_message, format_created_message,
)
from scheduler.core.identity import CallerIdentity
from scheduler.core.rehearsal_filters import RehearsalFilters, resolve_band_scope
from scheduler.core.repository_protocols import (
    BandBroadcaster, BandRepository, MembershipRepository,
    RehearsalRepository, UnitOfWork,
)
from scheduler.services.access_control import AccessControl
from scheduler.services.notification_fanout import FanoutResult, NotificationFanout

logger = logging.getLogger(__name__)


@dataclass
class RehearsalListing:
    rehearsal: Any
    my_availability: str | None = None


@dataclass
class MutationOutcome:
    """Result of a successful mutation plus non-fatal warnings."""
    rehearsal: Any
    warnings: list[dict] = field(default_factory=list)
    notified: int = 0


class RehearsalLifecycle:
    """Owns the rehearsal state machine for one unit of work."""

    def __init__(
        self,
        rehearsals: RehearsalRepository,
        bands: BandRepository,
        memberships: MembershipRepository,
        access: AccessControl,
        fanout: NotificationFanout,
        uow: UnitOfWork,
        broadcaster: BandBroadcaster | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.rehearsals = rehearsals
        self.bands = bands
        self.memberships = memberships
        self.access = access
        self.fanout = fanout
        self.uow = uow
        self.broadcaster = broadcaster
        self.clock = clock

    # ─── Reads ──────────────────────────────────────────────────

    async def list_rehearsals(
        self, caller: CallerIdentity, filters: RehearsalFilters,
    ) -> list[RehearsalListing]:
        """Rehearsals visible to caller, ordered by start_time ascending."""
        caller_bands = await self.memberships.band_ids_for_user(caller.user_id)
        scope = resolve_band_scope(caller, filters, caller_bands)
        if not scope:
            return []
        rows = await self.rehearsals.list_for_bands(scope, filters, caller.user_id)
        return [
            RehearsalListing(rehearsal=r, my_availability=status)
            for r, status in rows
        ]

    async def get_rehearsal(self, caller: CallerIdentity, rehearsal_id) -> Any:
        rid = parse_identifier(rehearsal_id, "rehearsal_id")
        rehearsal = await self.rehearsals.get_detail(rid)
        if rehearsal is None:
            raise ResourceNotFoundError("Rehearsal", str(rid))
        await self.access.require(caller, rehearsal.band_id, Capability.MEMBER)
        return rehearsal

    # ─── Mutations ──────────────────────────────────────────────

    async def create_rehearsal(
        self,
        caller: CallerIdentity,
        band_id,
        title: str,
        start_time: datetime,
        end_time: datetime,
        location: str | None = None,
        description: str | None = None,
        items: list[dict] | None = None,
    ) -> MutationOutcome:
        bid = parse_identifier(band_id, "band_id")
        clean_title = validate_title(title)
        start, end = validate_time_range(start_time, end_time)
        agenda = build_agenda(items)

        await self.access.require(caller, bid, Capability.MANAGE)
        if not await self.bands.exists(bid):
            raise ResourceNotFoundError("Band", str(bid))

        created = await self.rehearsals.create(
            {
                "band_id": bid,
                "title": clean_title,
                "description": description,
                "start_time": start,
                "end_time": end,
                "location": location,
                "status": RehearsalStatus.SCHEDULED.value,
                "created_by": caller.user_id,
            },
            agenda,
        )
        rehearsal_id = created.id
        await self.uow.commit()
        rehearsal = await self.rehearsals.get(rehearsal_id)
        logger.info(
            "Rehearsal created",
            extra={"band_id": bid, "rehearsal_id": rehearsal_id, "user_id": caller.user_id},
        )

        result = await self.fanout.notify(
            bid, rehearsal_id, NotificationType.UPDATE,
            format_created_message(clean_title),
        )
        self._broadcast(bid, rehearsal_event("created", rehearsal))
        return self._outcome(rehearsal, result)

    async def update_rehearsal(
        self, caller: CallerIdentity, rehearsal_id, patch: dict,
    ) -> MutationOutcome:
        """Apply a partial update; only supplied fields change."""
        rid = parse_identifier(rehearsal_id, "rehearsal_id")
        rehearsal = await self.rehearsals.get(rid)
        if rehearsal is None:
            raise ResourceNotFoundError("Rehearsal", str(rid))
        await self.access.require(caller, rehearsal.band_id, Capability.MANAGE)

        band_id = rehearsal.band_id
        previous_title = rehearsal.title
        previous_status = parse_enum(RehearsalStatus, rehearsal.status, "status")
        values = normalize_patch(
            patch, rehearsal.start_time, rehearsal.end_time, previous_status,
        )

        updated = await self.rehearsals.apply_patch(rid, values)
        await self.uow.commit()
        logger.info(
            f"Rehearsal updated: fields={sorted(values)}",
            extra={"band_id": band_id, "rehearsal_id": rid, "user_id": caller.user_id},
        )

        result = None
        if is_cancellation(values):
            result = await self.fanout.notify(
                band_id, rid, NotificationType.CANCELLATION,
                format_cancellation_message(previous_title),
            )
            self._broadcast(band_id, rehearsal_event("canceled", updated))
        else:
            self._broadcast(band_id, rehearsal_event("updated", updated))
        return self._outcome(updated, result)

    # ─── Helpers ────────────────────────────────────────────────

    def _outcome(self, rehearsal, result: FanoutResult | None) -> MutationOutcome:
        if result is None:
            return MutationOutcome(rehearsal=rehearsal)
        warnings = [] if result.ok else [result.error.to_warning()]
        return MutationOutcome(
            rehearsal=rehearsal, warnings=warnings, notified=result.recipients,
        )

    def _broadcast(self, band_id: UUID, event: dict) -> None:
        if self.broadcaster is None:
            return
        try:
            self.broadcaster.publish(band_id, event)
        except Exception as e:
            logger.warning(
                f"Band broadcast failed: {e}", extra={"band_id": band_id},
            )
