"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection
    - upsert_availability is ONE atomic storage primitive, never check-then-write

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async in Protocol: boundary methods are async because implementations do IO,
      but core pure functions that USE these protocols are never async themselves
"""

from datetime import datetime
from typing import Any, Protocol
from uuid import UUID

from scheduler.core.enforce_access import MembershipLike
from scheduler.core.enforce_schedule import AgendaItemDraft
from scheduler.core.rehearsal_filters import RehearsalFilters


class RehearsalLike(Protocol):
    """Structural contract for rehearsal objects handed to services."""
    id: UUID
    band_id: UUID
    title: str
    start_time: datetime
    end_time: datetime
    status: str


class MembershipRepository(Protocol):
    """Contract for membership lookups — implemented by shell."""
    async def band_ids_for_user(self, user_id: UUID) -> list[UUID]: ...
    async def get(self, band_id: UUID, user_id: UUID) -> MembershipLike | None: ...
    async def active_member_ids(self, band_id: UUID) -> list[UUID]: ...


class BandRepository(Protocol):
    async def exists(self, band_id: UUID) -> bool: ...


class RehearsalRepository(Protocol):
    """Contract for rehearsal persistence — implemented by shell."""
    async def list_for_bands(
        self, band_ids: list[UUID], filters: RehearsalFilters, viewer_id: UUID,
    ) -> list[tuple[Any, str | None]]: ...
    async def get(self, rehearsal_id: UUID) -> RehearsalLike | None: ...
    async def get_detail(self, rehearsal_id: UUID) -> RehearsalLike | None: ...
    async def create(
        self, fields: dict, items: list[AgendaItemDraft],
    ) -> RehearsalLike: ...
    async def apply_patch(self, rehearsal_id: UUID, values: dict) -> RehearsalLike: ...


class AvailabilityRepository(Protocol):
    """Contract for availability persistence — implemented by shell."""
    async def upsert_availability(
        self, user_id: UUID, rehearsal_id: UUID, status: str, responded_at: datetime,
    ) -> Any: ...


class NotificationRepository(Protocol):
    """Contract for notification persistence — implemented by shell."""
    async def insert_many(self, rows: list[dict]) -> int: ...


class UnitOfWork(Protocol):
    """Transaction boundary of one request."""
    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...


class BandBroadcaster(Protocol):
    """Fire-and-forget live update channel keyed by band_id."""
    def publish(self, band_id: UUID, event: dict) -> None: ...
