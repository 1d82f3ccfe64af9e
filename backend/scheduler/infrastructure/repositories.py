"""SQL Repositories — SQLAlchemy implementations of the boundary protocols.

Invariants:
    - Every repository works on the request's AsyncSession; none commits
      (the calling service owns the transaction boundary)
    - Patches are applied as ONE UPDATE statement of the supplied columns
    - Availability is written with a single INSERT ... ON CONFLICT DO UPDATE keyed
      by (user_id, rehearsal_id): concurrent writers converge on one row
    - Notifications are written as one bulk multi-row INSERT
    - Reads after a write use populate_existing so the identity map never
      returns stale rows
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import and_, insert, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from scheduler.core.domain_types import MembershipStatus
from scheduler.core.enforce_schedule import AgendaItemDraft
from scheduler.core.rehearsal_filters import RehearsalFilters
from scheduler.models.agenda_item import AgendaItem
from scheduler.models.attendance import Attendance
from scheduler.models.availability import Availability
from scheduler.models.band import Band
from scheduler.models.band_member import BandMember
from scheduler.models.notification import Notification
from scheduler.models.rehearsal import Rehearsal

_UPSERT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class SqlMembershipRepository:
    """Membership Store queries."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def band_ids_for_user(self, user_id: uuid.UUID) -> list[uuid.UUID]:
        result = await self.db.execute(
            select(BandMember.band_id).where(BandMember.user_id == user_id),
        )
        return list(result.scalars().all())

    async def get(self, band_id: uuid.UUID, user_id: uuid.UUID) -> BandMember | None:
        result = await self.db.execute(
            select(BandMember)
            .where(BandMember.band_id == band_id)
            .where(BandMember.user_id == user_id),
        )
        return result.scalar_one_or_none()

    async def active_member_ids(self, band_id: uuid.UUID) -> list[uuid.UUID]:
        result = await self.db.execute(
            select(BandMember.user_id)
            .where(BandMember.band_id == band_id)
            .where(BandMember.status == MembershipStatus.ACTIVE.value)
            .order_by(BandMember.joined_at),
        )
        return list(result.scalars().all())


class SqlBandRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def exists(self, band_id: uuid.UUID) -> bool:
        result = await self.db.execute(select(Band.id).where(Band.id == band_id))
        return result.scalar_one_or_none() is not None


class SqlRehearsalRepository:
    """Rehearsal persistence — list, detail, create, partial update."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_for_bands(
        self,
        band_ids: list[uuid.UUID],
        filters: RehearsalFilters,
        viewer_id: uuid.UUID,
    ) -> list[tuple[Rehearsal, str | None]]:
        """Rehearsals of band_ids matching filters, paired with the viewer's availability."""
        if not band_ids:
            return []
        query = (
            select(Rehearsal, Availability.status)
            .outerjoin(
                Availability,
                and_(
                    Availability.rehearsal_id == Rehearsal.id,
                    Availability.user_id == viewer_id,
                ),
            )
            .where(Rehearsal.band_id.in_(band_ids))
        )
        if filters.status is not None:
            query = query.where(Rehearsal.status == filters.status.value)
        if filters.start_from is not None:
            query = query.where(Rehearsal.start_time >= filters.start_from)
        if filters.start_to is not None:
            query = query.where(Rehearsal.start_time <= filters.start_to)
        query = query.order_by(Rehearsal.start_time.asc())

        result = await self.db.execute(query)
        return [(row[0], row[1]) for row in result.all()]

    async def get(self, rehearsal_id: uuid.UUID) -> Rehearsal | None:
        result = await self.db.execute(
            select(Rehearsal)
            .where(Rehearsal.id == rehearsal_id)
            .execution_options(populate_existing=True),
        )
        return result.scalar_one_or_none()

    async def get_detail(self, rehearsal_id: uuid.UUID) -> Rehearsal | None:
        """Rehearsal with availability and attendance (and their users) loaded."""
        result = await self.db.execute(
            select(Rehearsal)
            .where(Rehearsal.id == rehearsal_id)
            .options(
                selectinload(Rehearsal.availability).selectinload(Availability.user),
                selectinload(Rehearsal.attendance).selectinload(Attendance.user),
            )
            .execution_options(populate_existing=True),
        )
        return result.scalar_one_or_none()

    async def create(self, fields: dict, items: list[AgendaItemDraft]) -> Rehearsal:
        rehearsal = Rehearsal(
            **fields,
            items=[
                AgendaItem(
                    title=item.title,
                    description=item.description,
                    duration_minutes=item.duration_minutes,
                    order_index=item.order_index,
                )
                for item in items
            ],
        )
        self.db.add(rehearsal)
        await self.db.flush()
        return rehearsal

    async def apply_patch(self, rehearsal_id: uuid.UUID, values: dict) -> Rehearsal | None:
        if values:
            await self.db.execute(
                update(Rehearsal)
                .where(Rehearsal.id == rehearsal_id)
                .values(**values, updated_at=datetime.now(timezone.utc)),
            )
        return await self.get(rehearsal_id)


class SqlAvailabilityRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def upsert_availability(
        self,
        user_id: uuid.UUID,
        rehearsal_id: uuid.UUID,
        status: str,
        responded_at: datetime,
    ) -> Availability:
        """Insert or overwrite the (user_id, rehearsal_id) row in one statement."""
        dialect = self.db.get_bind().dialect.name
        dialect_insert = _UPSERT_INSERTS.get(dialect)
        if dialect_insert is None:
            raise NotImplementedError(f"Upsert not supported for dialect {dialect}")

        stmt = dialect_insert(Availability).values(
            id=uuid.uuid4(),
            user_id=user_id,
            rehearsal_id=rehearsal_id,
            status=status,
            response_time=responded_at,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "rehearsal_id"],
            set_={
                "status": stmt.excluded.status,
                "response_time": stmt.excluded.response_time,
            },
        )
        await self.db.execute(stmt)

        result = await self.db.execute(
            select(Availability)
            .where(Availability.user_id == user_id)
            .where(Availability.rehearsal_id == rehearsal_id)
            .execution_options(populate_existing=True),
        )
        return result.scalar_one()


class SqlNotificationRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def insert_many(self, rows: list[dict]) -> int:
        if not rows:
            return 0
        await self.db.execute(insert(Notification), rows)
        return len(rows)
