"""Notification Fan-out — durably records one notification per active band member.

Invariants:
    - Audience is the ACTIVE membership set of the band at call time
    - One bulk INSERT per triggering event, in its OWN session and transaction
    - Runs AFTER the primary mutation committed; a failure here never rolls the
      primary change back and never expires the caller's loaded objects
    - Never raises: failures are logged and returned as a NotificationFanoutError
      for the caller to surface as a warning

Design Decisions:
    - Separate session per fan-out: the primary mutation's transaction boundary
      does not include the notification insert
    - Repository factories injected so the store can be swapped in tests
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import AsyncContextManager, Callable
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from scheduler.core.domain_types import NotificationType, utc_now
from scheduler.core.errors import NotificationFanoutError
from scheduler.core.format_notifications import build_notification_rows
from scheduler.core.repository_protocols import (
    MembershipRepository, NotificationRepository,
)
from scheduler.infrastructure.repositories import (
    SqlMembershipRepository, SqlNotificationRepository,
)

logger = logging.getLogger(__name__)

SessionScope = Callable[[], AsyncContextManager[AsyncSession]]


@dataclass(frozen=True)
class FanoutResult:
    recipients: int
    error: NotificationFanoutError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class NotificationFanout:
    """Writes per-recipient notification rows for a rehearsal change."""

    def __init__(
        self,
        session_scope: SessionScope,
        memberships_factory: Callable[[AsyncSession], MembershipRepository] = SqlMembershipRepository,
        notifications_factory: Callable[[AsyncSession], NotificationRepository] = SqlNotificationRepository,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.session_scope = session_scope
        self.memberships_factory = memberships_factory
        self.notifications_factory = notifications_factory
        self.clock = clock

    async def notify(
        self,
        band_id: UUID,
        rehearsal_id: UUID,
        notification_type: NotificationType,
        message: str,
    ) -> FanoutResult:
        try:
            written = await self._record(band_id, rehearsal_id, notification_type, message)
        except Exception as e:
            error = NotificationFanoutError(str(rehearsal_id), type(e).__name__)
            logger.warning(
                f"Notification fan-out failed: {e}",
                extra={
                    "band_id": band_id,
                    "rehearsal_id": rehearsal_id,
                    "notification_type": notification_type.value,
                    "error_code": error.code,
                },
            )
            return FanoutResult(recipients=0, error=error)

        logger.info(
            "Notifications recorded",
            extra={
                "band_id": band_id,
                "rehearsal_id": rehearsal_id,
                "notification_type": notification_type.value,
                "recipients": written,
            },
        )
        return FanoutResult(recipients=written)

    async def _record(
        self,
        band_id: UUID,
        rehearsal_id: UUID,
        notification_type: NotificationType,
        message: str,
    ) -> int:
        async with self.session_scope() as db:
            try:
                recipients = await self.memberships_factory(db).active_member_ids(band_id)
                rows = build_notification_rows(
                    recipients, rehearsal_id, notification_type, message, self.clock(),
                )
                written = await self.notifications_factory(db).insert_many(rows)
                await db.commit()
            except BaseException:
                await db.rollback()
                raise
            return written
