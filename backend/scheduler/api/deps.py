"""Request Dependencies — caller identity and per-request service wiring.

Invariants:
    - Caller identity is read from the gateway headers named in settings; a
      missing or malformed user id is a 401, never an anonymous caller
    - Services are built per request on the request's AsyncSession
    - Fan-out gets a session factory, not the request session

Design Decisions:
    - Plain functions as FastAPI dependencies so tests override them with
      app.dependency_overrides (same seam as get_db)
"""

from uuid import UUID

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from scheduler.config import get_settings
from scheduler.core.errors import AuthenticationRequiredError
from scheduler.core.identity import CallerIdentity
from scheduler.infrastructure import database
from scheduler.infrastructure.broadcast import BandChannelHub, get_band_hub
from scheduler.infrastructure.database import get_db
from scheduler.infrastructure.repositories import (
    SqlAvailabilityRepository, SqlBandRepository, SqlMembershipRepository,
    SqlRehearsalRepository,
)
from scheduler.services.access_control import AccessControl
from scheduler.services.availability_reconciler import AvailabilityReconciler
from scheduler.services.notification_fanout import NotificationFanout, SessionScope
from scheduler.services.rehearsal_lifecycle import RehearsalLifecycle


def get_caller(request: Request) -> CallerIdentity:
    settings = get_settings()
    raw_user = request.headers.get(settings.identity_user_header)
    if not raw_user:
        raise AuthenticationRequiredError()
    try:
        user_id = UUID(raw_user.strip())
    except ValueError as e:
        raise AuthenticationRequiredError() from e
    return CallerIdentity.from_raw(
        user_id, request.headers.get(settings.identity_role_header),
    )


def get_session_scope() -> SessionScope:
    """Session factory used for writes outside the request transaction."""
    if not database.db_manager:
        raise RuntimeError("Database not initialized")
    return database.db_manager.session


def get_access_control(db: AsyncSession = Depends(get_db)) -> AccessControl:
    return AccessControl(SqlMembershipRepository(db))


def get_rehearsal_lifecycle(
    db: AsyncSession = Depends(get_db),
    session_scope: SessionScope = Depends(get_session_scope),
    hub: BandChannelHub = Depends(get_band_hub),
) -> RehearsalLifecycle:
    memberships = SqlMembershipRepository(db)
    return RehearsalLifecycle(
        rehearsals=SqlRehearsalRepository(db),
        bands=SqlBandRepository(db),
        memberships=memberships,
        access=AccessControl(memberships),
        fanout=NotificationFanout(session_scope),
        uow=db,
        broadcaster=hub,
    )


def get_availability_reconciler(
    db: AsyncSession = Depends(get_db),
    hub: BandChannelHub = Depends(get_band_hub),
) -> AvailabilityReconciler:
    return AvailabilityReconciler(
        rehearsals=SqlRehearsalRepository(db),
        availability=SqlAvailabilityRepository(db),
        access=AccessControl(SqlMembershipRepository(db)),
        uow=db,
        broadcaster=hub,
    )
