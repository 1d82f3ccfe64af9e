"""Service test fixtures — async DB, seeded band roster and FastAPI test client.

Invariants:
    - Every test gets a fresh SQLite database file under tmp_path
    - get_db dependency overridden to use the test session factory
    - Notification fan-out opens its own sessions from the same factory
    - db_manager patched so readiness probes hit the test database
    - Each client gets a fresh BandChannelHub

Design Decisions:
    - File-backed SQLite with NullPool: each session gets its own connection,
      so the fan-out session is really separate from the request session
    - Caller identity travels as headers, exactly as the gateway sends it
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from uuid import UUID

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.pool import NullPool

from scheduler.api.deps import get_session_scope
from scheduler.core.domain_types import GlobalRole
from scheduler.core.identity import CallerIdentity
from scheduler.db.base import Base
from scheduler.infrastructure.broadcast import BandChannelHub, get_band_hub
from scheduler.infrastructure.database import get_db, DatabaseSessionManager
from scheduler.infrastructure.repositories import (
    SqlAvailabilityRepository, SqlBandRepository, SqlMembershipRepository,
    SqlRehearsalRepository,
)
from scheduler.models import Band, BandMember, User
from scheduler.services.access_control import AccessControl
from scheduler.services.availability_reconciler import AvailabilityReconciler
from scheduler.services.notification_fanout import NotificationFanout
from scheduler.services.rehearsal_lifecycle import RehearsalLifecycle
import scheduler.infrastructure.database as db_module
from scheduler.main import app

FIXED_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
async def test_engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'scheduler.db'}",
        echo=False, poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


# ─── Seeded roster ──────────────────────────────────────────────

@dataclass
class Roster:
    band: Band
    other_band: Band
    manager: User
    member: User
    inactive: User
    outsider: User
    admin: User

    def caller(self, user: User) -> CallerIdentity:
        role = GlobalRole.ADMIN if user is self.admin else GlobalRole.USER
        return CallerIdentity(user_id=user.id, role=role)


def _user(email: str, first: str, role: str = "USER") -> User:
    return User(email=email, first_name=first, last_name="Test", role=role)


@pytest.fixture
async def roster(test_db) -> Roster:
    """Band with a manager, an active member and an inactive member.

    The outsider belongs only to other_band; the admin belongs to no band.
    """
    band = Band(name="The Rehearsals")
    other_band = Band(name="Other Band")
    manager = _user("manager@example.com", "Mara")
    member = _user("member@example.com", "Milo")
    inactive = _user("inactive@example.com", "Ines")
    outsider = _user("outsider@example.com", "Otto")
    admin = _user("admin@example.com", "Ada", role="ADMIN")
    test_db.add_all([band, other_band, manager, member, inactive, outsider, admin])
    await test_db.flush()

    joined = FIXED_NOW - timedelta(days=30)
    test_db.add_all([
        BandMember(band_id=band.id, user_id=manager.id, role="BAND_MANAGER",
                   status="ACTIVE", joined_at=joined),
        BandMember(band_id=band.id, user_id=member.id, role="MEMBER",
                   status="ACTIVE", joined_at=joined + timedelta(minutes=1)),
        BandMember(band_id=band.id, user_id=inactive.id, role="MEMBER",
                   status="INACTIVE", joined_at=joined + timedelta(minutes=2)),
        BandMember(band_id=other_band.id, user_id=outsider.id, role="BAND_MANAGER",
                   status="ACTIVE", joined_at=joined),
    ])
    await test_db.commit()
    return Roster(band, other_band, manager, member, inactive, outsider, admin)


# ─── Services wired on the test database ────────────────────────

@pytest.fixture
def hub() -> BandChannelHub:
    return BandChannelHub(queue_size=10)


@pytest.fixture
def fanout(test_session_factory) -> NotificationFanout:
    return NotificationFanout(test_session_factory, clock=lambda: FIXED_NOW)


@pytest.fixture
def lifecycle(test_db, fanout, hub) -> RehearsalLifecycle:
    memberships = SqlMembershipRepository(test_db)
    return RehearsalLifecycle(
        rehearsals=SqlRehearsalRepository(test_db),
        bands=SqlBandRepository(test_db),
        memberships=memberships,
        access=AccessControl(memberships),
        fanout=fanout,
        uow=test_db,
        broadcaster=hub,
    )


@pytest.fixture
def reconciler(test_db, hub) -> AvailabilityReconciler:
    return AvailabilityReconciler(
        rehearsals=SqlRehearsalRepository(test_db),
        availability=SqlAvailabilityRepository(test_db),
        access=AccessControl(SqlMembershipRepository(test_db)),
        uow=test_db,
        broadcaster=hub,
        clock=lambda: FIXED_NOW,
    )


# ─── HTTP client ────────────────────────────────────────────────

def _identity_headers(user_id: UUID, role: str | None = None) -> dict:
    """Identity headers as set by the authenticating gateway."""
    headers = {"X-User-Id": str(user_id)}
    if role:
        headers["X-User-Role"] = role
    return headers


@pytest.fixture
def as_user():
    return _identity_headers


@pytest.fixture
async def client(test_engine, test_session_factory, hub):
    """FastAPI test client with DB, fan-out scope and hub overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_scope] = lambda: test_session_factory
    app.dependency_overrides[get_band_hub] = lambda: hub

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager
