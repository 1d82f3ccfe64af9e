"""Database error translation and session rollback behavior.

Tests cover:
    - IntegrityError -> ConflictError (409)
    - pool/builtin timeouts, OperationalError and DBAPIError -> TransientStorageError (503)
    - session() re-raises scheduler errors untouched and maps SQLAlchemy errors
"""

import pytest
from sqlalchemy.exc import (
    DBAPIError, IntegrityError, OperationalError, TimeoutError as PoolTimeoutError,
)

from scheduler.core.errors import (
    ConflictError, ResourceNotFoundError, TransientStorageError,
)
from scheduler.infrastructure.database import DatabaseSessionManager, translate_db_error


def _orig():
    return Exception("driver says no")


def test_integrity_error_is_conflict():
    err = translate_db_error(IntegrityError("INSERT", {}, _orig()))
    assert isinstance(err, ConflictError)
    assert err.http_status == 409


@pytest.mark.parametrize("exc,operation", [
    (PoolTimeoutError("pool exhausted"), "timeout"),
    (TimeoutError(), "timeout"),
    (OperationalError("SELECT 1", {}, _orig()), "execute"),
    (DBAPIError("SELECT 1", {}, _orig()), "query"),
    (RuntimeError("other"), "unknown"),
])
def test_transient_failures(exc, operation):
    err = translate_db_error(exc)
    assert isinstance(err, TransientStorageError)
    assert err.http_status == 503
    assert err.operation == operation


@pytest.fixture
async def manager(tmp_path):
    mgr = DatabaseSessionManager(f"sqlite+aiosqlite:///{tmp_path / 'db.sqlite'}")
    yield mgr
    await mgr.close()


async def test_scheduler_errors_pass_through(manager):
    with pytest.raises(ResourceNotFoundError):
        async with manager.session():
            raise ResourceNotFoundError("Rehearsal", "r1")


async def test_sqlalchemy_errors_are_translated(manager):
    with pytest.raises(TransientStorageError):
        async with manager.session():
            raise OperationalError("SELECT 1", {}, _orig())


async def test_health_check_against_sqlite(manager):
    assert await manager.health_check() is True
