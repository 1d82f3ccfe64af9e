"""Rehearsal Lifecycle — create, update, cancel and read through the service layer.

Tests cover:
    - create persists rehearsal + ordered agenda, notifies every ACTIVE member
    - create authorization: member and outsider rejected, admin allowed
    - create validation precedes authorization; unknown band is NotFound
    - update applies only supplied fields; resulting time pair re-validated
    - location-only update writes zero notifications
    - cancel notifies with the pre-update title; re-cancel notifies again
    - terminal statuses reject status changes but allow other edits
    - get/update: NotFound before Unauthorized
    - fan-out failure surfaces as a warning, primary change stays committed
    - broadcast events published for create, update and cancel
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from scheduler.core.domain_types import RehearsalStatus
from scheduler.core.errors import (
    ResourceNotFoundError, UnauthorizedError, ValidationError,
)
from scheduler.models import Notification, Rehearsal
from scheduler.services.notification_fanout import NotificationFanout

START = datetime(2026, 4, 10, 18, 0, tzinfo=timezone.utc)
END = START + timedelta(hours=2)


async def _create(lifecycle, roster, caller=None, **overrides):
    kwargs = {
        "band_id": roster.band.id,
        "title": "Spring set run-through",
        "start_time": START,
        "end_time": END,
        "location": "Studio B",
    }
    kwargs.update(overrides)
    return await lifecycle.create_rehearsal(
        caller or roster.caller(roster.manager), **kwargs,
    )


async def _notifications(test_db, rehearsal_id):
    result = await test_db.execute(
        select(Notification)
        .where(Notification.rehearsal_id == rehearsal_id)
        .execution_options(populate_existing=True),
    )
    return list(result.scalars().all())


# ─── create ─────────────────────────────────────────────────────

async def test_create_persists_rehearsal_with_ordered_agenda(lifecycle, roster):
    outcome = await _create(
        lifecycle, roster,
        items=[
            {"title": "Warm-up", "duration_minutes": 15},
            {"title": "New song", "duration_minutes": 45, "description": "verse 2"},
        ],
    )
    rehearsal = outcome.rehearsal
    assert rehearsal.status == RehearsalStatus.SCHEDULED.value
    assert rehearsal.created_by == roster.manager.id
    assert [i.title for i in rehearsal.items] == ["Warm-up", "New song"]
    assert [i.order_index for i in rehearsal.items] == [0, 1]
    assert outcome.warnings == []


async def test_create_notifies_every_active_member(lifecycle, roster, test_db):
    outcome = await _create(lifecycle, roster)

    rows = await _notifications(test_db, outcome.rehearsal.id)
    assert outcome.notified == 2
    assert {r.user_id for r in rows} == {roster.manager.id, roster.member.id}
    assert all(r.type == "UPDATE" for r in rows)
    assert all(r.message == "New rehearsal scheduled: Spring set run-through" for r in rows)
    assert all(r.read is False for r in rows)


async def test_create_strips_title(lifecycle, roster):
    outcome = await _create(lifecycle, roster, title="  Groove session  ")
    assert outcome.rehearsal.title == "Groove session"


async def test_create_rejects_plain_member(lifecycle, roster, test_db):
    with pytest.raises(UnauthorizedError):
        await _create(lifecycle, roster, caller=roster.caller(roster.member))
    count = await test_db.scalar(select(func.count()).select_from(Rehearsal))
    assert count == 0


async def test_create_rejects_manager_of_another_band(lifecycle, roster):
    with pytest.raises(UnauthorizedError):
        await _create(lifecycle, roster, caller=roster.caller(roster.outsider))


async def test_create_allows_admin_without_membership(lifecycle, roster):
    outcome = await _create(lifecycle, roster, caller=roster.caller(roster.admin))
    assert outcome.rehearsal.created_by == roster.admin.id


async def test_create_validation_precedes_authorization(lifecycle, roster):
    with pytest.raises(ValidationError) as exc_info:
        await _create(
            lifecycle, roster, caller=roster.caller(roster.member),
            end_time=START,
        )
    assert exc_info.value.fields == ["end_time"]


async def test_create_rejects_blank_agenda_title(lifecycle, roster):
    with pytest.raises(ValidationError) as exc_info:
        await _create(lifecycle, roster, items=[{"title": " ", "duration_minutes": 5}])
    assert exc_info.value.fields == ["items.0.title"]


async def test_create_for_unknown_band_as_admin_is_not_found(lifecycle, roster):
    with pytest.raises(ResourceNotFoundError):
        await _create(
            lifecycle, roster, caller=roster.caller(roster.admin), band_id=uuid4(),
        )


async def test_create_malformed_band_id_is_validation_error(lifecycle, roster):
    with pytest.raises(ValidationError) as exc_info:
        await _create(lifecycle, roster, band_id="not-a-uuid")
    assert exc_info.value.fields == ["band_id"]


async def test_create_publishes_band_event(lifecycle, roster, hub):
    async with hub.subscribe(roster.band.id) as queue:
        outcome = await _create(lifecycle, roster)
        event = queue.get_nowait()
    assert event["type"] == "rehearsal_created"
    assert event["data"]["rehearsal_id"] == str(outcome.rehearsal.id)


# ─── update ─────────────────────────────────────────────────────

async def test_update_changes_only_supplied_fields(lifecycle, roster):
    created = (await _create(lifecycle, roster)).rehearsal
    outcome = await lifecycle.update_rehearsal(
        roster.caller(roster.manager), created.id, {"title": "Final run"},
    )
    updated = outcome.rehearsal
    assert updated.title == "Final run"
    assert updated.location == "Studio B"
    assert updated.status == RehearsalStatus.SCHEDULED.value


async def test_update_location_only_writes_no_notifications(lifecycle, roster, test_db):
    created = (await _create(lifecycle, roster)).rehearsal
    before = len(await _notifications(test_db, created.id))

    outcome = await lifecycle.update_rehearsal(
        roster.caller(roster.manager), created.id, {"location": "Garage"},
    )

    assert outcome.rehearsal.location == "Garage"
    assert outcome.notified == 0
    assert len(await _notifications(test_db, created.id)) == before


async def test_update_revalidates_resulting_time_pair(lifecycle, roster):
    created = (await _create(lifecycle, roster)).rehearsal
    with pytest.raises(ValidationError) as exc_info:
        await lifecycle.update_rehearsal(
            roster.caller(roster.manager), created.id,
            {"start_time": END + timedelta(minutes=1)},
        )
    assert exc_info.value.fields == ["end_time"]


async def test_update_rejects_null_title(lifecycle, roster):
    created = (await _create(lifecycle, roster)).rehearsal
    with pytest.raises(ValidationError):
        await lifecycle.update_rehearsal(
            roster.caller(roster.manager), created.id, {"title": None},
        )


async def test_update_missing_rehearsal_is_not_found_even_for_outsider(lifecycle, roster):
    with pytest.raises(ResourceNotFoundError):
        await lifecycle.update_rehearsal(
            roster.caller(roster.outsider), uuid4(), {"title": "x"},
        )


async def test_update_by_plain_member_is_unauthorized(lifecycle, roster):
    created = (await _create(lifecycle, roster)).rehearsal
    with pytest.raises(UnauthorizedError):
        await lifecycle.update_rehearsal(
            roster.caller(roster.member), created.id, {"title": "Mine now"},
        )


async def test_update_publishes_updated_event(lifecycle, roster, hub):
    created = (await _create(lifecycle, roster)).rehearsal
    async with hub.subscribe(roster.band.id) as queue:
        await lifecycle.update_rehearsal(
            roster.caller(roster.manager), created.id, {"location": "Garage"},
        )
        event = queue.get_nowait()
    assert event["type"] == "rehearsal_updated"


# ─── cancel ─────────────────────────────────────────────────────

async def test_cancel_notifies_with_previous_title(lifecycle, roster, test_db):
    created = (await _create(lifecycle, roster, title="Old title")).rehearsal

    outcome = await lifecycle.update_rehearsal(
        roster.caller(roster.manager), created.id,
        {"title": "New title", "status": "CANCELED"},
    )

    assert outcome.rehearsal.status == RehearsalStatus.CANCELED.value
    assert outcome.notified == 2
    rows = await _notifications(test_db, created.id)
    cancellations = [r for r in rows if r.type == "CANCELLATION"]
    assert len(cancellations) == 2
    assert {r.message for r in cancellations} == {"Rehearsal canceled: Old title"}


async def test_recancel_notifies_again(lifecycle, roster, test_db):
    created = (await _create(lifecycle, roster)).rehearsal
    caller = roster.caller(roster.manager)
    await lifecycle.update_rehearsal(caller, created.id, {"status": "CANCELED"})

    outcome = await lifecycle.update_rehearsal(caller, created.id, {"status": "CANCELED"})

    assert outcome.notified == 2
    assert outcome.rehearsal.status == RehearsalStatus.CANCELED.value
    rows = await _notifications(test_db, created.id)
    assert len([r for r in rows if r.type == "CANCELLATION"]) == 4


async def test_canceled_rehearsal_cannot_be_rescheduled(lifecycle, roster):
    created = (await _create(lifecycle, roster)).rehearsal
    caller = roster.caller(roster.manager)
    await lifecycle.update_rehearsal(caller, created.id, {"status": "CANCELED"})

    with pytest.raises(ValidationError) as exc_info:
        await lifecycle.update_rehearsal(caller, created.id, {"status": "SCHEDULED"})
    assert exc_info.value.fields == ["status"]


async def test_completed_rehearsal_still_accepts_field_edits(lifecycle, roster):
    created = (await _create(lifecycle, roster)).rehearsal
    caller = roster.caller(roster.manager)
    await lifecycle.update_rehearsal(caller, created.id, {"status": "COMPLETED"})

    outcome = await lifecycle.update_rehearsal(
        caller, created.id, {"description": "Went well"},
    )
    assert outcome.rehearsal.description == "Went well"
    assert outcome.rehearsal.status == RehearsalStatus.COMPLETED.value


async def test_cancel_publishes_canceled_event(lifecycle, roster, hub):
    created = (await _create(lifecycle, roster)).rehearsal
    async with hub.subscribe(roster.band.id) as queue:
        await lifecycle.update_rehearsal(
            roster.caller(roster.manager), created.id, {"status": "CANCELED"},
        )
        event = queue.get_nowait()
    assert event["type"] == "rehearsal_canceled"
    assert event["data"]["status"] == "CANCELED"


# ─── fan-out failure ────────────────────────────────────────────

class _BrokenNotifications:
    def __init__(self, db):
        pass

    async def insert_many(self, rows):
        raise RuntimeError("notification store offline")


async def test_fanout_failure_is_a_warning_not_an_error(
    lifecycle, roster, test_db, test_session_factory,
):
    lifecycle.fanout = NotificationFanout(
        test_session_factory, notifications_factory=_BrokenNotifications,
    )

    outcome = await _create(lifecycle, roster)

    assert outcome.notified == 0
    assert [w["code"] for w in outcome.warnings] == ["NOTIFICATION_FANOUT_FAILED"]
    stored = await test_db.scalar(
        select(func.count()).select_from(Rehearsal)
        .where(Rehearsal.id == outcome.rehearsal.id),
    )
    assert stored == 1
    assert await _notifications(test_db, outcome.rehearsal.id) == []


# ─── get ────────────────────────────────────────────────────────

async def test_get_returns_detail_for_member(lifecycle, roster):
    created = (await _create(lifecycle, roster)).rehearsal
    rehearsal = await lifecycle.get_rehearsal(roster.caller(roster.member), created.id)
    assert rehearsal.id == created.id
    assert rehearsal.availability == []
    assert rehearsal.attendance == []


async def test_get_allows_inactive_member(lifecycle, roster):
    created = (await _create(lifecycle, roster)).rehearsal
    rehearsal = await lifecycle.get_rehearsal(roster.caller(roster.inactive), created.id)
    assert rehearsal.id == created.id


async def test_get_rejects_outsider(lifecycle, roster):
    created = (await _create(lifecycle, roster)).rehearsal
    with pytest.raises(UnauthorizedError):
        await lifecycle.get_rehearsal(roster.caller(roster.outsider), created.id)


async def test_get_missing_rehearsal_is_not_found_for_outsider(lifecycle, roster):
    with pytest.raises(ResourceNotFoundError):
        await lifecycle.get_rehearsal(roster.caller(roster.outsider), uuid4())
