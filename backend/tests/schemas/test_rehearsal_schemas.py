"""Rehearsal Schemas — boundary validation of request payloads.

Invariants:
    - RehearsalCreate rejects blank titles and end_time <= start_time
    - RehearsalUpdate.to_patch carries only the fields the client sent
    - Agenda items need a positive duration

Design Decisions:
    - Explicit nulls survive to_patch so the service can reject them by field name
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from pydantic import ValidationError

from scheduler.core.domain_types import RehearsalStatus
from scheduler.schemas.rehearsal import (
    AgendaItemCreate, AvailabilityUpdate, RehearsalCreate, RehearsalUpdate,
)

START = datetime(2026, 10, 1, 18, 0, tzinfo=timezone.utc)


# --- RehearsalCreate ----------------------------------------------------------

def test_create_strips_title():
    body = RehearsalCreate(
        band_id=uuid4(), title="  Run  ", start_time=START,
        end_time=START + timedelta(hours=1),
    )
    assert body.title == "Run"
    assert body.items is None


def test_create_rejects_blank_title():
    with pytest.raises(ValidationError):
        RehearsalCreate(
            band_id=uuid4(), title="   ", start_time=START,
            end_time=START + timedelta(hours=1),
        )


def test_create_rejects_inverted_times():
    with pytest.raises(ValidationError):
        RehearsalCreate(band_id=uuid4(), title="Run", start_time=START, end_time=START)


def test_create_compares_naive_and_aware_times():
    with pytest.raises(ValidationError):
        RehearsalCreate(
            band_id=uuid4(), title="Run", start_time=START,
            end_time=datetime(2026, 10, 1, 17, 0),
        )


def test_agenda_item_requires_positive_duration():
    with pytest.raises(ValidationError):
        AgendaItemCreate(title="Solo", duration_minutes=0)


# --- RehearsalUpdate ----------------------------------------------------------

def test_update_patch_contains_only_sent_fields():
    body = RehearsalUpdate.model_validate({"location": "Hall"})
    assert body.to_patch() == {"location": "Hall"}


def test_update_patch_keeps_explicit_null():
    body = RehearsalUpdate.model_validate({"title": None})
    assert body.to_patch() == {"title": None}


def test_update_patch_status_is_plain_value():
    body = RehearsalUpdate.model_validate({"status": "CANCELED"})
    assert body.status == RehearsalStatus.CANCELED
    assert body.to_patch() == {"status": "CANCELED"}


def test_update_rejects_unknown_status():
    with pytest.raises(ValidationError):
        RehearsalUpdate.model_validate({"status": "POSTPONED"})


def test_update_rejects_inverted_pair_when_both_sent():
    with pytest.raises(ValidationError):
        RehearsalUpdate(start_time=START, end_time=START - timedelta(minutes=1))


# --- AvailabilityUpdate -------------------------------------------------------

def test_availability_accepts_known_status():
    assert AvailabilityUpdate(status="AVAILABLE").status.value == "AVAILABLE"


def test_availability_rejects_unknown_status():
    with pytest.raises(ValidationError):
        AvailabilityUpdate(status="YES")
