"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - UserId wraps the caller UUID carried by the identity
    - Malformed identifiers raise ValidationError, never NotFound
    - All valid states encoded as Enums — no raw string matching
    - All instants handled in UTC (naive inputs are taken as UTC)

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from datetime import datetime, timezone
from enum import Enum
from typing import NewType
from uuid import UUID

from scheduler.core.errors import ValidationError


# ─── Identity Types ──────────────────────────────────────────────

UserId = NewType("UserId", UUID)


# ─── Enums ───────────────────────────────────────────────────────

class GlobalRole(str, Enum):
    """Process-wide role carried by the caller identity."""
    ADMIN = "ADMIN"
    USER = "USER"


class MembershipRole(str, Enum):
    """Per-band role of a membership row."""
    MEMBER = "MEMBER"
    BAND_MANAGER = "BAND_MANAGER"


class MembershipStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class RehearsalStatus(str, Enum):
    """Rehearsal lifecycle — SCHEDULED -> CANCELED | COMPLETED (both terminal)."""
    SCHEDULED = "SCHEDULED"
    CANCELED = "CANCELED"
    COMPLETED = "COMPLETED"


TERMINAL_STATUSES: frozenset[RehearsalStatus] = frozenset({
    RehearsalStatus.CANCELED, RehearsalStatus.COMPLETED,
})


class AvailabilityStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    UNAVAILABLE = "UNAVAILABLE"
    MAYBE = "MAYBE"


class NotificationType(str, Enum):
    UPDATE = "UPDATE"
    CANCELLATION = "CANCELLATION"


class Capability(str, Enum):
    """Abstract permissions checked by the authorization evaluator."""
    MANAGE = "manage"
    MEMBER = "member"


# ─── Parsing ─────────────────────────────────────────────────────

def parse_identifier(value: str | UUID, field: str) -> UUID:
    """Parse an opaque identifier. Malformed input is a ValidationError."""
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (ValueError, TypeError, AttributeError):
        raise ValidationError(f"Invalid {field}", fields=[field])


def parse_enum(enum_cls: type[Enum], value, field: str):
    """Coerce a raw value into enum_cls, or raise ValidationError naming field."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(
            f"Invalid {field}: expected one of {allowed}", fields=[field],
        )


def to_utc(value: datetime) -> datetime:
    """Normalize an instant to aware UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
