"""Schedule Enforcement — pure rehearsal invariants for create and partial update.

Invariants:
    - end_time > start_time at creation and for the RESULTING pair of any update
      (existing value substituted for the untouched field)
    - title is non-empty after stripping
    - Agenda items keep input order; order_index == input position
    - CANCELED and COMPLETED are terminal: no status change out of them
    - Only PATCHABLE_FIELDS may appear in a patch; band_id is immutable
    - All functions are pure: they validate and return values, never persist
"""

from dataclasses import dataclass
from datetime import datetime

from scheduler.core.domain_types import (
    RehearsalStatus, TERMINAL_STATUSES, parse_enum, to_utc,
)
from scheduler.core.errors import ValidationError


PATCHABLE_FIELDS: frozenset[str] = frozenset({
    "title", "description", "start_time", "end_time", "location", "status",
})
NON_NULLABLE_FIELDS: frozenset[str] = frozenset({
    "title", "start_time", "end_time", "status",
})


@dataclass(frozen=True)
class AgendaItemDraft:
    title: str
    duration_minutes: int
    order_index: int
    description: str | None = None


def validate_title(title: str | None, field: str = "title") -> str:
    if title is None or not str(title).strip():
        raise ValidationError(f"{field} is required", fields=[field])
    return str(title).strip()


def validate_time_range(start_time: datetime, end_time: datetime) -> tuple[datetime, datetime]:
    """Return the UTC-normalized pair, or raise if end_time <= start_time."""
    start, end = to_utc(start_time), to_utc(end_time)
    if end <= start:
        raise ValidationError(
            "end_time must be after start_time", fields=["end_time"],
        )
    return start, end


def build_agenda(items: list[dict] | None) -> list[AgendaItemDraft]:
    """Validate agenda input and assign order_index from input position."""
    drafts = []
    for index, item in enumerate(items or []):
        title = validate_title(item.get("title"), field=f"items.{index}.title")
        duration = item.get("duration_minutes")
        if (
            isinstance(duration, bool)
            or not isinstance(duration, int)
            or duration < 1
        ):
            raise ValidationError(
                "Duration must be a positive integer",
                fields=[f"items.{index}.duration_minutes"],
            )
        drafts.append(AgendaItemDraft(
            title=title,
            duration_minutes=duration,
            order_index=index,
            description=item.get("description"),
        ))
    return drafts


def validate_transition(current: RehearsalStatus, new: RehearsalStatus) -> None:
    if current == new:
        return
    if current in TERMINAL_STATUSES:
        raise ValidationError(
            f"Rehearsal is {current.value} and cannot become {new.value}",
            fields=["status"],
        )


def normalize_patch(
    patch: dict,
    current_start: datetime,
    current_end: datetime,
    current_status: RehearsalStatus,
) -> dict:
    """Validate a partial update against the stored rehearsal.

    Returns the column values to write. Raises ValidationError on an unknown
    field, a null required field, an empty title, an invalid resulting time
    pair or a transition out of a terminal status.
    """
    unknown = sorted(set(patch) - PATCHABLE_FIELDS)
    if unknown:
        raise ValidationError("Fields cannot be updated", fields=unknown)
    nulled = sorted(f for f in NON_NULLABLE_FIELDS if f in patch and patch[f] is None)
    if nulled:
        raise ValidationError("Fields cannot be null", fields=nulled)

    values = dict(patch)
    if "title" in values:
        values["title"] = validate_title(values["title"])
    if "start_time" in values or "end_time" in values:
        start, end = validate_time_range(
            values.get("start_time", current_start),
            values.get("end_time", current_end),
        )
        if "start_time" in values:
            values["start_time"] = start
        if "end_time" in values:
            values["end_time"] = end
    if "status" in values:
        new_status = parse_enum(RehearsalStatus, values["status"], "status")
        validate_transition(current_status, new_status)
        values["status"] = new_status.value
    return values


def is_cancellation(values: dict) -> bool:
    """True when the written values set status to CANCELED, repeats included."""
    return values.get("status") == RehearsalStatus.CANCELED.value
