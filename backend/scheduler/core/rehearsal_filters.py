"""Rehearsal Filters — list-view query criteria scoped to the caller's visible bands.

Invariants:
    - An explicit band_id is honored only if it is one of the caller's bands
      (or the caller is ADMIN); otherwise the scope is empty
    - Without band_id the scope is the caller's band set; an empty set yields
      an empty result, never an error
    - start_from / start_to are inclusive bounds on start_time
"""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from scheduler.core.domain_types import RehearsalStatus, to_utc
from scheduler.core.errors import ValidationError
from scheduler.core.identity import CallerIdentity


@dataclass(frozen=True)
class RehearsalFilters:
    band_id: UUID | None = None
    status: RehearsalStatus | None = None
    start_from: datetime | None = None
    start_to: datetime | None = None

    def __post_init__(self) -> None:
        if self.start_from is not None:
            object.__setattr__(self, "start_from", to_utc(self.start_from))
        if self.start_to is not None:
            object.__setattr__(self, "start_to", to_utc(self.start_to))
        if (
            self.start_from is not None
            and self.start_to is not None
            and self.start_to < self.start_from
        ):
            raise ValidationError("'to' must not precede 'from'", fields=["from", "to"])


def resolve_band_scope(
    caller: CallerIdentity,
    filters: RehearsalFilters,
    caller_band_ids: list[UUID],
) -> list[UUID]:
    """Bands the listing may read from. Empty list means empty result."""
    if filters.band_id is None:
        return list(dict.fromkeys(caller_band_ids))
    if caller.is_admin or filters.band_id in caller_band_ids:
        return [filters.band_id]
    return []
