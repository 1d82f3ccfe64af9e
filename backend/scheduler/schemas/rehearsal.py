"""Rehearsal Schemas — Pydantic models with field-level validation for API boundaries.

Invariants:
    - RehearsalCreate: title non-empty after strip, end_time > start_time,
      agenda item durations >= 1
    - RehearsalUpdate: every field optional; supplied title non-empty; when both
      times are supplied end_time > start_time (the pair against stored values is
      re-checked by the service)
    - Status fields accept only the enum values from core/domain_types.py
    - Response models read straight from ORM objects (from_attributes)
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from scheduler.core.domain_types import AvailabilityStatus, RehearsalStatus, to_utc


# --- Requests -----------------------------------------------------------------

class AgendaItemCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)
    duration_minutes: int = Field(ge=1)

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Item title is required")
        return v


class RehearsalCreate(BaseModel):
    """Rehearsal creation payload."""
    band_id: UUID
    title: str = Field(min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)
    start_time: datetime
    end_time: datetime
    location: str | None = Field(None, max_length=500)
    items: list[AgendaItemCreate] | None = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title is required")
        return v

    @model_validator(mode="after")
    def validate_time_range(self):
        if to_utc(self.end_time) <= to_utc(self.start_time):
            raise ValueError("End time must be after start time")
        return self


class RehearsalUpdate(BaseModel):
    """Partial update — only fields present in the payload are applied."""
    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)
    start_time: datetime | None = None
    end_time: datetime | None = None
    location: str | None = Field(None, max_length=500)
    status: RehearsalStatus | None = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Title cannot be empty")
        return v

    @model_validator(mode="after")
    def validate_time_range(self):
        if (
            self.start_time is not None
            and self.end_time is not None
            and to_utc(self.end_time) <= to_utc(self.start_time)
        ):
            raise ValueError("End time must be after start time")
        return self

    def to_patch(self) -> dict:
        """Supplied fields only, enums as plain values."""
        patch = self.model_dump(exclude_unset=True)
        if patch.get("status") is not None:
            patch["status"] = RehearsalStatus(patch["status"]).value
        return patch


class AvailabilityUpdate(BaseModel):
    status: AvailabilityStatus


# --- Responses ----------------------------------------------------------------

class BandSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str


class PersonSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    first_name: str | None = None
    last_name: str | None = None


class AgendaItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: str | None = None
    duration_minutes: int
    order_index: int


class RehearsalResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    band_id: UUID
    title: str
    description: str | None = None
    start_time: datetime
    end_time: datetime
    location: str | None = None
    status: RehearsalStatus
    created_by: UUID
    created_at: datetime
    updated_at: datetime
    items: list[AgendaItemResponse] = []


class RehearsalListItem(RehearsalResponse):
    band: BandSummary
    my_availability: AvailabilityStatus | None = None


class AvailabilityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    rehearsal_id: UUID
    status: AvailabilityStatus
    response_time: datetime
    user: PersonSummary | None = None


class AttendanceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    status: str
    recorded_at: datetime
    user: PersonSummary | None = None


class RehearsalDetail(RehearsalResponse):
    band: BandSummary
    availability: list[AvailabilityResponse] = []
    attendance: list[AttendanceResponse] = []


class RehearsalListResponse(BaseModel):
    rehearsals: list[RehearsalListItem]


class RehearsalDetailResponse(BaseModel):
    rehearsal: RehearsalDetail


class RehearsalMutationResponse(BaseModel):
    message: str
    rehearsal: RehearsalResponse
    warnings: list[dict] = []


class AvailabilityMutationResponse(BaseModel):
    message: str
    availability: AvailabilityResponse
