"""Rehearsal Routes — list, detail, create, update and availability endpoints.

Invariants:
    - Every route resolves the caller first (401 before anything else)
    - Request bodies are validated by Pydantic before reaching the services
    - Routes never commit and never build queries: services own both
    - Fan-out failures surface as `warnings` on an otherwise successful response
"""

import logging
from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from scheduler.api.deps import (
    get_availability_reconciler, get_caller, get_rehearsal_lifecycle,
)
from scheduler.core.domain_types import RehearsalStatus
from scheduler.core.identity import CallerIdentity
from scheduler.core.rehearsal_filters import RehearsalFilters
from scheduler.schemas.rehearsal import (
    AvailabilityMutationResponse, AvailabilityResponse, AvailabilityUpdate,
    RehearsalCreate, RehearsalDetail, RehearsalDetailResponse,
    RehearsalListItem, RehearsalListResponse, RehearsalMutationResponse,
    RehearsalResponse, RehearsalUpdate,
)
from scheduler.services.availability_reconciler import AvailabilityReconciler
from scheduler.services.rehearsal_lifecycle import RehearsalLifecycle

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/rehearsals", tags=["rehearsals"])


@router.get("", response_model=RehearsalListResponse)
async def list_rehearsals(
    band_id: UUID | None = None,
    status_filter: RehearsalStatus | None = Query(None, alias="status"),
    start_from: datetime | None = Query(None, alias="from"),
    start_to: datetime | None = Query(None, alias="to"),
    caller: CallerIdentity = Depends(get_caller),
    lifecycle: RehearsalLifecycle = Depends(get_rehearsal_lifecycle),
):
    """Rehearsals of the caller's bands, earliest first."""
    filters = RehearsalFilters(
        band_id=band_id, status=status_filter,
        start_from=start_from, start_to=start_to,
    )
    listings = await lifecycle.list_rehearsals(caller, filters)
    return RehearsalListResponse(
        rehearsals=[
            RehearsalListItem.model_validate(entry.rehearsal).model_copy(
                update={"my_availability": entry.my_availability},
            )
            for entry in listings
        ],
    )


@router.get("/{rehearsal_id}", response_model=RehearsalDetailResponse)
async def get_rehearsal(
    rehearsal_id: UUID,
    caller: CallerIdentity = Depends(get_caller),
    lifecycle: RehearsalLifecycle = Depends(get_rehearsal_lifecycle),
):
    rehearsal = await lifecycle.get_rehearsal(caller, rehearsal_id)
    return RehearsalDetailResponse(rehearsal=RehearsalDetail.model_validate(rehearsal))


@router.post(
    "", response_model=RehearsalMutationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_rehearsal(
    body: RehearsalCreate,
    caller: CallerIdentity = Depends(get_caller),
    lifecycle: RehearsalLifecycle = Depends(get_rehearsal_lifecycle),
):
    outcome = await lifecycle.create_rehearsal(
        caller,
        body.band_id,
        body.title,
        body.start_time,
        body.end_time,
        location=body.location,
        description=body.description,
        items=[item.model_dump() for item in body.items] if body.items else None,
    )
    return RehearsalMutationResponse(
        message="Rehearsal created successfully",
        rehearsal=RehearsalResponse.model_validate(outcome.rehearsal),
        warnings=outcome.warnings,
    )


@router.put("/{rehearsal_id}", response_model=RehearsalMutationResponse)
async def update_rehearsal(
    rehearsal_id: UUID,
    body: RehearsalUpdate,
    caller: CallerIdentity = Depends(get_caller),
    lifecycle: RehearsalLifecycle = Depends(get_rehearsal_lifecycle),
):
    """Partial update: fields absent from the body are left untouched."""
    outcome = await lifecycle.update_rehearsal(caller, rehearsal_id, body.to_patch())
    return RehearsalMutationResponse(
        message="Rehearsal updated successfully",
        rehearsal=RehearsalResponse.model_validate(outcome.rehearsal),
        warnings=outcome.warnings,
    )


@router.post("/{rehearsal_id}/availability", response_model=AvailabilityMutationResponse)
async def set_availability(
    rehearsal_id: UUID,
    body: AvailabilityUpdate,
    caller: CallerIdentity = Depends(get_caller),
    reconciler: AvailabilityReconciler = Depends(get_availability_reconciler),
):
    record = await reconciler.set_availability(caller, rehearsal_id, body.status)
    return AvailabilityMutationResponse(
        message="Availability updated successfully",
        availability=AvailabilityResponse.model_validate(record),
    )
