"""
Trip endpoints
==============

POST  /api/v1/trips                    -- create a Draft trip
GET   /api/v1/trips                    -- list trips, optionally by status
GET   /api/v1/trips/{trip_id}          -- one trip
POST  /api/v1/trips/{trip_id}/dispatch -- Draft -> Dispatched
POST  /api/v1/trips/{trip_id}/complete -- Dispatched -> Completed
PATCH /api/v1/trips/{trip_id}/cancel   -- Draft / Dispatched -> Cancelled

Lifecycle calls on an unknown trip return ``applied: false`` rather than
an error.  Calls from a terminal state return 409.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from src.api.dependencies import get_operations, get_store, get_today
from src.api.middleware import limiter
from src.api.schemas import (
    ErrorResponse,
    TripCompleteRequest,
    TripCreate,
    TripResponse,
    TripTransitionResponse,
)
from src.config import settings
from src.domain import fleet
from src.domain.enums import Collection, TripStatus
from src.domain.fleet import Transition
from src.services.operations import OperationsService
from src.services.store import FleetStore

router = APIRouter(prefix="/trips", tags=["trips"])


def _transition_response(transition: Transition) -> TripTransitionResponse:
    trip = transition.record
    return TripTransitionResponse(
        applied=transition.applied,
        trip=TripResponse.build(trip, transition.snapshot) if trip else None,
    )


@router.post(
    "",
    status_code=201,
    response_model=TripResponse,
    summary="Create a Draft trip",
    description=(
        "Checks vehicle availability, licence validity and cargo weight. "
        "A repeated idempotency_key returns the original trip."
    ),
)
@limiter.limit(settings.rate_limit)
async def create_trip(
    request: Request,
    body: TripCreate,
    ops: OperationsService = Depends(get_operations),
    today: date = Depends(get_today),
):
    transition = await ops.run(fleet.create_trip, body.model_dump(), today=today)
    return TripResponse.build(transition.record, transition.snapshot)


@router.get("", response_model=list[TripResponse], summary="List trips")
@limiter.limit(settings.rate_limit)
async def list_trips(
    request: Request,
    status: Optional[TripStatus] = None,
    store: FleetStore = Depends(get_store),
):
    snapshot = store.snapshot
    return [
        TripResponse.build(t, snapshot)
        for t in snapshot.trips
        if status is None or t.status == status
    ]


@router.get(
    "/{trip_id}",
    response_model=TripResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get a trip",
)
@limiter.limit(settings.rate_limit)
async def get_trip(
    request: Request,
    trip_id: str,
    store: FleetStore = Depends(get_store),
):
    snapshot = store.snapshot
    trip = snapshot.get(Collection.TRIPS, trip_id)
    if trip is None:
        raise HTTPException(status_code=404, detail="Trip not found")
    return TripResponse.build(trip, snapshot)


@router.post(
    "/{trip_id}/dispatch",
    response_model=TripTransitionResponse,
    summary="Dispatch a Draft trip",
    description="The vehicle goes On Trip and the driver On Duty.",
)
@limiter.limit(settings.rate_limit)
async def dispatch_trip(
    request: Request,
    trip_id: str,
    ops: OperationsService = Depends(get_operations),
):
    return _transition_response(await ops.run(fleet.dispatch_trip, trip_id))


@router.post(
    "/{trip_id}/complete",
    response_model=TripTransitionResponse,
    summary="Complete a Dispatched trip",
    description="Records the arrival odometer and frees vehicle and driver.",
)
@limiter.limit(settings.rate_limit)
async def complete_trip(
    request: Request,
    trip_id: str,
    body: TripCompleteRequest,
    ops: OperationsService = Depends(get_operations),
):
    return _transition_response(
        await ops.run(fleet.complete_trip, trip_id, body.final_odometer)
    )


@router.patch(
    "/{trip_id}/cancel",
    response_model=TripTransitionResponse,
    summary="Cancel a trip",
)
@limiter.limit(settings.rate_limit)
async def cancel_trip(
    request: Request,
    trip_id: str,
    ops: OperationsService = Depends(get_operations),
):
    return _transition_response(await ops.run(fleet.cancel_trip, trip_id))
