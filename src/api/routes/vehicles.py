"""
Vehicle endpoints
=================

POST   /api/v1/vehicles              -- register a vehicle (default Available)
GET    /api/v1/vehicles              -- list vehicles, optionally by status
GET    /api/v1/vehicles/{vehicle_id} -- one vehicle
PATCH  /api/v1/vehicles/{vehicle_id} -- administrative edit
DELETE /api/v1/vehicles/{vehicle_id} -- remove (not while on a dispatched trip)
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from src.api.dependencies import get_operations, get_store, get_today
from src.api.middleware import limiter
from src.api.schemas import ErrorResponse, VehicleCreate, VehicleResponse, VehicleUpdate
from src.config import settings
from src.domain import fleet
from src.domain.enums import Collection, VehicleStatus
from src.services.operations import OperationsService
from src.services.store import FleetStore

router = APIRouter(prefix="/vehicles", tags=["vehicles"])


@router.post(
    "",
    status_code=201,
    response_model=VehicleResponse,
    summary="Register a vehicle",
)
@limiter.limit(settings.rate_limit)
async def create_vehicle(
    request: Request,
    body: VehicleCreate,
    ops: OperationsService = Depends(get_operations),
    today: date = Depends(get_today),
):
    transition = await ops.run(fleet.create_vehicle, body.model_dump(), today=today)
    return transition.record


@router.get("", response_model=list[VehicleResponse], summary="List vehicles")
@limiter.limit(settings.rate_limit)
async def list_vehicles(
    request: Request,
    status: Optional[VehicleStatus] = None,
    store: FleetStore = Depends(get_store),
):
    return [
        v for v in store.snapshot.vehicles if status is None or v.status == status
    ]


@router.get(
    "/{vehicle_id}",
    response_model=VehicleResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get a vehicle",
)
@limiter.limit(settings.rate_limit)
async def get_vehicle(
    request: Request,
    vehicle_id: str,
    store: FleetStore = Depends(get_store),
):
    vehicle = store.snapshot.get(Collection.VEHICLES, vehicle_id)
    if vehicle is None:
        raise HTTPException(status_code=404, detail="Vehicle not found")
    return vehicle


@router.patch(
    "/{vehicle_id}",
    response_model=VehicleResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Edit a vehicle",
    description=(
        "Status can only be changed while the vehicle is idle: not on a "
        "dispatched trip and without an open maintenance log."
    ),
)
@limiter.limit(settings.rate_limit)
async def update_vehicle(
    request: Request,
    vehicle_id: str,
    body: VehicleUpdate,
    ops: OperationsService = Depends(get_operations),
    today: date = Depends(get_today),
):
    transition = await ops.run(
        fleet.update_vehicle,
        vehicle_id,
        body.model_dump(exclude_unset=True),
        today=today,
    )
    if transition.record is None:
        raise HTTPException(status_code=404, detail="Vehicle not found")
    return transition.record


@router.delete("/{vehicle_id}", status_code=204, summary="Delete a vehicle")
@limiter.limit(settings.rate_limit)
async def delete_vehicle(
    request: Request,
    vehicle_id: str,
    ops: OperationsService = Depends(get_operations),
):
    await ops.run(fleet.delete_vehicle, vehicle_id)
    return Response(status_code=204)
