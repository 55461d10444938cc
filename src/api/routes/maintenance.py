"""
Maintenance endpoints
=====================

POST   /api/v1/maintenance                  -- open (or record) a service log
GET    /api/v1/maintenance                  -- list logs
PATCH  /api/v1/maintenance/{log_id}/complete -- close an active log
DELETE /api/v1/maintenance/{log_id}          -- remove a log
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response

from src.api.dependencies import get_operations, get_store
from src.api.middleware import limiter
from src.api.schemas import (
    MaintenanceCreate,
    MaintenanceResponse,
    MaintenanceTransitionResponse,
)
from src.config import settings
from src.domain import fleet
from src.services.operations import OperationsService
from src.services.store import FleetStore

router = APIRouter(prefix="/maintenance", tags=["maintenance"])


@router.post(
    "",
    status_code=201,
    response_model=MaintenanceResponse,
    summary="Add a maintenance log",
    description="An active log puts its vehicle In Shop.",
)
@limiter.limit(settings.rate_limit)
async def add_maintenance_log(
    request: Request,
    body: MaintenanceCreate,
    ops: OperationsService = Depends(get_operations),
):
    transition = await ops.run(fleet.add_maintenance_log, body.model_dump())
    return MaintenanceResponse.build(transition.record, transition.snapshot)


@router.get("", response_model=list[MaintenanceResponse], summary="List logs")
@limiter.limit(settings.rate_limit)
async def list_maintenance_logs(
    request: Request,
    vehicle_id: Optional[str] = None,
    completed: Optional[bool] = None,
    store: FleetStore = Depends(get_store),
):
    snapshot = store.snapshot
    return [
        MaintenanceResponse.build(log, snapshot)
        for log in snapshot.maintenance_logs
        if (vehicle_id is None or log.vehicle_id == vehicle_id)
        and (completed is None or log.completed == completed)
    ]


@router.patch(
    "/{log_id}/complete",
    response_model=MaintenanceTransitionResponse,
    summary="Complete a maintenance log",
    description="The vehicle returns to Available once no other log is open.",
)
@limiter.limit(settings.rate_limit)
async def complete_maintenance_log(
    request: Request,
    log_id: str,
    ops: OperationsService = Depends(get_operations),
):
    transition = await ops.run(fleet.complete_maintenance_log, log_id)
    log = transition.record
    return MaintenanceTransitionResponse(
        applied=transition.applied,
        log=MaintenanceResponse.build(log, transition.snapshot) if log else None,
    )


@router.delete("/{log_id}", status_code=204, summary="Delete a maintenance log")
@limiter.limit(settings.rate_limit)
async def delete_maintenance_log(
    request: Request,
    log_id: str,
    ops: OperationsService = Depends(get_operations),
):
    await ops.run(fleet.delete_maintenance_log, log_id)
    return Response(status_code=204)
