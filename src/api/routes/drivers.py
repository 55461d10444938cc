"""
Driver endpoints
================

POST   /api/v1/drivers             -- register a driver (default On Duty)
GET    /api/v1/drivers             -- list drivers with licence status
GET    /api/v1/drivers/{driver_id} -- one driver
PATCH  /api/v1/drivers/{driver_id} -- administrative edit
DELETE /api/v1/drivers/{driver_id} -- remove (not while on a dispatched trip)
"""

from dataclasses import asdict
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from src.api.dependencies import get_operations, get_store, get_today
from src.api.middleware import limiter
from src.api.schemas import (
    DriverCreate,
    DriverResponse,
    DriverUpdate,
    ErrorResponse,
    LicenseStatusResponse,
)
from src.config import settings
from src.domain import fleet
from src.domain.entities import Driver
from src.domain.enums import Collection, DriverStatus
from src.domain.metrics import license_status
from src.services.operations import OperationsService
from src.services.store import FleetStore

router = APIRouter(prefix="/drivers", tags=["drivers"])


def _response(driver: Driver, today: date) -> DriverResponse:
    status = license_status(driver, today, settings.license_warning_days)
    return DriverResponse(
        **asdict(driver),
        license=LicenseStatusResponse(label=status.label, days=status.days),
    )


@router.post(
    "",
    status_code=201,
    response_model=DriverResponse,
    summary="Register a driver",
)
@limiter.limit(settings.rate_limit)
async def create_driver(
    request: Request,
    body: DriverCreate,
    ops: OperationsService = Depends(get_operations),
    today: date = Depends(get_today),
):
    transition = await ops.run(fleet.create_driver, body.model_dump(), today=today)
    return _response(transition.record, today)


@router.get("", response_model=list[DriverResponse], summary="List drivers")
@limiter.limit(settings.rate_limit)
async def list_drivers(
    request: Request,
    status: Optional[DriverStatus] = None,
    store: FleetStore = Depends(get_store),
    today: date = Depends(get_today),
):
    return [
        _response(d, today)
        for d in store.snapshot.drivers
        if status is None or d.status == status
    ]


@router.get(
    "/{driver_id}",
    response_model=DriverResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get a driver",
)
@limiter.limit(settings.rate_limit)
async def get_driver(
    request: Request,
    driver_id: str,
    store: FleetStore = Depends(get_store),
    today: date = Depends(get_today),
):
    driver = store.snapshot.get(Collection.DRIVERS, driver_id)
    if driver is None:
        raise HTTPException(status_code=404, detail="Driver not found")
    return _response(driver, today)


@router.patch(
    "/{driver_id}",
    response_model=DriverResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Edit a driver",
    description="A driver on a dispatched trip cannot be suspended or taken off duty.",
)
@limiter.limit(settings.rate_limit)
async def update_driver(
    request: Request,
    driver_id: str,
    body: DriverUpdate,
    ops: OperationsService = Depends(get_operations),
    today: date = Depends(get_today),
):
    transition = await ops.run(
        fleet.update_driver,
        driver_id,
        body.model_dump(exclude_unset=True),
        today=today,
    )
    if transition.record is None:
        raise HTTPException(status_code=404, detail="Driver not found")
    return _response(transition.record, today)


@router.delete("/{driver_id}", status_code=204, summary="Delete a driver")
@limiter.limit(settings.rate_limit)
async def delete_driver(
    request: Request,
    driver_id: str,
    ops: OperationsService = Depends(get_operations),
):
    await ops.run(fleet.delete_driver, driver_id)
    return Response(status_code=204)
