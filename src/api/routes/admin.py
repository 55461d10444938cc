"""
Admin / observability endpoints
===============================

GET /api/v1/admin/dashboard -- fleet KPIs computed from the current snapshot
GET /api/v1/admin/reports   -- cost, ROI, fuel efficiency, driver performance
GET /api/v1/admin/health    -- simple health check
"""

from dataclasses import asdict

from fastapi import APIRouter, Depends, Request

from src.api.dependencies import get_store
from src.api.middleware import limiter
from src.api.schemas import (
    DashboardResponse,
    DriverPerformanceResponse,
    HealthResponse,
    ReportsResponse,
    VehicleCostResponse,
    VehicleROIResponse,
)
from src.config import settings
from src.domain import metrics
from src.services.store import FleetStore

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get(
    "/dashboard",
    response_model=DashboardResponse,
    summary="Fleet KPIs",
)
@limiter.limit(settings.rate_limit)
async def get_dashboard(
    request: Request,
    store: FleetStore = Depends(get_store),
):
    return DashboardResponse(**asdict(metrics.dashboard(store.snapshot)))


@router.get(
    "/reports",
    response_model=ReportsResponse,
    summary="Operational analytics",
)
@limiter.limit(settings.rate_limit)
async def get_reports(
    request: Request,
    store: FleetStore = Depends(get_store),
):
    snapshot = store.snapshot
    return ReportsResponse(
        vehicle_costs=[
            VehicleCostResponse(
                vehicle_id=c.vehicle_id,
                name=c.name,
                fuel_cost=c.fuel_cost,
                other_cost=c.other_cost,
                maintenance_cost=c.maintenance_cost,
                total_cost=c.total_cost,
                total_liters=c.total_liters,
                completed_km=c.completed_km,
                completed_trips=c.completed_trips,
                km_per_liter=c.km_per_liter,
                cost_per_completed_trip=c.cost_per_completed_trip,
            )
            for c in metrics.vehicle_costs(snapshot)
        ],
        vehicle_roi=[
            VehicleROIResponse(**asdict(r)) for r in metrics.vehicle_roi(snapshot)
        ],
        fuel_efficiency=metrics.fuel_efficiency(snapshot),
        driver_performance=[
            DriverPerformanceResponse(
                driver_id=p.driver_id,
                name=p.name,
                trips=p.trips,
                completed=p.completed,
                completion_rate=p.completion_rate,
                revenue=p.revenue,
            )
            for p in metrics.driver_performance(snapshot)
        ],
    )


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health():
    return HealthResponse()
