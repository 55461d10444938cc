"""Pydantic request / response schemas for the REST API.

Requests only check shapes and obvious bounds; the fleet rules
(capacity, licence validity, status guards) live in ``src.domain.fleet``
and come back as 422 responses with per-field reasons.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import asdict
from typing import Optional

from pydantic import BaseModel, Field

from src.domain.entities import FleetSnapshot, resolve_name
from src.domain.enums import (
    Collection,
    DriverStatus,
    ExpenseType,
    FuelType,
    LicenseCategory,
    Region,
    TripStatus,
    VehicleStatus,
)


# ── Requests ──────────────────────────────────────────────────────────


class _Request(BaseModel):
    # JSON NaN / Infinity never reach the fleet rules
    model_config = {"allow_inf_nan": False}


class VehicleCreate(_Request):
    name: str = Field(..., max_length=120)
    plate: str = Field(..., max_length=32)
    vehicle_type: str = Field("Truck", max_length=40)
    capacity: float = Field(..., description="Maximum cargo weight in kg.")
    odometer: float = Field(0.0, description="Current reading in km.")
    acquisition_cost: float = 0.0
    year: int
    fuel_type: FuelType = FuelType.DIESEL
    region: Region = Region.NORTH
    status: VehicleStatus = VehicleStatus.AVAILABLE


class VehicleUpdate(_Request):
    name: Optional[str] = Field(None, max_length=120)
    plate: Optional[str] = Field(None, max_length=32)
    vehicle_type: Optional[str] = Field(None, max_length=40)
    capacity: Optional[float] = None
    odometer: Optional[float] = None
    acquisition_cost: Optional[float] = None
    year: Optional[int] = None
    fuel_type: Optional[FuelType] = None
    region: Optional[Region] = None
    status: Optional[VehicleStatus] = None


class DriverCreate(_Request):
    name: str = Field(..., max_length=120)
    license_no: str = Field(..., max_length=64)
    license_expiry: dt.date
    category: LicenseCategory = LicenseCategory.LIGHT
    status: DriverStatus = DriverStatus.ON_DUTY
    safety_score: int = Field(85, ge=0, le=100)
    phone: str = Field(..., max_length=32)
    joined: Optional[dt.date] = None
    trip_count: int = Field(0, ge=0)


class DriverUpdate(_Request):
    name: Optional[str] = Field(None, max_length=120)
    license_no: Optional[str] = Field(None, max_length=64)
    license_expiry: Optional[dt.date] = None
    category: Optional[LicenseCategory] = None
    status: Optional[DriverStatus] = None
    safety_score: Optional[int] = Field(None, ge=0, le=100)
    phone: Optional[str] = Field(None, max_length=32)
    joined: Optional[dt.date] = None
    trip_count: Optional[int] = Field(None, ge=0)


class TripCreate(_Request):
    vehicle_id: str
    driver_id: str
    origin: str = Field(..., max_length=120)
    destination: str = Field(..., max_length=120)
    cargo_type: str = Field("Other", max_length=60)
    cargo_weight: float = Field(..., description="Cargo weight in kg.")
    estimated_km: float
    revenue: float = 0.0
    date: dt.date
    notes: str = ""
    idempotency_key: Optional[str] = Field(
        None,
        max_length=64,
        description="Client-generated UUID to prevent duplicate trips on retries.",
    )


class TripCompleteRequest(_Request):
    final_odometer: float = Field(..., description="Odometer reading at arrival, km.")


class MaintenanceCreate(_Request):
    vehicle_id: str
    service_type: str = Field("Other", max_length=60)
    cost: float
    date: dt.date
    mechanic: str = Field("", max_length=120)
    notes: str = ""
    completed: bool = False


class ExpenseCreate(_Request):
    vehicle_id: str
    expense_type: ExpenseType = ExpenseType.FUEL
    cost: float
    date: dt.date
    liters: Optional[float] = Field(
        None, description="Litres (or kWh) for Fuel and Charging; ignored otherwise."
    )
    trip_id: Optional[str] = None
    odometer: Optional[float] = None
    notes: str = ""
    idempotency_key: Optional[str] = Field(None, max_length=64)


# ── Responses ─────────────────────────────────────────────────────────


class VehicleResponse(BaseModel):
    id: str
    name: str
    plate: str
    vehicle_type: str
    capacity: float
    odometer: float
    acquisition_cost: float
    year: int
    fuel_type: FuelType
    region: Region
    status: VehicleStatus

    model_config = {"from_attributes": True}


class LicenseStatusResponse(BaseModel):
    label: str
    days: int

    model_config = {"from_attributes": True}


class DriverResponse(BaseModel):
    id: str
    name: str
    license_no: str
    license_expiry: dt.date
    category: LicenseCategory
    status: DriverStatus
    safety_score: int
    phone: str
    joined: Optional[dt.date] = None
    trip_count: int
    license: Optional[LicenseStatusResponse] = None

    model_config = {"from_attributes": True}


class TripResponse(BaseModel):
    id: str
    vehicle_id: str
    driver_id: str
    vehicle_name: str = "unknown"
    driver_name: str = "unknown"
    origin: str
    destination: str
    cargo_type: str
    cargo_weight: float
    estimated_km: float
    revenue: float
    date: dt.date
    notes: str
    status: TripStatus
    final_odometer: Optional[float] = None

    @classmethod
    def build(cls, trip, snapshot: FleetSnapshot) -> "TripResponse":
        return cls(
            **asdict(trip),
            vehicle_name=resolve_name(snapshot, Collection.VEHICLES, trip.vehicle_id),
            driver_name=resolve_name(snapshot, Collection.DRIVERS, trip.driver_id),
        )


class TripTransitionResponse(BaseModel):
    applied: bool
    trip: Optional[TripResponse] = None


class MaintenanceResponse(BaseModel):
    id: str
    vehicle_id: str
    vehicle_name: str = "unknown"
    service_type: str
    cost: float
    date: dt.date
    mechanic: str
    notes: str
    completed: bool

    @classmethod
    def build(cls, log, snapshot: FleetSnapshot) -> "MaintenanceResponse":
        return cls(
            **asdict(log),
            vehicle_name=resolve_name(snapshot, Collection.VEHICLES, log.vehicle_id),
        )


class MaintenanceTransitionResponse(BaseModel):
    applied: bool
    log: Optional[MaintenanceResponse] = None


class ExpenseResponse(BaseModel):
    id: str
    vehicle_id: str
    vehicle_name: str = "unknown"
    expense_type: ExpenseType
    cost: float
    date: dt.date
    liters: Optional[float] = None
    trip_id: Optional[str] = None
    odometer: Optional[float] = None
    notes: str

    @classmethod
    def build(cls, expense, snapshot: FleetSnapshot) -> "ExpenseResponse":
        return cls(
            **asdict(expense),
            vehicle_name=resolve_name(snapshot, Collection.VEHICLES, expense.vehicle_id),
        )


class DashboardResponse(BaseModel):
    active_fleet: int
    maintenance_alerts: int
    utilization_rate: int
    pending_cargo: int
    total_revenue: float
    total_expenses: float

    model_config = {"from_attributes": True}


class VehicleCostResponse(BaseModel):
    vehicle_id: str
    name: str
    fuel_cost: float
    other_cost: float
    maintenance_cost: float
    total_cost: float
    total_liters: float
    completed_km: float
    completed_trips: int
    km_per_liter: Optional[float] = None
    cost_per_completed_trip: Optional[float] = None

    model_config = {"from_attributes": True}


class VehicleROIResponse(BaseModel):
    vehicle_id: str
    name: str
    revenue: float
    total_cost: float
    acquisition_cost: float
    roi: float

    model_config = {"from_attributes": True}


class DriverPerformanceResponse(BaseModel):
    driver_id: str
    name: str
    trips: int
    completed: int
    completion_rate: int
    revenue: float

    model_config = {"from_attributes": True}


class ReportsResponse(BaseModel):
    vehicle_costs: list[VehicleCostResponse] = []
    vehicle_roi: list[VehicleROIResponse] = []
    fuel_efficiency: dict[str, float] = {}
    driver_performance: list[DriverPerformanceResponse] = []


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    detail: str
