"""
Domain entities.

Patterns used
-------------
- **Immutable records**: every entity is a frozen dataclass; a change is a
  new record built with ``dataclasses.replace``.
- **State Pattern** on ``Trip``: enforces valid lifecycle transitions
  (DRAFT -> DISPATCHED -> COMPLETED | CANCELLED).
- **Snapshot**: ``FleetSnapshot`` is the full fleet at a point in time.
  Cross-entity references (``vehicle_id``, ``driver_id``, ``trip_id``) are
  weak: they are resolved through ``FleetSnapshot.index`` lookup tables and
  may dangle.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Mapping, Optional, Union

from .enums import (
    TRIP_TRANSITIONS,
    Collection,
    DriverStatus,
    ExpenseType,
    FuelType,
    LicenseCategory,
    Region,
    TripStatus,
    UserRole,
    VehicleStatus,
    WriteAction,
)
from .errors import InvalidStateTransition

UNKNOWN = "unknown"

ID_PREFIXES: dict[Collection, str] = {
    Collection.VEHICLES: "v",
    Collection.DRIVERS: "d",
    Collection.TRIPS: "t",
    Collection.MAINTENANCE_LOGS: "m",
    Collection.EXPENSES: "e",
}


def new_id(collection: Collection) -> str:
    return f"{ID_PREFIXES[collection]}{uuid.uuid4().hex[:12]}"


# ── Entities ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Vehicle:
    id: str
    name: str
    plate: str
    vehicle_type: str = "Truck"
    capacity: float = 0.0  # kg
    odometer: float = 0.0  # km
    acquisition_cost: float = 0.0
    year: int = 2020
    fuel_type: FuelType = FuelType.DIESEL
    region: Region = Region.NORTH
    status: VehicleStatus = VehicleStatus.AVAILABLE


@dataclass(frozen=True)
class Driver:
    id: str
    name: str
    license_no: str
    license_expiry: date
    category: LicenseCategory = LicenseCategory.LIGHT
    status: DriverStatus = DriverStatus.ON_DUTY
    safety_score: int = 85
    phone: str = ""
    joined: Optional[date] = None
    trip_count: int = 0

    def license_valid(self, today: date) -> bool:
        """A licence expiring today is still valid for today."""
        return self.license_expiry >= today

    def days_to_expiry(self, today: date) -> int:
        return (self.license_expiry - today).days


@dataclass(frozen=True)
class Trip:
    id: str
    vehicle_id: str
    driver_id: str
    origin: str
    destination: str
    cargo_weight: float  # kg
    estimated_km: float
    date: date
    cargo_type: str = "Other"
    revenue: float = 0.0
    notes: str = ""
    status: TripStatus = TripStatus.DRAFT
    final_odometer: Optional[float] = None
    idempotency_key: Optional[str] = None

    def transition_to(self, new_status: TripStatus, **changes) -> "Trip":
        """Return a copy in *new_status* if the transition is legal, else raise."""
        allowed = TRIP_TRANSITIONS.get(self.status, set())
        if new_status not in allowed:
            raise InvalidStateTransition(
                f"Cannot transition from {self.status.value} to {new_status.value}"
            )
        return replace(self, status=new_status, **changes)


@dataclass(frozen=True)
class MaintenanceLog:
    id: str
    vehicle_id: str
    service_type: str
    cost: float
    date: date
    mechanic: str = ""
    notes: str = ""
    completed: bool = False


@dataclass(frozen=True)
class Expense:
    id: str
    vehicle_id: str
    expense_type: ExpenseType
    cost: float
    date: date
    liters: Optional[float] = None
    trip_id: Optional[str] = None
    odometer: Optional[float] = None
    notes: str = ""
    idempotency_key: Optional[str] = None


Record = Union[Vehicle, Driver, Trip, MaintenanceLog, Expense]

RECORD_TYPES: dict[Collection, type] = {
    Collection.VEHICLES: Vehicle,
    Collection.DRIVERS: Driver,
    Collection.TRIPS: Trip,
    Collection.MAINTENANCE_LOGS: MaintenanceLog,
    Collection.EXPENSES: Expense,
}


@dataclass(frozen=True)
class Principal:
    """The authenticated caller, as reported by the identity provider."""

    id: str
    email: str = ""
    role: UserRole = UserRole.DISPATCHER


# ── Write intents ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class WriteIntent:
    """One create / update / delete-by-id against a single collection."""

    collection: Collection
    action: WriteAction
    entity_id: str
    record: Optional[Record] = None


# ── Snapshot ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class FleetSnapshot:
    vehicles: tuple[Vehicle, ...] = ()
    drivers: tuple[Driver, ...] = ()
    trips: tuple[Trip, ...] = ()
    maintenance_logs: tuple[MaintenanceLog, ...] = ()
    expenses: tuple[Expense, ...] = ()
    _indexes: dict = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def records(self, collection: Collection) -> tuple:
        return getattr(self, collection.value)

    def index(self, collection: Collection) -> Mapping[str, Record]:
        """Id -> record lookup table for *collection* (built once, cached)."""
        cached = self._indexes.get(collection)
        if cached is None:
            cached = {r.id: r for r in self.records(collection)}
            self._indexes[collection] = cached
        return cached

    def get(self, collection: Collection, entity_id: Optional[str]):
        if entity_id is None:
            return None
        return self.index(collection).get(entity_id)

    def apply(self, intents) -> "FleetSnapshot":
        """Return a new snapshot with *intents* applied in order."""
        updated: dict[Collection, list] = {}
        for intent in intents:
            rows = updated.setdefault(
                intent.collection, list(self.records(intent.collection))
            )
            if intent.action == WriteAction.CREATE:
                rows.append(intent.record)
            elif intent.action == WriteAction.UPDATE:
                rows[:] = [
                    intent.record if r.id == intent.entity_id else r for r in rows
                ]
            else:
                rows[:] = [r for r in rows if r.id != intent.entity_id]
        if not updated:
            return self
        return replace(
            self, **{c.value: tuple(rows) for c, rows in updated.items()}
        )


def resolve_name(
    snapshot: FleetSnapshot, collection: Collection, entity_id: Optional[str]
) -> str:
    """Display name for a weak reference, ``"unknown"`` when it dangles."""
    record = snapshot.get(collection, entity_id)
    return getattr(record, "name", None) or UNKNOWN
