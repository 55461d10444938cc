"""
Fleet Operations State Machine
==============================

Every operation takes the current ``FleetSnapshot`` plus a payload and
returns a ``Transition``: the next snapshot and the ordered write intents
that produce it.  Nothing here performs I/O.

Trip lifecycle
--------------
  DRAFT --dispatch--> DISPATCHED --complete--> COMPLETED
    |                     |
    +------cancel---------+-----cancel-------> CANCELLED

=========  ====================  =====================  ===============
Operation  Trip                  Vehicle                Driver
=========  ====================  =====================  ===============
dispatch   -> Dispatched         -> On Trip             -> On Duty
complete   -> Completed, odo     -> Available, odo      -> On Duty
cancel     -> Cancelled          -> Available (if was   -> On Duty (if
                                    Dispatched)            was Dispatched)
=========  ====================  =====================  ===============

Maintenance lifecycle
---------------------
  ACTIVE (completed=False) --complete--> COMPLETED.  An active log forces
  its vehicle to In Shop; completing the last active log returns the
  vehicle to Available.  Deleting a log never touches the vehicle.

Failure semantics
-----------------
* Preconditions are checked before any record is built; a rejected
  operation raises ``ValidationError`` (or ``InvalidStateTransition``) and
  leaves no trace.
* Lifecycle operations on an unknown id are no-ops: the returned
  transition carries the unchanged snapshot and no intents.
"""

from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass, fields, replace
from datetime import date, datetime
from typing import Any, Mapping, Optional

from .entities import (
    Driver,
    Expense,
    FleetSnapshot,
    MaintenanceLog,
    Trip,
    Vehicle,
    WriteIntent,
    new_id,
)
from .enums import (
    ENERGY_EXPENSE_TYPES,
    Collection,
    DriverStatus,
    ExpenseType,
    FuelType,
    LicenseCategory,
    Region,
    TripStatus,
    VehicleStatus,
    WriteAction,
)
from .errors import ValidationError

logger = logging.getLogger(__name__)

MIN_VEHICLE_YEAR = 1990


@dataclass(frozen=True)
class Transition:
    """Result of one operation against a snapshot."""

    snapshot: FleetSnapshot
    intents: tuple[WriteIntent, ...] = ()
    collection: Optional[Collection] = None
    entity_id: Optional[str] = None

    @property
    def applied(self) -> bool:
        return bool(self.intents)

    @property
    def record(self):
        """The entity the operation was about, as it is after the transition."""
        if self.collection is None:
            return None
        return self.snapshot.get(self.collection, self.entity_id)

    @property
    def collections(self) -> set[Collection]:
        return {intent.collection for intent in self.intents}


# ── Intent helpers ────────────────────────────────────────────────────


def _create(collection: Collection, record) -> WriteIntent:
    return WriteIntent(collection, WriteAction.CREATE, record.id, record)


def _update(collection: Collection, record) -> WriteIntent:
    return WriteIntent(collection, WriteAction.UPDATE, record.id, record)


def _delete(collection: Collection, entity_id: str) -> WriteIntent:
    return WriteIntent(collection, WriteAction.DELETE, entity_id)


def _commit(
    snapshot: FleetSnapshot,
    collection: Collection,
    entity_id: str,
    *intents: WriteIntent,
) -> Transition:
    return Transition(snapshot.apply(intents), tuple(intents), collection, entity_id)


def _unchanged(
    snapshot: FleetSnapshot, collection: Collection, entity_id: Optional[str]
) -> Transition:
    return Transition(snapshot, (), collection, entity_id)


def _not_found(
    snapshot: FleetSnapshot, collection: Collection, entity_id: str, operation: str
) -> Transition:
    logger.warning("%s: %s %s not found, ignoring", operation, collection.value, entity_id)
    return _unchanged(snapshot, collection, entity_id)


# ── Payload coercion ──────────────────────────────────────────────────


def _as_fields(record) -> dict[str, Any]:
    return {f.name: getattr(record, f.name) for f in fields(record)}


def _merge(record, changes: Mapping[str, Any]) -> dict[str, Any]:
    # null in a partial update means "leave as is"
    return {
        **_as_fields(record),
        **{k: v for k, v in changes.items() if v is not None},
    }


def _text(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    return "" if value is None else str(value).strip()


def _optional_text(data: Mapping[str, Any], key: str) -> Optional[str]:
    return _text(data, key) or None


def _number(
    errors: dict[str, str], data: Mapping[str, Any], key: str
) -> Optional[float]:
    value = data.get(key)
    if value is None or value == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        errors[key] = "Must be a number"
        return None
    if not math.isfinite(number):
        errors[key] = "Must be a number"
        return None
    return number


def _integer(
    errors: dict[str, str], data: Mapping[str, Any], key: str
) -> Optional[int]:
    number = _number(errors, data, key)
    if number is None:
        return None
    if number != int(number):
        errors[key] = "Must be a whole number"
        return None
    return int(number)


def _date(errors: dict[str, str], data: Mapping[str, Any], key: str) -> Optional[date]:
    value = data.get(key)
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        errors[key] = "Invalid date"
        return None


def _choice(
    errors: dict[str, str],
    data: Mapping[str, Any],
    key: str,
    enum_cls: type[enum.Enum],
    default,
):
    value = data.get(key)
    if value is None or value == "":
        return default
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        errors[key] = f"Must be one of: {allowed}"
        return default


# ── Cross-entity queries ──────────────────────────────────────────────


def dispatched_trip_for_vehicle(
    snapshot: FleetSnapshot, vehicle_id: str, exclude: Optional[str] = None
) -> Optional[Trip]:
    for trip in snapshot.trips:
        if (
            trip.vehicle_id == vehicle_id
            and trip.status == TripStatus.DISPATCHED
            and trip.id != exclude
        ):
            return trip
    return None


def dispatched_trip_for_driver(
    snapshot: FleetSnapshot, driver_id: str, exclude: Optional[str] = None
) -> Optional[Trip]:
    for trip in snapshot.trips:
        if (
            trip.driver_id == driver_id
            and trip.status == TripStatus.DISPATCHED
            and trip.id != exclude
        ):
            return trip
    return None


def active_maintenance_logs(
    snapshot: FleetSnapshot, vehicle_id: str, exclude: Optional[str] = None
) -> list[MaintenanceLog]:
    return [
        log
        for log in snapshot.maintenance_logs
        if log.vehicle_id == vehicle_id and not log.completed and log.id != exclude
    ]


def _find_by_idempotency_key(records, key: Optional[str]):
    if not key:
        return None
    return next((r for r in records if r.idempotency_key == key), None)


# ── Vehicles ──────────────────────────────────────────────────────────


def _build_vehicle(data: Mapping[str, Any], vehicle_id: str, today: date) -> Vehicle:
    errors: dict[str, str] = {}

    name = _text(data, "name")
    if not name:
        errors["name"] = "Vehicle name is required"
    plate = _text(data, "plate")
    if not plate:
        errors["plate"] = "Plate number is required"

    capacity = _number(errors, data, "capacity")
    if "capacity" not in errors and (capacity is None or capacity <= 0):
        errors["capacity"] = "Capacity must be > 0"

    odometer = _number(errors, data, "odometer")
    if "odometer" not in errors:
        if odometer is None:
            errors["odometer"] = "Odometer is required"
        elif odometer < 0:
            errors["odometer"] = "Odometer must be zero or greater"

    acquisition_cost = _number(errors, data, "acquisition_cost") or 0.0
    if acquisition_cost < 0:
        errors["acquisition_cost"] = "Acquisition cost must be zero or greater"

    year = _integer(errors, data, "year")
    if "year" not in errors and (
        year is None or year < MIN_VEHICLE_YEAR or year > today.year + 1
    ):
        errors["year"] = "Valid year required"

    status = _choice(errors, data, "status", VehicleStatus, VehicleStatus.AVAILABLE)
    fuel_type = _choice(errors, data, "fuel_type", FuelType, FuelType.DIESEL)
    region = _choice(errors, data, "region", Region, Region.NORTH)

    if errors:
        raise ValidationError(errors)
    return Vehicle(
        id=vehicle_id,
        name=name,
        plate=plate,
        vehicle_type=_text(data, "vehicle_type") or "Truck",
        capacity=capacity,
        odometer=odometer,
        acquisition_cost=acquisition_cost,
        year=year,
        fuel_type=fuel_type,
        region=region,
        status=status,
    )


def create_vehicle(
    snapshot: FleetSnapshot,
    data: Mapping[str, Any],
    *,
    today: date,
    vehicle_id: Optional[str] = None,
) -> Transition:
    vehicle = _build_vehicle(data, vehicle_id or new_id(Collection.VEHICLES), today)
    if vehicle.status == VehicleStatus.ON_TRIP:
        raise ValidationError({"status": "On Trip is set only by dispatching a trip"})
    return _commit(
        snapshot, Collection.VEHICLES, vehicle.id, _create(Collection.VEHICLES, vehicle)
    )


def update_vehicle(
    snapshot: FleetSnapshot,
    vehicle_id: str,
    changes: Mapping[str, Any],
    *,
    today: date,
) -> Transition:
    current = snapshot.get(Collection.VEHICLES, vehicle_id)
    if current is None:
        return _not_found(snapshot, Collection.VEHICLES, vehicle_id, "update_vehicle")

    merged = _merge(current, changes)
    vehicle = _build_vehicle(merged, current.id, today)

    if vehicle.status != current.status:
        if vehicle.status == VehicleStatus.ON_TRIP:
            reason = "On Trip is set only by dispatching a trip"
        elif dispatched_trip_for_vehicle(snapshot, current.id):
            reason = "Vehicle is on a dispatched trip"
        elif active_maintenance_logs(snapshot, current.id):
            reason = "Vehicle has an open maintenance log"
        else:
            reason = None
        if reason:
            raise ValidationError({"status": reason})

    if vehicle == current:
        return _unchanged(snapshot, Collection.VEHICLES, current.id)
    return _commit(
        snapshot, Collection.VEHICLES, vehicle.id, _update(Collection.VEHICLES, vehicle)
    )


def delete_vehicle(snapshot: FleetSnapshot, vehicle_id: str) -> Transition:
    if snapshot.get(Collection.VEHICLES, vehicle_id) is None:
        return _not_found(snapshot, Collection.VEHICLES, vehicle_id, "delete_vehicle")
    if dispatched_trip_for_vehicle(snapshot, vehicle_id):
        raise ValidationError({"id": "Vehicle is on a dispatched trip"})
    return _commit(
        snapshot, Collection.VEHICLES, vehicle_id, _delete(Collection.VEHICLES, vehicle_id)
    )


# ── Drivers ───────────────────────────────────────────────────────────


def _build_driver(data: Mapping[str, Any], driver_id: str, today: date) -> Driver:
    errors: dict[str, str] = {}

    name = _text(data, "name")
    if not name:
        errors["name"] = "Name is required"
    license_no = _text(data, "license_no")
    if not license_no:
        errors["license_no"] = "License number required"
    phone = _text(data, "phone")
    if not phone:
        errors["phone"] = "Phone is required"

    license_expiry = _date(errors, data, "license_expiry")
    if "license_expiry" not in errors and license_expiry is None:
        errors["license_expiry"] = "Expiry date required"

    safety_score = _integer(errors, data, "safety_score")
    if safety_score is None:
        safety_score = 85
    if not 0 <= safety_score <= 100:
        errors["safety_score"] = "Safety score must be 0-100"

    trip_count = _integer(errors, data, "trip_count") or 0
    if trip_count < 0:
        errors["trip_count"] = "Trip count must be zero or greater"

    joined = _date(errors, data, "joined") or today
    status = _choice(errors, data, "status", DriverStatus, DriverStatus.ON_DUTY)
    category = _choice(
        errors, data, "category", LicenseCategory, LicenseCategory.LIGHT
    )

    if errors:
        raise ValidationError(errors)
    return Driver(
        id=driver_id,
        name=name,
        license_no=license_no,
        license_expiry=license_expiry,
        category=category,
        status=status,
        safety_score=safety_score,
        phone=phone,
        joined=joined,
        trip_count=trip_count,
    )


def create_driver(
    snapshot: FleetSnapshot,
    data: Mapping[str, Any],
    *,
    today: date,
    driver_id: Optional[str] = None,
) -> Transition:
    driver = _build_driver(data, driver_id or new_id(Collection.DRIVERS), today)
    return _commit(
        snapshot, Collection.DRIVERS, driver.id, _create(Collection.DRIVERS, driver)
    )


def update_driver(
    snapshot: FleetSnapshot,
    driver_id: str,
    changes: Mapping[str, Any],
    *,
    today: date,
) -> Transition:
    current = snapshot.get(Collection.DRIVERS, driver_id)
    if current is None:
        return _not_found(snapshot, Collection.DRIVERS, driver_id, "update_driver")

    merged = _merge(current, changes)
    driver = _build_driver(merged, current.id, today)

    if (
        driver.status != current.status
        and driver.status != DriverStatus.ON_DUTY
        and dispatched_trip_for_driver(snapshot, current.id)
    ):
        raise ValidationError({"status": "Driver is on a dispatched trip"})

    if driver == current:
        return _unchanged(snapshot, Collection.DRIVERS, current.id)
    return _commit(
        snapshot, Collection.DRIVERS, driver.id, _update(Collection.DRIVERS, driver)
    )


def delete_driver(snapshot: FleetSnapshot, driver_id: str) -> Transition:
    if snapshot.get(Collection.DRIVERS, driver_id) is None:
        return _not_found(snapshot, Collection.DRIVERS, driver_id, "delete_driver")
    if dispatched_trip_for_driver(snapshot, driver_id):
        raise ValidationError({"id": "Driver is on a dispatched trip"})
    return _commit(
        snapshot, Collection.DRIVERS, driver_id, _delete(Collection.DRIVERS, driver_id)
    )


# ── Trips ─────────────────────────────────────────────────────────────


def create_trip(
    snapshot: FleetSnapshot,
    data: Mapping[str, Any],
    *,
    today: date,
    trip_id: Optional[str] = None,
) -> Transition:
    """Create a Draft trip after checking vehicle, driver and cargo.

    A repeated ``idempotency_key`` returns the trip created the first time
    instead of a second copy.
    """
    idempotency_key = _optional_text(data, "idempotency_key")
    existing = _find_by_idempotency_key(snapshot.trips, idempotency_key)
    if existing is not None:
        return _unchanged(snapshot, Collection.TRIPS, existing.id)

    errors: dict[str, str] = {}

    vehicle_id = _text(data, "vehicle_id")
    vehicle = snapshot.get(Collection.VEHICLES, vehicle_id) if vehicle_id else None
    if not vehicle_id:
        errors["vehicle_id"] = "Select a vehicle"
    elif vehicle is None:
        errors["vehicle_id"] = "Vehicle not found"
    elif vehicle.status != VehicleStatus.AVAILABLE:
        errors["vehicle_id"] = f"Vehicle is {vehicle.status.value}, not Available"

    driver_id = _text(data, "driver_id")
    driver = snapshot.get(Collection.DRIVERS, driver_id) if driver_id else None
    if not driver_id:
        errors["driver_id"] = "Select a driver"
    elif driver is None:
        errors["driver_id"] = "Driver not found"
    elif not driver.license_valid(today):
        errors["driver_id"] = (
            f"Driver license expired on {driver.license_expiry.isoformat()}"
        )
    elif driver.status == DriverStatus.SUSPENDED:
        errors["driver_id"] = "Driver is suspended"
    elif dispatched_trip_for_driver(snapshot, driver.id):
        errors["driver_id"] = "Driver is already on a dispatched trip"

    origin = _text(data, "origin")
    if not origin:
        errors["origin"] = "Origin is required"
    destination = _text(data, "destination")
    if not destination:
        errors["destination"] = "Destination required"

    cargo_weight = _number(errors, data, "cargo_weight")
    if "cargo_weight" not in errors:
        if cargo_weight is None or cargo_weight <= 0:
            errors["cargo_weight"] = "Cargo weight required"
        elif vehicle is not None and cargo_weight > vehicle.capacity:
            errors["cargo_weight"] = (
                f"Exceeds vehicle capacity ({vehicle.capacity:,.0f} kg max)"
            )

    estimated_km = _number(errors, data, "estimated_km")
    if "estimated_km" not in errors and (estimated_km is None or estimated_km <= 0):
        errors["estimated_km"] = "Distance required"

    revenue = _number(errors, data, "revenue") or 0.0
    if revenue < 0:
        errors["revenue"] = "Revenue must be zero or greater"

    trip_date = _date(errors, data, "date")
    if "date" not in errors and trip_date is None:
        errors["date"] = "Date required"

    if errors:
        raise ValidationError(errors)

    trip = Trip(
        id=trip_id or new_id(Collection.TRIPS),
        vehicle_id=vehicle_id,
        driver_id=driver_id,
        origin=origin,
        destination=destination,
        cargo_type=_text(data, "cargo_type") or "Other",
        cargo_weight=cargo_weight,
        estimated_km=estimated_km,
        revenue=revenue,
        date=trip_date,
        notes=_text(data, "notes"),
        status=TripStatus.DRAFT,
        idempotency_key=idempotency_key,
    )
    return _commit(snapshot, Collection.TRIPS, trip.id, _create(Collection.TRIPS, trip))


def dispatch_trip(snapshot: FleetSnapshot, trip_id: str) -> Transition:
    trip = snapshot.get(Collection.TRIPS, trip_id)
    if trip is None:
        return _not_found(snapshot, Collection.TRIPS, trip_id, "dispatch_trip")

    dispatched = trip.transition_to(TripStatus.DISPATCHED)

    vehicle = snapshot.get(Collection.VEHICLES, trip.vehicle_id)
    driver = snapshot.get(Collection.DRIVERS, trip.driver_id)
    errors: dict[str, str] = {}
    if vehicle is not None and vehicle.status != VehicleStatus.AVAILABLE:
        errors["vehicle_id"] = f"Vehicle is {vehicle.status.value}, not Available"
    if driver is not None:
        if driver.status == DriverStatus.SUSPENDED:
            errors["driver_id"] = "Driver is suspended"
        elif dispatched_trip_for_driver(snapshot, driver.id, exclude=trip.id):
            errors["driver_id"] = "Driver is already on a dispatched trip"
    if errors:
        raise ValidationError(errors)

    intents = [_update(Collection.TRIPS, dispatched)]
    if vehicle is not None:
        intents.append(
            _update(Collection.VEHICLES, replace(vehicle, status=VehicleStatus.ON_TRIP))
        )
    if driver is not None and driver.status != DriverStatus.ON_DUTY:
        intents.append(
            _update(Collection.DRIVERS, replace(driver, status=DriverStatus.ON_DUTY))
        )
    return _commit(snapshot, Collection.TRIPS, trip.id, *intents)


def complete_trip(
    snapshot: FleetSnapshot, trip_id: str, final_odometer: Any
) -> Transition:
    trip = snapshot.get(Collection.TRIPS, trip_id)
    if trip is None:
        return _not_found(snapshot, Collection.TRIPS, trip_id, "complete_trip")

    errors: dict[str, str] = {}
    reading = _number(errors, {"final_odometer": final_odometer}, "final_odometer")
    completed = trip.transition_to(TripStatus.COMPLETED, final_odometer=reading)

    vehicle = snapshot.get(Collection.VEHICLES, trip.vehicle_id)
    if "final_odometer" not in errors:
        if reading is None or reading <= 0:
            errors["final_odometer"] = "Final odometer reading required"
        elif vehicle is not None and reading <= vehicle.odometer:
            errors["final_odometer"] = (
                f"Must be greater than current odometer ({vehicle.odometer:,.0f} km)"
            )
    if errors:
        raise ValidationError(errors)

    intents = [_update(Collection.TRIPS, completed)]
    if vehicle is not None:
        intents.append(
            _update(
                Collection.VEHICLES,
                replace(vehicle, status=VehicleStatus.AVAILABLE, odometer=reading),
            )
        )
    driver = snapshot.get(Collection.DRIVERS, trip.driver_id)
    if driver is not None and driver.status != DriverStatus.ON_DUTY:
        intents.append(
            _update(Collection.DRIVERS, replace(driver, status=DriverStatus.ON_DUTY))
        )
    return _commit(snapshot, Collection.TRIPS, trip.id, *intents)


def cancel_trip(snapshot: FleetSnapshot, trip_id: str) -> Transition:
    trip = snapshot.get(Collection.TRIPS, trip_id)
    if trip is None:
        return _not_found(snapshot, Collection.TRIPS, trip_id, "cancel_trip")

    was_dispatched = trip.status == TripStatus.DISPATCHED
    intents = [_update(Collection.TRIPS, trip.transition_to(TripStatus.CANCELLED))]

    if was_dispatched:
        vehicle = snapshot.get(Collection.VEHICLES, trip.vehicle_id)
        if vehicle is not None and vehicle.status != VehicleStatus.AVAILABLE:
            intents.append(
                _update(
                    Collection.VEHICLES,
                    replace(vehicle, status=VehicleStatus.AVAILABLE),
                )
            )
        driver = snapshot.get(Collection.DRIVERS, trip.driver_id)
        if driver is not None and driver.status != DriverStatus.ON_DUTY:
            intents.append(
                _update(Collection.DRIVERS, replace(driver, status=DriverStatus.ON_DUTY))
            )
    return _commit(snapshot, Collection.TRIPS, trip.id, *intents)


# ── Maintenance ───────────────────────────────────────────────────────


def add_maintenance_log(
    snapshot: FleetSnapshot,
    data: Mapping[str, Any],
    *,
    log_id: Optional[str] = None,
) -> Transition:
    errors: dict[str, str] = {}
    completed = bool(data.get("completed") or False)

    vehicle_id = _text(data, "vehicle_id")
    vehicle = snapshot.get(Collection.VEHICLES, vehicle_id) if vehicle_id else None
    if not vehicle_id:
        errors["vehicle_id"] = "Select a vehicle"
    elif vehicle is None:
        errors["vehicle_id"] = "Vehicle not found"
    elif not completed and vehicle.status == VehicleStatus.ON_TRIP:
        errors["vehicle_id"] = "Vehicle is on a trip"
    elif not completed and vehicle.status == VehicleStatus.RETIRED:
        errors["vehicle_id"] = "Vehicle is retired"

    cost = _number(errors, data, "cost")
    if "cost" not in errors and (cost is None or cost <= 0):
        errors["cost"] = "Cost is required"
    log_date = _date(errors, data, "date")
    if "date" not in errors and log_date is None:
        errors["date"] = "Date is required"

    if errors:
        raise ValidationError(errors)

    log = MaintenanceLog(
        id=log_id or new_id(Collection.MAINTENANCE_LOGS),
        vehicle_id=vehicle_id,
        service_type=_text(data, "service_type") or "Other",
        cost=cost,
        date=log_date,
        mechanic=_text(data, "mechanic"),
        notes=_text(data, "notes"),
        completed=completed,
    )
    intents = [_create(Collection.MAINTENANCE_LOGS, log)]
    if not completed and vehicle.status != VehicleStatus.IN_SHOP:
        intents.append(
            _update(Collection.VEHICLES, replace(vehicle, status=VehicleStatus.IN_SHOP))
        )
    return _commit(snapshot, Collection.MAINTENANCE_LOGS, log.id, *intents)


def complete_maintenance_log(snapshot: FleetSnapshot, log_id: str) -> Transition:
    log = snapshot.get(Collection.MAINTENANCE_LOGS, log_id)
    if log is None:
        return _not_found(
            snapshot, Collection.MAINTENANCE_LOGS, log_id, "complete_maintenance_log"
        )
    if log.completed:
        return _unchanged(snapshot, Collection.MAINTENANCE_LOGS, log.id)

    intents = [_update(Collection.MAINTENANCE_LOGS, replace(log, completed=True))]
    vehicle = snapshot.get(Collection.VEHICLES, log.vehicle_id)
    if (
        vehicle is not None
        and vehicle.status != VehicleStatus.AVAILABLE
        and not active_maintenance_logs(snapshot, vehicle.id, exclude=log.id)
    ):
        intents.append(
            _update(Collection.VEHICLES, replace(vehicle, status=VehicleStatus.AVAILABLE))
        )
    return _commit(snapshot, Collection.MAINTENANCE_LOGS, log.id, *intents)


def delete_maintenance_log(snapshot: FleetSnapshot, log_id: str) -> Transition:
    log = snapshot.get(Collection.MAINTENANCE_LOGS, log_id)
    if log is None:
        return _not_found(
            snapshot, Collection.MAINTENANCE_LOGS, log_id, "delete_maintenance_log"
        )
    if not log.completed:
        logger.warning(
            "Deleting active maintenance log %s; vehicle %s keeps its status",
            log.id,
            log.vehicle_id,
        )
    return _commit(
        snapshot,
        Collection.MAINTENANCE_LOGS,
        log.id,
        _delete(Collection.MAINTENANCE_LOGS, log.id),
    )


# ── Expenses ──────────────────────────────────────────────────────────


def add_expense(
    snapshot: FleetSnapshot,
    data: Mapping[str, Any],
    *,
    expense_id: Optional[str] = None,
) -> Transition:
    idempotency_key = _optional_text(data, "idempotency_key")
    existing = _find_by_idempotency_key(snapshot.expenses, idempotency_key)
    if existing is not None:
        return _unchanged(snapshot, Collection.EXPENSES, existing.id)

    errors: dict[str, str] = {}

    vehicle_id = _text(data, "vehicle_id")
    if not vehicle_id:
        errors["vehicle_id"] = "Select a vehicle"
    elif snapshot.get(Collection.VEHICLES, vehicle_id) is None:
        errors["vehicle_id"] = "Vehicle not found"

    expense_type = _choice(errors, data, "expense_type", ExpenseType, ExpenseType.FUEL)
    cost = _number(errors, data, "cost")
    if "cost" not in errors and (cost is None or cost <= 0):
        errors["cost"] = "Cost is required"
    expense_date = _date(errors, data, "date")
    if "date" not in errors and expense_date is None:
        errors["date"] = "Date is required"

    liters = _number(errors, data, "liters")
    if expense_type not in ENERGY_EXPENSE_TYPES:
        liters = None
    elif liters is not None and liters < 0:
        errors["liters"] = "Liters must be zero or greater"

    odometer = _number(errors, data, "odometer")
    if odometer is not None and odometer < 0:
        errors["odometer"] = "Odometer must be zero or greater"

    if errors:
        raise ValidationError(errors)

    expense = Expense(
        id=expense_id or new_id(Collection.EXPENSES),
        vehicle_id=vehicle_id,
        expense_type=expense_type,
        cost=cost,
        date=expense_date,
        liters=liters,
        trip_id=_optional_text(data, "trip_id"),
        odometer=odometer,
        notes=_text(data, "notes"),
        idempotency_key=idempotency_key,
    )
    return _commit(
        snapshot, Collection.EXPENSES, expense.id, _create(Collection.EXPENSES, expense)
    )


def delete_expense(snapshot: FleetSnapshot, expense_id: str) -> Transition:
    if snapshot.get(Collection.EXPENSES, expense_id) is None:
        return _not_found(snapshot, Collection.EXPENSES, expense_id, "delete_expense")
    return _commit(
        snapshot, Collection.EXPENSES, expense_id, _delete(Collection.EXPENSES, expense_id)
    )
