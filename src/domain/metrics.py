"""
Derived fleet metrics
=====================

Pure functions over a ``FleetSnapshot``.  Nothing here is persisted; the
dashboard recomputes them on every read.

Dashboard KPIs
--------------
* active_fleet        = count(vehicles in {Available, On Trip})
* maintenance_alerts  = count(vehicles In Shop)
* utilization_rate    = round(On Trip / max(non-Retired, 1) x 100)
* pending_cargo       = count(Draft trips)
* total_revenue       = sum(revenue of Completed trips)
* total_expenses      = sum(expense cost) + sum(maintenance cost)

Reports
-------
Per-vehicle ROI, fuel efficiency, operating cost, cost per completed trip,
driver performance and licence status.

Complexity: O(V + D + T + M + E) per report; collections are grouped by
vehicle / driver id in a single pass.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from .entities import Driver, FleetSnapshot
from .enums import ENERGY_EXPENSE_TYPES, TripStatus, VehicleStatus


def _round_half_up(value: float, places: int = 0) -> float:
    """Round with 0.5 going up instead of Python's banker's rounding."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


# ── Dashboard ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class DashboardKPIs:
    active_fleet: int
    maintenance_alerts: int
    utilization_rate: int
    pending_cargo: int
    total_revenue: float
    total_expenses: float


def active_fleet(snapshot: FleetSnapshot) -> int:
    return sum(
        1
        for v in snapshot.vehicles
        if v.status in (VehicleStatus.AVAILABLE, VehicleStatus.ON_TRIP)
    )


def maintenance_alerts(snapshot: FleetSnapshot) -> int:
    return sum(1 for v in snapshot.vehicles if v.status == VehicleStatus.IN_SHOP)


def utilization_rate(snapshot: FleetSnapshot) -> int:
    on_trip = sum(1 for v in snapshot.vehicles if v.status == VehicleStatus.ON_TRIP)
    in_service = sum(1 for v in snapshot.vehicles if v.status != VehicleStatus.RETIRED)
    return int(_round_half_up(on_trip / max(in_service, 1) * 100))


def pending_cargo(snapshot: FleetSnapshot) -> int:
    return sum(1 for t in snapshot.trips if t.status == TripStatus.DRAFT)


def total_revenue(snapshot: FleetSnapshot) -> float:
    return sum(
        t.revenue or 0.0 for t in snapshot.trips if t.status == TripStatus.COMPLETED
    )


def total_expenses(snapshot: FleetSnapshot) -> float:
    return sum(e.cost or 0.0 for e in snapshot.expenses) + sum(
        m.cost or 0.0 for m in snapshot.maintenance_logs
    )


def dashboard(snapshot: FleetSnapshot) -> DashboardKPIs:
    return DashboardKPIs(
        active_fleet=active_fleet(snapshot),
        maintenance_alerts=maintenance_alerts(snapshot),
        utilization_rate=utilization_rate(snapshot),
        pending_cargo=pending_cargo(snapshot),
        total_revenue=total_revenue(snapshot),
        total_expenses=total_expenses(snapshot),
    )


# ── Per-vehicle reports ───────────────────────────────────────────────


@dataclass(frozen=True)
class VehicleCost:
    vehicle_id: str
    name: str
    fuel_cost: float
    other_cost: float
    maintenance_cost: float
    total_liters: float
    completed_km: float
    completed_trips: int
    revenue: float

    @property
    def total_cost(self) -> float:
        return self.fuel_cost + self.other_cost + self.maintenance_cost

    @property
    def km_per_liter(self) -> Optional[float]:
        if self.total_liters > 0 and self.completed_km > 0:
            return round(self.completed_km / self.total_liters, 2)
        return None

    @property
    def cost_per_completed_trip(self) -> Optional[float]:
        if not self.completed_trips:
            return None
        return round(
            (self.fuel_cost + self.maintenance_cost) / self.completed_trips, 2
        )


def vehicle_costs(snapshot: FleetSnapshot) -> list[VehicleCost]:
    """Operating cost per vehicle, highest total first."""
    fuel: dict[str, float] = defaultdict(float)
    other: dict[str, float] = defaultdict(float)
    liters: dict[str, float] = defaultdict(float)
    for e in snapshot.expenses:
        if e.expense_type in ENERGY_EXPENSE_TYPES:
            fuel[e.vehicle_id] += e.cost
        else:
            other[e.vehicle_id] += e.cost
        if e.liters and e.liters > 0:
            liters[e.vehicle_id] += e.liters

    maintenance: dict[str, float] = defaultdict(float)
    for m in snapshot.maintenance_logs:
        maintenance[m.vehicle_id] += m.cost or 0.0

    km: dict[str, float] = defaultdict(float)
    trips: dict[str, int] = defaultdict(int)
    revenue: dict[str, float] = defaultdict(float)
    for t in snapshot.trips:
        if t.status == TripStatus.COMPLETED:
            km[t.vehicle_id] += t.estimated_km or 0.0
            trips[t.vehicle_id] += 1
            revenue[t.vehicle_id] += t.revenue or 0.0

    rows = [
        VehicleCost(
            vehicle_id=v.id,
            name=v.name,
            fuel_cost=fuel[v.id],
            other_cost=other[v.id],
            maintenance_cost=maintenance[v.id],
            total_liters=liters[v.id],
            completed_km=km[v.id],
            completed_trips=trips[v.id],
            revenue=revenue[v.id],
        )
        for v in snapshot.vehicles
    ]
    return sorted(rows, key=lambda r: r.total_cost, reverse=True)


@dataclass(frozen=True)
class VehicleROI:
    vehicle_id: str
    name: str
    revenue: float
    total_cost: float
    acquisition_cost: float
    roi: float  # percent


def vehicle_roi(snapshot: FleetSnapshot) -> list[VehicleROI]:
    """(revenue - operating cost) / acquisition cost, best first.

    Vehicles without an acquisition cost are skipped.
    """
    costs = {c.vehicle_id: c for c in vehicle_costs(snapshot)}
    rows = []
    for v in snapshot.vehicles:
        if not v.acquisition_cost or v.acquisition_cost <= 0:
            continue
        c = costs[v.id]
        rows.append(
            VehicleROI(
                vehicle_id=v.id,
                name=v.name,
                revenue=c.revenue,
                total_cost=c.total_cost,
                acquisition_cost=v.acquisition_cost,
                roi=round((c.revenue - c.total_cost) / v.acquisition_cost * 100, 2),
            )
        )
    return sorted(rows, key=lambda r: r.roi, reverse=True)


def fuel_efficiency(snapshot: FleetSnapshot) -> dict[str, float]:
    """km per litre for vehicles that have both distance and fuel logged."""
    return {
        c.vehicle_id: c.km_per_liter
        for c in vehicle_costs(snapshot)
        if c.km_per_liter is not None
    }


# ── Drivers ───────────────────────────────────────────────────────────


@dataclass(frozen=True)
class DriverPerformance:
    driver_id: str
    name: str
    trips: int
    completed: int
    revenue: float

    @property
    def completion_rate(self) -> int:
        return int(_round_half_up(self.completed / self.trips * 100)) if self.trips else 0


def driver_performance(snapshot: FleetSnapshot) -> list[DriverPerformance]:
    trips: dict[str, int] = defaultdict(int)
    completed: dict[str, int] = defaultdict(int)
    revenue: dict[str, float] = defaultdict(float)
    for t in snapshot.trips:
        trips[t.driver_id] += 1
        if t.status == TripStatus.COMPLETED:
            completed[t.driver_id] += 1
            revenue[t.driver_id] += t.revenue or 0.0

    rows = [
        DriverPerformance(
            driver_id=d.id,
            name=d.name,
            trips=trips[d.id],
            completed=completed[d.id],
            revenue=revenue[d.id],
        )
        for d in snapshot.drivers
        if trips[d.id] > 0
    ]
    return sorted(rows, key=lambda r: r.revenue, reverse=True)


@dataclass(frozen=True)
class LicenseStatus:
    label: str  # "Valid" | "Expiring" | "Expired"
    days: int


def license_status(driver: Driver, today: date, warning_days: int = 60) -> LicenseStatus:
    days = driver.days_to_expiry(today)
    if days < 0:
        return LicenseStatus("Expired", days)
    if days <= warning_days:
        return LicenseStatus("Expiring", days)
    return LicenseStatus("Valid", days)
