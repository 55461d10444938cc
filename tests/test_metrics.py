"""Unit tests for dashboard KPIs and reports."""

from datetime import timedelta

import pytest

from src.domain import metrics
from src.domain.entities import FleetSnapshot
from src.domain.enums import ExpenseType, TripStatus, VehicleStatus
from tests.conftest import (
    TODAY,
    make_driver,
    make_expense,
    make_log,
    make_trip,
    make_vehicle,
)


@pytest.fixture
def busy_fleet() -> FleetSnapshot:
    return FleetSnapshot(
        vehicles=(
            make_vehicle("V1", status=VehicleStatus.ON_TRIP, acquisition_cost=10000),
            make_vehicle("V2", status=VehicleStatus.AVAILABLE, acquisition_cost=20000),
            make_vehicle("V3", status=VehicleStatus.IN_SHOP),
            make_vehicle("V4", status=VehicleStatus.RETIRED),
        ),
        drivers=(make_driver("D1"), make_driver("D2")),
        trips=(
            make_trip("T1", vehicle_id="V1", status=TripStatus.DISPATCHED, revenue=900),
            make_trip("T2", vehicle_id="V2", status=TripStatus.COMPLETED, revenue=1500,
                      estimated_km=300),
            make_trip("T3", vehicle_id="V2", driver_id="D2", status=TripStatus.DRAFT),
            make_trip("T4", vehicle_id="V2", driver_id="D2", status=TripStatus.CANCELLED,
                      revenue=700),
        ),
        maintenance_logs=(
            make_log("M1", vehicle_id="V3", cost=450),
            make_log("M2", vehicle_id="V2", cost=100, completed=True),
        ),
        expenses=(
            make_expense("E1", vehicle_id="V2", cost=250, liters=50),
            make_expense("E2", vehicle_id="V2", expense_type=ExpenseType.TOLL, cost=50),
            make_expense("E3", vehicle_id="V1", cost=80, liters=20),
        ),
    )


class TestDashboard:
    def test_kpis(self, busy_fleet):
        kpis = metrics.dashboard(busy_fleet)
        assert kpis.active_fleet == 2
        assert kpis.maintenance_alerts == 1
        assert kpis.utilization_rate == 33  # 1 On Trip of 3 in service
        assert kpis.pending_cargo == 1
        assert kpis.total_revenue == 1500
        assert kpis.total_expenses == 250 + 50 + 80 + 450 + 100

    def test_empty_fleet(self):
        kpis = metrics.dashboard(FleetSnapshot())
        assert kpis.utilization_rate == 0
        assert kpis.total_revenue == 0

    def test_utilization_rounds_half_up(self):
        # 1 of 8 -> 12.5% -> 13
        vehicles = (make_vehicle("V0", status=VehicleStatus.ON_TRIP),) + tuple(
            make_vehicle(f"V{i}") for i in range(1, 8)
        )
        assert metrics.utilization_rate(FleetSnapshot(vehicles=vehicles)) == 13


class TestVehicleReports:
    def test_costs_sorted_by_total(self, busy_fleet):
        rows = metrics.vehicle_costs(busy_fleet)
        assert [r.vehicle_id for r in rows][:2] == ["V3", "V2"]
        v2 = next(r for r in rows if r.vehicle_id == "V2")
        assert v2.fuel_cost == 250
        assert v2.other_cost == 50
        assert v2.maintenance_cost == 100
        assert v2.total_cost == 400
        assert v2.completed_trips == 1
        assert v2.cost_per_completed_trip == 350.0

    def test_cost_per_trip_without_trips(self, busy_fleet):
        v3 = next(r for r in metrics.vehicle_costs(busy_fleet) if r.vehicle_id == "V3")
        assert v3.cost_per_completed_trip is None

    def test_fuel_efficiency_needs_distance_and_fuel(self, busy_fleet):
        # V1 has fuel but no completed trip
        assert metrics.fuel_efficiency(busy_fleet) == {"V2": 6.0}

    def test_roi_skips_vehicles_without_acquisition_cost(self, busy_fleet):
        rows = metrics.vehicle_roi(busy_fleet)
        assert [r.vehicle_id for r in rows] == ["V2", "V1"]
        v2 = rows[0]
        assert v2.roi == round((1500 - 400) / 20000 * 100, 2)
        assert rows[1].roi == round(-80 / 10000 * 100, 2)


class TestDriverReports:
    def test_performance(self, busy_fleet):
        rows = {r.driver_id: r for r in metrics.driver_performance(busy_fleet)}
        assert rows["D1"].trips == 2
        assert rows["D1"].completed == 1
        assert rows["D1"].completion_rate == 50
        assert rows["D1"].revenue == 1500
        assert rows["D2"].completion_rate == 0

    def test_drivers_without_trips_are_omitted(self):
        snapshot = FleetSnapshot(drivers=(make_driver("D1"),))
        assert metrics.driver_performance(snapshot) == []

    @pytest.mark.parametrize(
        "offset, label",
        [(-1, "Expired"), (0, "Expiring"), (60, "Expiring"), (61, "Valid")],
    )
    def test_license_status(self, offset, label):
        driver = make_driver(license_expiry=TODAY + timedelta(days=offset))
        status = metrics.license_status(driver, TODAY, warning_days=60)
        assert status.label == label
        assert status.days == offset
