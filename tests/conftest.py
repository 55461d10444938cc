"""
Shared test fixtures.

Uses an in-memory SQLite database (via aiosqlite) so tests run without
Docker / PostgreSQL / Redis.  The production models carry no
PostgreSQL-only column types, so the real ``Base.metadata`` is created
as-is.  Redis is replaced by ``AsyncMock``.
"""

from datetime import date, timedelta
from typing import AsyncGenerator, Optional
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from src.domain.entities import (
    Driver,
    Expense,
    FleetSnapshot,
    MaintenanceLog,
    Trip,
    Vehicle,
)
from src.domain.enums import DriverStatus, ExpenseType, TripStatus, VehicleStatus
from src.infrastructure.database import Base
from src.infrastructure import models  # noqa: F401  (registers tables)

TODAY = date(2025, 6, 1)

TEST_DB_URL = "sqlite+aiosqlite://"


# ── Entity factories ──────────────────────────────────────────────────


def make_vehicle(
    id: str = "V1",
    *,
    capacity: float = 5000,
    odometer: float = 10000,
    status: VehicleStatus = VehicleStatus.AVAILABLE,
    acquisition_cost: float = 0.0,
    name: str = "",
) -> Vehicle:
    return Vehicle(
        id=id,
        name=name or f"Truck {id}",
        plate=f"PL-{id}",
        capacity=capacity,
        odometer=odometer,
        acquisition_cost=acquisition_cost,
        year=2020,
        status=status,
    )


def make_driver(
    id: str = "D1",
    *,
    license_expiry: date = TODAY + timedelta(days=365),
    status: DriverStatus = DriverStatus.ON_DUTY,
    name: str = "",
) -> Driver:
    return Driver(
        id=id,
        name=name or f"Driver {id}",
        license_no=f"LIC-{id}",
        license_expiry=license_expiry,
        status=status,
        phone="555-0100",
        joined=TODAY - timedelta(days=400),
    )


def make_trip(
    id: str = "T1",
    *,
    vehicle_id: str = "V1",
    driver_id: str = "D1",
    cargo_weight: float = 1000,
    estimated_km: float = 100,
    revenue: float = 0.0,
    status: TripStatus = TripStatus.DRAFT,
) -> Trip:
    return Trip(
        id=id,
        vehicle_id=vehicle_id,
        driver_id=driver_id,
        origin="Depot",
        destination="Port",
        cargo_weight=cargo_weight,
        estimated_km=estimated_km,
        date=TODAY,
        revenue=revenue,
        status=status,
    )


def make_log(
    id: str = "M1",
    *,
    vehicle_id: str = "V1",
    cost: float = 500,
    completed: bool = False,
) -> MaintenanceLog:
    return MaintenanceLog(
        id=id,
        vehicle_id=vehicle_id,
        service_type="Oil Change",
        cost=cost,
        date=TODAY,
        completed=completed,
    )


def make_expense(
    id: str = "E1",
    *,
    vehicle_id: str = "V1",
    expense_type: ExpenseType = ExpenseType.FUEL,
    cost: float = 100,
    liters: Optional[float] = None,
) -> Expense:
    return Expense(
        id=id,
        vehicle_id=vehicle_id,
        expense_type=expense_type,
        cost=cost,
        date=TODAY,
        liters=liters,
    )


def trip_payload(**overrides) -> dict:
    payload = {
        "vehicle_id": "V1",
        "driver_id": "D1",
        "origin": "Depot",
        "destination": "Port",
        "cargo_weight": 4000,
        "estimated_km": 120,
        "date": TODAY.isoformat(),
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def fleet_snapshot() -> FleetSnapshot:
    """One Available vehicle (5000 kg, 10000 km) and one On Duty driver."""
    return FleetSnapshot(vehicles=(make_vehicle(),), drivers=(make_driver(),))


@pytest.fixture
def mock_redis() -> AsyncMock:
    redis = AsyncMock()
    redis.set = AsyncMock(return_value=True)
    redis.eval = AsyncMock(return_value=1)
    redis.publish = AsyncMock(return_value=1)
    return redis


# ── Database ──────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create tables on a fresh in-memory database, then drop everything."""
    engine = create_async_engine(TEST_DB_URL, echo=False, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session
