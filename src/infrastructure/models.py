"""
SQLAlchemy ORM models  (maps to PostgreSQL).

Tables
------
* ``vehicles``          -- fleet vehicles with capacity and odometer
* ``drivers``           -- drivers with licence and duty status
* ``trips``             -- trip lifecycle records
* ``maintenance_logs``  -- service logs; an open log keeps its vehicle In Shop
* ``expenses``          -- fuel and operational costs (immutable)

Cross-table references (``vehicle_id``, ``driver_id``, ``trip_id``) are
deliberately *not* foreign keys: deleting a vehicle or driver leaves
dangling ids that readers render as "unknown".

Indexes
-------
* **B-Tree** on ``status`` and on every reference column, used when the
  state machine looks for a vehicle's or driver's dispatched trip.
* **Unique** ``idempotency_key`` on trips and expenses so a retried create
  cannot insert twice.
"""

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    Float,
    Index,
    Integer,
    String,
    Text,
    func,
)

from .database import Base
from src.domain.enums import (
    DriverStatus,
    ExpenseType,
    FuelType,
    LicenseCategory,
    Region,
    TripStatus,
    VehicleStatus,
)


class TimestampMixin:
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class VehicleModel(TimestampMixin, Base):
    __tablename__ = "vehicles"

    id = Column(String(32), primary_key=True)
    name = Column(String(120), nullable=False)
    plate = Column(String(32), nullable=False)
    vehicle_type = Column(String(40), default="Truck", nullable=False)
    capacity = Column(Float, nullable=False)
    odometer = Column(Float, default=0.0, nullable=False)
    acquisition_cost = Column(Float, default=0.0, nullable=False)
    year = Column(Integer, nullable=False)
    fuel_type = Column(Enum(FuelType), default=FuelType.DIESEL, nullable=False)
    region = Column(Enum(Region), default=Region.NORTH, nullable=False)
    status = Column(
        Enum(VehicleStatus), default=VehicleStatus.AVAILABLE, nullable=False
    )

    __table_args__ = (Index("idx_vehicles_status", "status"),)


class DriverModel(TimestampMixin, Base):
    __tablename__ = "drivers"

    id = Column(String(32), primary_key=True)
    name = Column(String(120), nullable=False)
    license_no = Column(String(64), nullable=False)
    license_expiry = Column(Date, nullable=False)
    category = Column(
        Enum(LicenseCategory), default=LicenseCategory.LIGHT, nullable=False
    )
    status = Column(Enum(DriverStatus), default=DriverStatus.ON_DUTY, nullable=False)
    safety_score = Column(Integer, default=85, nullable=False)
    phone = Column(String(32), default="", nullable=False)
    joined = Column(Date, nullable=True)
    trip_count = Column(Integer, default=0, nullable=False)

    __table_args__ = (Index("idx_drivers_status", "status"),)


class TripModel(TimestampMixin, Base):
    __tablename__ = "trips"

    id = Column(String(32), primary_key=True)
    vehicle_id = Column(String(32), nullable=False)
    driver_id = Column(String(32), nullable=False)
    origin = Column(String(120), nullable=False)
    destination = Column(String(120), nullable=False)
    cargo_type = Column(String(60), default="Other", nullable=False)
    cargo_weight = Column(Float, nullable=False)
    estimated_km = Column(Float, nullable=False)
    revenue = Column(Float, default=0.0, nullable=False)
    date = Column(Date, nullable=False)
    notes = Column(Text, default="", nullable=False)
    status = Column(Enum(TripStatus), default=TripStatus.DRAFT, nullable=False)
    final_odometer = Column(Float, nullable=True)
    idempotency_key = Column(String(64), unique=True, nullable=True)

    __table_args__ = (
        Index("idx_trips_status", "status"),
        Index("idx_trips_vehicle", "vehicle_id"),
        Index("idx_trips_driver", "driver_id"),
    )


class MaintenanceLogModel(TimestampMixin, Base):
    __tablename__ = "maintenance_logs"

    id = Column(String(32), primary_key=True)
    vehicle_id = Column(String(32), nullable=False)
    service_type = Column(String(60), default="Other", nullable=False)
    cost = Column(Float, nullable=False)
    date = Column(Date, nullable=False)
    mechanic = Column(String(120), default="", nullable=False)
    notes = Column(Text, default="", nullable=False)
    completed = Column(Boolean, default=False, nullable=False)

    __table_args__ = (
        Index("idx_maintenance_vehicle", "vehicle_id"),
        Index("idx_maintenance_completed", "completed"),
    )


class ExpenseModel(TimestampMixin, Base):
    __tablename__ = "expenses"

    id = Column(String(32), primary_key=True)
    vehicle_id = Column(String(32), nullable=False)
    expense_type = Column(Enum(ExpenseType), default=ExpenseType.FUEL, nullable=False)
    cost = Column(Float, nullable=False)
    date = Column(Date, nullable=False)
    liters = Column(Float, nullable=True)
    trip_id = Column(String(32), nullable=True)
    odometer = Column(Float, nullable=True)
    notes = Column(Text, default="", nullable=False)
    idempotency_key = Column(String(64), unique=True, nullable=True)

    __table_args__ = (Index("idx_expenses_vehicle", "vehicle_id"),)
