"""Initial schema: vehicles, drivers, trips, maintenance logs, expenses.

Revision ID: 001
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa

from src.domain.enums import (
    DriverStatus,
    ExpenseType,
    FuelType,
    LicenseCategory,
    Region,
    TripStatus,
    VehicleStatus,
)


revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    ]


def upgrade() -> None:
    # ── vehicles ──────────────────────────────────────────────────────
    op.create_table(
        "vehicles",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("plate", sa.String(32), nullable=False),
        sa.Column("vehicle_type", sa.String(40), nullable=False),
        sa.Column("capacity", sa.Float, nullable=False),
        sa.Column("odometer", sa.Float, nullable=False),
        sa.Column("acquisition_cost", sa.Float, nullable=False),
        sa.Column("year", sa.Integer, nullable=False),
        sa.Column("fuel_type", sa.Enum(FuelType), nullable=False),
        sa.Column("region", sa.Enum(Region), nullable=False),
        sa.Column("status", sa.Enum(VehicleStatus), nullable=False),
        *_timestamps(),
    )
    op.create_index("idx_vehicles_status", "vehicles", ["status"])

    # ── drivers ───────────────────────────────────────────────────────
    op.create_table(
        "drivers",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("license_no", sa.String(64), nullable=False),
        sa.Column("license_expiry", sa.Date, nullable=False),
        sa.Column("category", sa.Enum(LicenseCategory), nullable=False),
        sa.Column("status", sa.Enum(DriverStatus), nullable=False),
        sa.Column("safety_score", sa.Integer, nullable=False),
        sa.Column("phone", sa.String(32), nullable=False),
        sa.Column("joined", sa.Date, nullable=True),
        sa.Column("trip_count", sa.Integer, nullable=False),
        *_timestamps(),
    )
    op.create_index("idx_drivers_status", "drivers", ["status"])

    # ── trips ─────────────────────────────────────────────────────────
    op.create_table(
        "trips",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("vehicle_id", sa.String(32), nullable=False),
        sa.Column("driver_id", sa.String(32), nullable=False),
        sa.Column("origin", sa.String(120), nullable=False),
        sa.Column("destination", sa.String(120), nullable=False),
        sa.Column("cargo_type", sa.String(60), nullable=False),
        sa.Column("cargo_weight", sa.Float, nullable=False),
        sa.Column("estimated_km", sa.Float, nullable=False),
        sa.Column("revenue", sa.Float, nullable=False),
        sa.Column("date", sa.Date, nullable=False),
        sa.Column("notes", sa.Text, nullable=False),
        sa.Column("status", sa.Enum(TripStatus), nullable=False),
        sa.Column("final_odometer", sa.Float, nullable=True),
        sa.Column("idempotency_key", sa.String(64), unique=True, nullable=True),
        *_timestamps(),
    )
    op.create_index("idx_trips_status", "trips", ["status"])
    op.create_index("idx_trips_vehicle", "trips", ["vehicle_id"])
    op.create_index("idx_trips_driver", "trips", ["driver_id"])

    # ── maintenance_logs ──────────────────────────────────────────────
    op.create_table(
        "maintenance_logs",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("vehicle_id", sa.String(32), nullable=False),
        sa.Column("service_type", sa.String(60), nullable=False),
        sa.Column("cost", sa.Float, nullable=False),
        sa.Column("date", sa.Date, nullable=False),
        sa.Column("mechanic", sa.String(120), nullable=False),
        sa.Column("notes", sa.Text, nullable=False),
        sa.Column("completed", sa.Boolean, nullable=False),
        *_timestamps(),
    )
    op.create_index("idx_maintenance_vehicle", "maintenance_logs", ["vehicle_id"])
    op.create_index("idx_maintenance_completed", "maintenance_logs", ["completed"])

    # ── expenses ──────────────────────────────────────────────────────
    op.create_table(
        "expenses",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("vehicle_id", sa.String(32), nullable=False),
        sa.Column("expense_type", sa.Enum(ExpenseType), nullable=False),
        sa.Column("cost", sa.Float, nullable=False),
        sa.Column("date", sa.Date, nullable=False),
        sa.Column("liters", sa.Float, nullable=True),
        sa.Column("trip_id", sa.String(32), nullable=True),
        sa.Column("odometer", sa.Float, nullable=True),
        sa.Column("notes", sa.Text, nullable=False),
        sa.Column("idempotency_key", sa.String(64), unique=True, nullable=True),
        *_timestamps(),
    )
    op.create_index("idx_expenses_vehicle", "expenses", ["vehicle_id"])


def downgrade() -> None:
    op.drop_table("expenses")
    op.drop_table("maintenance_logs")
    op.drop_table("trips")
    op.drop_table("drivers")
    op.drop_table("vehicles")
    for enum_name in (
        "expensetype",
        "tripstatus",
        "licensecategory",
        "driverstatus",
        "vehiclestatus",
        "region",
        "fueltype",
    ):
        op.execute(f"DROP TYPE IF EXISTS {enum_name}")
