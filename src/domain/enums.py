"""Domain enumerations and state-transition rules."""

import enum


class VehicleStatus(str, enum.Enum):
    AVAILABLE = "Available"
    ON_TRIP = "On Trip"
    IN_SHOP = "In Shop"
    RETIRED = "Retired"


class DriverStatus(str, enum.Enum):
    ON_DUTY = "On Duty"
    OFF_DUTY = "Off Duty"
    SUSPENDED = "Suspended"


class TripStatus(str, enum.Enum):
    DRAFT = "Draft"
    DISPATCHED = "Dispatched"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


# State machine: maps current status -> set of valid next statuses
TRIP_TRANSITIONS: dict[TripStatus, set[TripStatus]] = {
    TripStatus.DRAFT: {TripStatus.DISPATCHED, TripStatus.CANCELLED},
    TripStatus.DISPATCHED: {TripStatus.COMPLETED, TripStatus.CANCELLED},
    TripStatus.COMPLETED: set(),
    TripStatus.CANCELLED: set(),
}


class FuelType(str, enum.Enum):
    DIESEL = "Diesel"
    PETROL = "Petrol"
    CNG = "CNG"
    ELECTRIC = "Electric"
    HYBRID = "Hybrid"


class Region(str, enum.Enum):
    NORTH = "North"
    SOUTH = "South"
    EAST = "East"
    WEST = "West"
    CENTRAL = "Central"


class LicenseCategory(str, enum.Enum):
    LIGHT = "Light"
    MEDIUM = "Medium"
    HEAVY = "Heavy"
    HAZARDOUS = "Hazardous"


class ExpenseType(str, enum.Enum):
    FUEL = "Fuel"
    TOLL = "Toll"
    PARKING = "Parking"
    CHARGING = "Charging"
    DRIVER_ALLOWANCE = "Driver Allowance"
    MINOR_REPAIR = "Repair (Minor)"
    INSURANCE = "Insurance"
    PERMIT = "Permit"
    CLEANING = "Cleaning"
    OTHER = "Other"


# Expense types that carry a litres (or kWh) reading
ENERGY_EXPENSE_TYPES = frozenset({ExpenseType.FUEL, ExpenseType.CHARGING})


class UserRole(str, enum.Enum):
    MANAGER = "Manager"
    DISPATCHER = "Dispatcher"


class Collection(str, enum.Enum):
    VEHICLES = "vehicles"
    DRIVERS = "drivers"
    TRIPS = "trips"
    MAINTENANCE_LOGS = "maintenance_logs"
    EXPENSES = "expenses"


class WriteAction(str, enum.Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
