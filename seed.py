"""
Seed script -- populates the database with a sample fleet for reviewers.

Run after migrations:
    python seed.py

Creates, through the same operations the API uses:
  - 6 vehicles (one retired)
  - 5 drivers (one suspended, one with an expired licence)
  - 6 trips (mix of Draft, Dispatched, Completed, Cancelled)
  - 3 maintenance logs (one still open, so its vehicle is In Shop)
  - 6 expenses (fuel, charging, tolls)
"""

import asyncio
from datetime import date, timedelta

from sqlalchemy import text

from src.domain import fleet
from src.domain.entities import FleetSnapshot
from src.domain.enums import Collection
from src.infrastructure.database import async_session_factory, engine
from src.infrastructure.repositories import FleetRepository

TODAY = date.today()


VEHICLES = [
    {"name": "Tata Prima 4028", "plate": "MH-12-AB-1001", "vehicle_type": "Truck",
     "capacity": 25000, "odometer": 84210, "acquisition_cost": 3200000, "year": 2019,
     "fuel_type": "Diesel", "region": "West"},
    {"name": "Ashok Leyland Ecomet", "plate": "KA-01-CD-2002", "vehicle_type": "Truck",
     "capacity": 11000, "odometer": 41200, "acquisition_cost": 1850000, "year": 2021,
     "fuel_type": "Diesel", "region": "South"},
    {"name": "Eicher Pro 2049", "plate": "DL-03-EF-3003", "vehicle_type": "Mini Truck",
     "capacity": 3500, "odometer": 22050, "acquisition_cost": 950000, "year": 2022,
     "fuel_type": "CNG", "region": "North"},
    {"name": "Tata Ace EV", "plate": "TN-09-GH-4004", "vehicle_type": "Van",
     "capacity": 600, "odometer": 8300, "acquisition_cost": 720000, "year": 2023,
     "fuel_type": "Electric", "region": "South"},
    {"name": "Mahindra Bolero Pik-Up", "plate": "WB-02-IJ-5005", "vehicle_type": "Pickup",
     "capacity": 1700, "odometer": 56900, "acquisition_cost": 880000, "year": 2020,
     "fuel_type": "Diesel", "region": "East"},
    {"name": "BharatBenz 1617R", "plate": "MP-04-KL-6006", "vehicle_type": "Truck",
     "capacity": 10000, "odometer": 310400, "acquisition_cost": 2100000, "year": 2012,
     "fuel_type": "Diesel", "region": "Central", "status": "Retired"},
]

DRIVERS = [
    {"name": "Ravi Kumar", "license_no": "MH1220190012345", "category": "Heavy",
     "license_expiry": TODAY + timedelta(days=700), "phone": "+91 98200 11111",
     "safety_score": 92},
    {"name": "Suresh Iyer", "license_no": "KA0120180054321", "category": "Heavy",
     "license_expiry": TODAY + timedelta(days=40), "phone": "+91 98450 22222",
     "safety_score": 88},
    {"name": "Anita Desai", "license_no": "DL0320210098765", "category": "Medium",
     "license_expiry": TODAY + timedelta(days=1200), "phone": "+91 98110 33333",
     "safety_score": 95},
    {"name": "Imran Shaikh", "license_no": "WB0220170011223", "category": "Light",
     "license_expiry": TODAY - timedelta(days=15), "phone": "+91 98300 44444",
     "safety_score": 74},
    {"name": "Gopal Rao", "license_no": "TN0920200033445", "category": "Light",
     "license_expiry": TODAY + timedelta(days=365), "phone": "+91 98400 55555",
     "safety_score": 61, "status": "Suspended"},
]


def build_fleet() -> tuple[FleetSnapshot, list]:
    """Return the seeded fleet plus every write intent needed to persist it."""
    snapshot = FleetSnapshot()
    intents = []

    def run(operation, *args, **kwargs):
        nonlocal snapshot
        transition = operation(snapshot, *args, **kwargs)
        snapshot = transition.snapshot
        intents.extend(transition.intents)
        return transition.entity_id

    v = [run(fleet.create_vehicle, data, today=TODAY) for data in VEHICLES]
    d = [run(fleet.create_driver, data, today=TODAY) for data in DRIVERS]

    def trip(vehicle, driver, origin, destination, weight, km, revenue, days_ago):
        return run(
            fleet.create_trip,
            {
                "vehicle_id": vehicle,
                "driver_id": driver,
                "origin": origin,
                "destination": destination,
                "cargo_type": "General",
                "cargo_weight": weight,
                "estimated_km": km,
                "revenue": revenue,
                "date": TODAY - timedelta(days=days_ago),
            },
            today=TODAY,
        )

    # Completed runs
    t1 = trip(v[0], d[0], "Pune", "Mumbai", 18000, 150, 42000, 9)
    run(fleet.dispatch_trip, t1)
    run(fleet.complete_trip, t1, 84360)
    t2 = trip(v[1], d[1], "Bengaluru", "Chennai", 9000, 350, 61000, 6)
    run(fleet.dispatch_trip, t2)
    run(fleet.complete_trip, t2, 41550)
    t3 = trip(v[3], d[2], "Chennai", "Vellore", 450, 140, 9500, 4)
    run(fleet.dispatch_trip, t3)
    run(fleet.complete_trip, t3, 8440)

    # Cancelled before dispatch
    t4 = trip(v[4], d[2], "Kolkata", "Durgapur", 1200, 170, 14000, 3)
    run(fleet.cancel_trip, t4)

    # On the road
    t5 = trip(v[0], d[0], "Mumbai", "Nashik", 20000, 170, 38000, 0)
    run(fleet.dispatch_trip, t5)

    # Waiting for dispatch
    trip(v[1], d[1], "Chennai", "Bengaluru", 7500, 350, 52000, 0)

    # Maintenance: two closed services, one open
    for data in (
        {"vehicle_id": v[0], "service_type": "Oil Change", "cost": 6500,
         "date": TODAY - timedelta(days=30), "mechanic": "Pune Motors"},
        {"vehicle_id": v[3], "service_type": "Battery Check", "cost": 2200,
         "date": TODAY - timedelta(days=12), "mechanic": "EV Care"},
    ):
        log = run(fleet.add_maintenance_log, data)
        run(fleet.complete_maintenance_log, log)
    run(
        fleet.add_maintenance_log,
        {"vehicle_id": v[2], "service_type": "Brake Overhaul", "cost": 14800,
         "date": TODAY - timedelta(days=1), "mechanic": "Delhi Truck Works",
         "notes": "Front pads and discs"},
    )

    # Expenses
    for data in (
        {"vehicle_id": v[0], "expense_type": "Fuel", "cost": 16500, "liters": 180,
         "trip_id": t1, "date": TODAY - timedelta(days=9)},
        {"vehicle_id": v[0], "expense_type": "Toll", "cost": 1450, "trip_id": t1,
         "date": TODAY - timedelta(days=9)},
        {"vehicle_id": v[1], "expense_type": "Fuel", "cost": 29800, "liters": 320,
         "trip_id": t2, "date": TODAY - timedelta(days=6)},
        {"vehicle_id": v[1], "expense_type": "Driver Allowance", "cost": 1500,
         "trip_id": t2, "date": TODAY - timedelta(days=6)},
        {"vehicle_id": v[3], "expense_type": "Charging", "cost": 780, "liters": 52,
         "trip_id": t3, "date": TODAY - timedelta(days=4)},
        {"vehicle_id": v[4], "expense_type": "Parking", "cost": 300,
         "date": TODAY - timedelta(days=3)},
    ):
        run(fleet.add_expense, data)

    return snapshot, intents


async def seed():
    async with async_session_factory() as session:
        # Check if already seeded
        result = await session.execute(text("SELECT count(*) FROM vehicles"))
        if result.scalar() > 0:
            print("Database already seeded. Skipping.")
            return

        snapshot, intents = build_fleet()
        await FleetRepository(session).apply(intents)
        await session.commit()

        for collection in Collection:
            print(f"  Created {len(snapshot.records(collection))} {collection.value}")
        print("\nSeed complete!")


async def main():
    print("Seeding database...")
    await seed()
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
