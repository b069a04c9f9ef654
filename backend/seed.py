"""
Database seeding script.

Creates one user per role plus a few vehicles and drivers for development.
Run this script after the database is set up but before first use.
"""

import asyncio
import sys
from datetime import datetime, timedelta
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import select

from backend.app.core.security import get_password_hash
from backend.app.db.session import AsyncSessionLocal, Base, engine
from backend.app.models.driver import Driver
from backend.app.models.enums import UserRole
from backend.app.models.fleet_enums import DriverStatus, VehicleStatus
from backend.app.models.user import User
from backend.app.models.vehicle import Vehicle

SEED_USERS = [
    ("Fleet Manager", "manager@fleet.io", "manager123", UserRole.FLEET_MANAGER),
    ("Dispatcher", "dispatcher@fleet.io", "dispatch123", UserRole.DISPATCHER),
    ("Safety Officer", "safety@fleet.io", "safety123", UserRole.SAFETY_OFFICER),
    ("Financial Analyst", "finance@fleet.io", "finance123", UserRole.FINANCIAL_ANALYST),
    ("Dana Driver", "driver@fleet.io", "driver123", UserRole.DRIVER),
]

SEED_VEHICLES = [
    ("Ford Transit", "VAN-001", "Van", "North", 1000.0, 500, 35000.0),
    ("Volvo FH16", "TRK-001", "Truck", "North", 18000.0, 120000, 140000.0),
    ("Toyota Corolla", "CAR-001", "Car", "South", 400.0, 30000, 22000.0),
]


async def seed():
    """
    Seed users, vehicles and drivers.

    Skips everything if the fleet manager account already exists.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("Starting seeding...")

        result = await db.execute(select(User).where(User.email == SEED_USERS[0][1]))
        if result.scalar_one_or_none():
            print("Seed data already present, skipping")
            return

        users = {}
        for name, email, password, role in SEED_USERS:
            user = User(
                name=name,
                email=email,
                hashed_password=get_password_hash(password),
                role=role,
                is_active=True
            )
            db.add(user)
            users[role] = user
            print(f"Created {role.value} user ({email} / {password})")

        await db.flush()

        for model, plate, vehicle_type, region, capacity, odometer, cost in SEED_VEHICLES:
            db.add(Vehicle(
                model=model,
                license_plate=plate,
                type=vehicle_type,
                region=region,
                max_capacity=capacity,
                odometer=odometer,
                acquisition_cost=cost,
                status=VehicleStatus.AVAILABLE
            ))
            print(f"Created vehicle {plate} ({vehicle_type})")

        licence_valid_until = datetime.utcnow() + timedelta(days=365)
        db.add(Driver(
            name="Dana Driver",
            license_expiry_date=licence_valid_until,
            allowed_vehicle_type=["Van", "Car"],
            status=DriverStatus.OFF_DUTY,
            user_id=users[UserRole.DRIVER].id
        ))
        db.add(Driver(
            name="Sam Hauler",
            license_expiry_date=licence_valid_until,
            allowed_vehicle_type=["Truck", "Van"],
            status=DriverStatus.OFF_DUTY
        ))
        print("Created drivers Dana Driver (linked to driver@fleet.io) and Sam Hauler")

        await db.commit()
        print("Seeding completed")


if __name__ == "__main__":
    asyncio.run(seed())
