"""
Database seeding script for a starter fleet.

Creates three vehicles of different sizes, a pricing rule per common tour
length and no blackout dates. Run this script after the database is set up
but before first use.
"""

import asyncio
import sys
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from tourfleet.app.db.session import AsyncSessionLocal, engine, Base
from tourfleet.app.models.vehicle import Vehicle
from tourfleet.app.models.pricing_rule import PricingRule
# Import remaining models so create_all sees every table
from tourfleet.app.models.availability_block import AvailabilityBlock
from tourfleet.app.models.blackout_date import BlackoutDate
from tourfleet.app.models.driver import Driver, DriverDutyLog
from tourfleet.app.models.audit_log import AuditLog
from tourfleet.app.models.enums import VehicleStatus
from sqlalchemy import select

STARTER_FLEET = [
    ("Ford", "Transit Connect", "TF-0004", 4, "suv"),
    ("Mercedes", "Sprinter 6", "TF-0006", 6, "sprinter"),
    ("Mercedes", "Sprinter 14", "TF-0014", 14, "sprinter"),
]

STARTER_PRICES = [(4, 800.0), (6, 1100.0), (8, 1400.0)]


async def seed_fleet():
    """
    Seed the starter fleet and pricing rules.

    Creates:
    - 3 vehicles (4, 6 and 14 seats)
    - 3 sprinter pricing rules (4h, 6h, 8h) with a 1.2 weekend multiplier
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("🌱 Starting fleet seeding...")

        result = await db.execute(select(Vehicle).limit(1))
        if result.scalar_one_or_none():
            print("ℹ️  Fleet already has vehicles, skipping seeding")
            return

        today = date.today()
        for make, model, plate, capacity, vehicle_type in STARTER_FLEET:
            db.add(Vehicle(
                make=make,
                model=model,
                license_plate=plate,
                capacity=capacity,
                vehicle_type=vehicle_type,
                status=VehicleStatus.AVAILABLE,
                available_to_all_brands=True,
                brand_ids=[],
                registration_expiry=today + timedelta(days=365),
                insurance_expiry=today + timedelta(days=365),
                last_dot_inspection=today - timedelta(days=30),
            ))
            print(f"✅ Created vehicle {make} {model} ({capacity} seats, plate {plate})")

        effective_from = datetime.now(timezone.utc)
        for hours, price in STARTER_PRICES:
            db.add(PricingRule(
                rule_name=f"Sprinter {hours}h",
                vehicle_type="sprinter",
                duration_hours=hours,
                base_price=price,
                weekend_multiplier=1.2,
                effective_from=effective_from,
                is_active=True,
            ))
            print(f"✅ Created pricing rule Sprinter {hours}h at {price:.2f}")

        await db.commit()

        print("\n🎉 Fleet seeding completed successfully!")
        print("\nNote: blackout dates are added via POST /v1/blackouts")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed_fleet())
