"""
Vehicle selector.

Best-fit selection: among bookable vehicles that seat the party and serve
the brand, the smallest capacity wins so larger vehicles stay free for
larger parties.
"""

from dataclasses import dataclass, field
from datetime import date, time
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tourfleet.app.models.enums import BOOKABLE_VEHICLE_STATUSES
from tourfleet.app.models.vehicle import Vehicle
from tourfleet.app.services.availability_blocks import blocks_overlapping


@dataclass
class VehicleConflict:
    """One block standing in the way of one vehicle."""
    vehicle_id: int
    vehicle_name: str
    block_type: str

    def describe(self) -> str:
        return f"{self.vehicle_name} ({self.block_type})"


@dataclass
class SelectionResult:
    """
    Outcome of a selection run.

    vehicle is None when nothing fits; eligible tells "too small" apart
    from "all booked".
    """
    vehicle: Optional[Vehicle] = None
    eligible: List[Vehicle] = field(default_factory=list)
    conflicts: List[VehicleConflict] = field(default_factory=list)


async def eligible_vehicles(
    db: AsyncSession,
    party_size: int,
    brand_id: Optional[int] = None
) -> List[Vehicle]:
    """Bookable vehicles seating party_size for the brand, smallest first."""
    result = await db.execute(
        select(Vehicle)
        .where(
            Vehicle.capacity >= party_size,
            Vehicle.status.in_(BOOKABLE_VEHICLE_STATUSES),
            Vehicle.archived_at.is_(None)
        )
        .order_by(Vehicle.capacity, Vehicle.id)
    )
    # brand_ids is a JSON list, filtered here rather than in SQL
    return [v for v in result.scalars().all() if v.serves_brand(brand_id)]


async def find_candidates(
    db: AsyncSession,
    block_date: date,
    start: time,
    end: time,
    party_size: int,
    brand_id: Optional[int] = None
) -> SelectionResult:
    """
    Pick the smallest eligible vehicle with nothing booked in [start, end).

    Stops at the first conflict-free vehicle. Conflicts are collected for
    every vehicle passed over on the way.
    """
    selection = SelectionResult(eligible=await eligible_vehicles(db, party_size, brand_id))

    for vehicle in selection.eligible:
        overlapping = await blocks_overlapping(db, vehicle.id, block_date, start, end)
        if not overlapping:
            selection.vehicle = vehicle
            return selection
        selection.conflicts.extend(
            VehicleConflict(vehicle.id, vehicle.name, block.block_type.value)
            for block in overlapping
        )

    return selection


async def list_available_vehicles(
    db: AsyncSession,
    block_date: date,
    start: time,
    end: time,
    party_size: int,
    brand_id: Optional[int] = None
) -> List[Vehicle]:
    """Every eligible vehicle free for [start, end), best fit first."""
    available = []
    for vehicle in await eligible_vehicles(db, party_size, brand_id):
        if not await blocks_overlapping(db, vehicle.id, block_date, start, end):
            available.append(vehicle)
    return available
