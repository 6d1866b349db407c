"""
Availability block store.

Persists per-vehicle time claims and guarantees that no two blocks for the
same vehicle and date overlap, whatever their type.

Race safety:
    Every insert takes the slot lock for (vehicle_id, date), sweeps expired
    holds on that schedule, re-checks overlaps and commits before releasing
    the lock. On PostgreSQL the range exclusion constraint backs this up
    across processes; its violation (SQLSTATE 23P01) is translated into
    SlotConflictError. Any other IntegrityError propagates unchanged.
"""

import logging
from datetime import date, datetime, time, timezone
from typing import List, Optional, Tuple

from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tourfleet.app.core.exceptions import (
    InvalidRequestError,
    OperationNotAllowedError,
    ResourceNotFoundError,
    SlotConflictError,
)
from tourfleet.app.core.slot_locks import get_slot_locks
from tourfleet.app.domain.scheduling.block_state import (
    BlockState,
    BookingState,
    HoldState,
    MaintenanceState,
)
from tourfleet.app.domain.scheduling.time_range import TimeRange, format_time
from tourfleet.app.models.availability_block import AvailabilityBlock, EXCLUSION_CONSTRAINT_NAME
from tourfleet.app.models.enums import BlockType
from tourfleet.app.models.vehicle import Vehicle
from tourfleet.app.services.audit import log_event, AuditAction

logger = logging.getLogger(__name__)

EXCLUSION_VIOLATION_SQLSTATE = "23P01"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_exclusion_violation(exc: IntegrityError) -> bool:
    """True when the IntegrityError came from the range exclusion constraint."""
    candidates = [exc.orig, getattr(exc.orig, "__cause__", None)]
    for error in candidates:
        if error is None:
            continue
        code = getattr(error, "sqlstate", None) or getattr(error, "pgcode", None)
        if code == EXCLUSION_VIOLATION_SQLSTATE:
            return True
    return EXCLUSION_CONSTRAINT_NAME in str(exc.orig)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

async def blocks_for_vehicle_on_date(
    db: AsyncSession,
    vehicle_id: int,
    block_date: date
) -> List[AvailabilityBlock]:
    """All blocks of one vehicle on one date, ordered by start time."""
    result = await db.execute(
        select(AvailabilityBlock)
        .where(
            AvailabilityBlock.vehicle_id == vehicle_id,
            AvailabilityBlock.block_date == block_date
        )
        .order_by(AvailabilityBlock.start_time)
    )
    return list(result.scalars().all())


async def blocks_overlapping(
    db: AsyncSession,
    vehicle_id: int,
    block_date: date,
    start: time,
    end: time
) -> List[AvailabilityBlock]:
    """
    Blocks of any type overlapping [start, end) on the vehicle's date.

    Intervals touching at an endpoint do not overlap.
    """
    result = await db.execute(
        select(AvailabilityBlock)
        .where(
            AvailabilityBlock.vehicle_id == vehicle_id,
            AvailabilityBlock.block_date == block_date,
            AvailabilityBlock.start_time < end,
            AvailabilityBlock.end_time > start
        )
        .order_by(AvailabilityBlock.start_time)
    )
    return list(result.scalars().all())


async def blocks_for_date(
    db: AsyncSession,
    block_date: date
) -> List[Tuple[AvailabilityBlock, Vehicle]]:
    """Every block on a date across the fleet, for calendar views."""
    result = await db.execute(
        select(AvailabilityBlock, Vehicle)
        .join(Vehicle, Vehicle.id == AvailabilityBlock.vehicle_id)
        .where(AvailabilityBlock.block_date == block_date)
        .order_by(Vehicle.id, AvailabilityBlock.start_time)
    )
    return [(block, vehicle) for block, vehicle in result.all()]


async def blocks_in_range(
    db: AsyncSession,
    start_date: date,
    end_date: date,
    vehicle_id: Optional[int] = None
) -> List[Tuple[AvailabilityBlock, Vehicle]]:
    """Blocks between two dates (inclusive), optionally for one vehicle."""
    if end_date < start_date:
        raise InvalidRequestError("end_date must not precede start_date")

    query = (
        select(AvailabilityBlock, Vehicle)
        .join(Vehicle, Vehicle.id == AvailabilityBlock.vehicle_id)
        .where(
            AvailabilityBlock.block_date >= start_date,
            AvailabilityBlock.block_date <= end_date
        )
    )
    if vehicle_id is not None:
        query = query.where(AvailabilityBlock.vehicle_id == vehicle_id)

    query = query.order_by(AvailabilityBlock.block_date, Vehicle.id, AvailabilityBlock.start_time)
    result = await db.execute(query)
    return [(block, vehicle) for block, vehicle in result.all()]


# ---------------------------------------------------------------------------
# Inserts
# ---------------------------------------------------------------------------

async def _delete_expired_holds_on_schedule(
    db: AsyncSession,
    vehicle_id: int,
    block_date: date,
    now: datetime
) -> int:
    result = await db.execute(
        delete(AvailabilityBlock)
        .where(
            AvailabilityBlock.vehicle_id == vehicle_id,
            AvailabilityBlock.block_date == block_date,
            AvailabilityBlock.block_type == BlockType.HOLD,
            AvailabilityBlock.expires_at <= now
        )
        .execution_options(synchronize_session="fetch")
    )
    return result.rowcount or 0


async def create_block(
    db: AsyncSession,
    vehicle_id: int,
    block_date: date,
    start: time,
    end: time,
    state: BlockState,
    brand_id: Optional[int] = None,
    created_by: Optional[int] = None,
    notes: Optional[str] = None,
    now: Optional[datetime] = None
) -> AvailabilityBlock:
    """
    Claim [start, end) on a vehicle.

    Raises:
        InvalidRequestError: If end is not after start
        ResourceNotFoundError: If the vehicle does not exist
        OperationNotAllowedError: If a hold or booking targets an archived or
            out-of-service vehicle
        SlotConflictError: If any block already overlaps the window
    """
    window = TimeRange(block_date, start, end)
    now = now or utcnow()

    async with get_slot_locks().acquire(vehicle_id, block_date):
        vehicle = await db.get(Vehicle, vehicle_id)
        if vehicle is None:
            raise ResourceNotFoundError("Vehicle", vehicle_id)
        if isinstance(state, (HoldState, BookingState)) and not vehicle.is_bookable:
            raise OperationNotAllowedError(
                f"Vehicle {vehicle_id} is not bookable",
                details={"vehicle_id": vehicle_id, "status": vehicle.status.value,
                         "archived": vehicle.archived_at is not None}
            )

        swept = await _delete_expired_holds_on_schedule(db, vehicle_id, block_date, now)
        if swept:
            logger.info("Swept %d expired hold(s) on vehicle %s for %s", swept, vehicle_id, block_date)

        conflicts = await blocks_overlapping(db, vehicle_id, block_date, start, end)
        if conflicts:
            await db.commit()
            logger.info(
                "Slot conflict on vehicle %s %s %s with block(s) %s",
                vehicle_id, block_date, window, [b.id for b in conflicts]
            )
            raise SlotConflictError(details={
                "vehicle_id": vehicle_id,
                "date": block_date.isoformat(),
                "start_time": format_time(start),
                "end_time": format_time(end),
                "conflicting_block_ids": [b.id for b in conflicts],
            })

        block = AvailabilityBlock(
            vehicle_id=vehicle_id,
            block_date=block_date,
            start_time=start,
            end_time=end,
            brand_id=brand_id,
            created_by=created_by,
            notes=notes,
        )
        block.apply_state(state)
        db.add(block)

        try:
            await db.flush()
        except IntegrityError as exc:
            await db.rollback()
            if is_exclusion_violation(exc):
                logger.info("Exclusion constraint rejected block on vehicle %s %s %s", vehicle_id, block_date, window)
                raise SlotConflictError(details={
                    "vehicle_id": vehicle_id,
                    "date": block_date.isoformat(),
                    "start_time": format_time(start),
                    "end_time": format_time(end),
                }) from exc
            raise

        await db.refresh(block)
        await db.commit()

    return block


async def create_booking_block(
    db: AsyncSession,
    vehicle_id: int,
    block_date: date,
    start: time,
    end: time,
    booking_id: int,
    brand_id: Optional[int] = None,
    created_by: Optional[int] = None
) -> AvailabilityBlock:
    """Claim vehicle time for a booking made without a checkout hold."""
    return await create_block(
        db, vehicle_id, block_date, start, end,
        BookingState(booking_id=booking_id),
        brand_id=brand_id,
        created_by=created_by,
    )


async def create_maintenance_block(
    db: AsyncSession,
    vehicle_id: int,
    block_date: date,
    start: time,
    end: time,
    reason: str,
    created_by: Optional[int] = None
) -> AvailabilityBlock:
    """
    Take a vehicle out of service for a window.

    Raises:
        OperationNotAllowedError: If the window overlaps an existing block
    """
    try:
        block = await create_block(
            db, vehicle_id, block_date, start, end,
            MaintenanceState(reason=reason),
            created_by=created_by,
        )
    except SlotConflictError as exc:
        raise OperationNotAllowedError(
            "Cannot create maintenance block - time slot has existing bookings",
            details=exc.details
        ) from exc

    await log_event(
        db=db,
        action=AuditAction.MAINTENANCE_BLOCK_CREATED,
        entity_type="block",
        entity_id=block.id,
        actor_id=created_by,
        metadata={
            "vehicle_id": vehicle_id,
            "date": block_date.isoformat(),
            "start_time": format_time(start),
            "end_time": format_time(end),
            "reason": reason,
        }
    )
    return block


# ---------------------------------------------------------------------------
# Deletes
# ---------------------------------------------------------------------------

async def delete_block(
    db: AsyncSession,
    block_id: int,
    actor_id: Optional[int] = None
) -> None:
    """
    Delete a hold, maintenance or buffer block.

    Raises:
        ResourceNotFoundError: If the block does not exist
        OperationNotAllowedError: For booking blocks, which go with their booking
    """
    block = await db.get(AvailabilityBlock, block_id)
    if block is None:
        raise ResourceNotFoundError("Availability block", block_id)

    if block.block_type == BlockType.BOOKING:
        raise OperationNotAllowedError(
            "Cannot delete booking blocks directly. Cancel the booking instead.",
            details={"block_id": block_id, "booking_id": block.booking_id}
        )

    block_type = block.block_type
    await db.delete(block)
    await db.commit()

    await log_event(
        db=db,
        action=AuditAction.BLOCK_DELETED,
        entity_type="block",
        entity_id=block_id,
        actor_id=actor_id,
        metadata={"block_type": block_type.value}
    )


async def delete_blocks_for_booking(db: AsyncSession, booking_id: int) -> int:
    """Delete a booking's block together with its buffers. Returns the count."""
    result = await db.execute(
        delete(AvailabilityBlock)
        .where(AvailabilityBlock.booking_id == booking_id)
        .execution_options(synchronize_session="fetch")
    )
    await db.commit()
    deleted = result.rowcount or 0

    if deleted:
        await log_event(
            db=db,
            action=AuditAction.BOOKING_BLOCKS_DELETED,
            entity_type="booking",
            entity_id=booking_id,
            metadata={"blocks_deleted": deleted}
        )
    return deleted


async def delete_expired_holds(db: AsyncSession, now: Optional[datetime] = None) -> int:
    """
    Delete every hold whose expiry has passed.

    Idempotent and safe to run concurrently. Returns the number removed.
    """
    result = await db.execute(
        delete(AvailabilityBlock)
        .where(
            AvailabilityBlock.block_type == BlockType.HOLD,
            AvailabilityBlock.expires_at <= (now or utcnow())
        )
        .execution_options(synchronize_session="fetch")
    )
    await db.commit()

    deleted = result.rowcount or 0
    if deleted:
        logger.info("Cleaned up %d expired holds", deleted)
    return deleted
