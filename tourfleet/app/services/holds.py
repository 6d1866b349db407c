"""
Hold lifecycle service.

Checkout claims vehicle time with a short-lived hold. A hold is converted
into a booking when payment succeeds, released when the customer abandons
checkout, or swept once its expiry passes.
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Optional

from sqlalchemy import update, delete
from sqlalchemy.ext.asyncio import AsyncSession

from tourfleet.app.core.config import settings
from tourfleet.app.core.exceptions import ResourceNotFoundError
from tourfleet.app.domain.scheduling.block_state import (
    HoldState,
    IllegalTransitionError,
    confirm_hold,
    state_columns,
)
from tourfleet.app.models.availability_block import AvailabilityBlock
from tourfleet.app.models.enums import BlockType
from tourfleet.app.services.audit import log_event, AuditAction
from tourfleet.app.services.availability_blocks import create_block, utcnow

logger = logging.getLogger(__name__)

HOLD_NOTE = "Temporary hold for booking in progress"


async def create_hold(
    db: AsyncSession,
    vehicle_id: int,
    block_date: date,
    start: time,
    end: time,
    brand_id: Optional[int] = None,
    created_by: Optional[int] = None,
    now: Optional[datetime] = None
) -> AvailabilityBlock:
    """
    Claim vehicle time for a checkout in progress.

    Args:
        db: Database session
        vehicle_id: Vehicle to hold
        block_date: Tour date
        start: Tour start
        end: Tour end
        brand_id: Brand running the checkout
        created_by: Staff member creating the hold, if any
        now: Clock override, defaults to the current UTC time

    Returns:
        The hold block, expiring hold_ttl_minutes from now

    Raises:
        SlotConflictError: If the window is already claimed. The caller
            retries with another vehicle or window.
    """
    now = now or utcnow()
    expires_at = now + timedelta(minutes=settings.hold_ttl_minutes)

    hold = await create_block(
        db, vehicle_id, block_date, start, end,
        HoldState(expires_at=expires_at),
        brand_id=brand_id,
        created_by=created_by,
        notes=HOLD_NOTE,
        now=now,
    )

    logger.info(
        "Hold %s created on vehicle %s %s %s, expires %s",
        hold.id, vehicle_id, block_date, hold.time_range, expires_at.isoformat()
    )
    return hold


async def convert_to_booking(
    db: AsyncSession,
    hold_id: int,
    booking_id: int,
    now: Optional[datetime] = None
) -> AvailabilityBlock:
    """
    Turn a live hold into a booking block.

    Raises:
        ResourceNotFoundError: If the hold was released, expired or
            already converted. The caller re-checks availability.
    """
    now = now or utcnow()

    block = await db.get(AvailabilityBlock, hold_id)
    if block is None:
        raise ResourceNotFoundError("Hold", hold_id)

    state = block.state
    try:
        booking_state = confirm_hold(state, booking_id)
    except IllegalTransitionError:
        raise ResourceNotFoundError("Hold", hold_id) from None

    if state.is_expired(now):
        raise ResourceNotFoundError("Hold", hold_id)

    # Guarded update: a concurrent sweep, release or conversion wins the row
    result = await db.execute(
        update(AvailabilityBlock)
        .where(
            AvailabilityBlock.id == hold_id,
            AvailabilityBlock.block_type == BlockType.HOLD,
            AvailabilityBlock.expires_at > now
        )
        .values(notes=None, **state_columns(booking_state))
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        await db.rollback()
        raise ResourceNotFoundError("Hold", hold_id)

    await db.refresh(block)
    await db.commit()

    logger.info("Hold %s converted to booking %s", hold_id, booking_id)

    await log_event(
        db=db,
        action=AuditAction.HOLD_CONVERTED,
        entity_type="block",
        entity_id=hold_id,
        metadata={"booking_id": booking_id, "vehicle_id": block.vehicle_id}
    )
    return block


async def release(db: AsyncSession, hold_id: int) -> bool:
    """
    Delete a hold so its slot frees up before the TTL runs out.

    Idempotent. Returns False when there was no hold to release.
    """
    result = await db.execute(
        delete(AvailabilityBlock)
        .where(
            AvailabilityBlock.id == hold_id,
            AvailabilityBlock.block_type == BlockType.HOLD
        )
        .execution_options(synchronize_session="fetch")
    )
    await db.commit()

    released = (result.rowcount or 0) > 0
    if released:
        logger.info("Hold %s released", hold_id)
    return released
