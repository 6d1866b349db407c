"""
Buffer allocator.

Wraps a confirmed booking with turnaround time. Buffers are best effort:
one that would leave operating hours is skipped, and one that collides
with a neighbouring block is dropped without failing the booking.
"""

import logging
from datetime import date, time
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from tourfleet.app.core.config import settings
from tourfleet.app.core.exceptions import SlotConflictError
from tourfleet.app.domain.scheduling.block_state import BufferState
from tourfleet.app.domain.scheduling.time_range import from_minutes, to_minutes
from tourfleet.app.models.availability_block import AvailabilityBlock
from tourfleet.app.services.availability import DAY_START, DAY_END
from tourfleet.app.services.availability_blocks import create_block

logger = logging.getLogger(__name__)

PRE_BUFFER_NOTE = "Pre-booking buffer"
POST_BUFFER_NOTE = "Post-booking buffer"


async def _try_buffer(
    db: AsyncSession,
    vehicle_id: int,
    block_date: date,
    start_minute: int,
    end_minute: int,
    booking_id: int,
    note: str
) -> Optional[AvailabilityBlock]:
    if start_minute < to_minutes(DAY_START) or end_minute > to_minutes(DAY_END):
        logger.info("Skipping %s for booking %s: outside operating hours", note.lower(), booking_id)
        return None

    try:
        return await create_block(
            db, vehicle_id, block_date,
            from_minutes(start_minute), from_minutes(end_minute),
            BufferState(booking_id=booking_id),
            notes=note,
        )
    except SlotConflictError:
        logger.info("Skipping %s for booking %s: slot already taken", note.lower(), booking_id)
        return None


async def create_buffers(
    db: AsyncSession,
    vehicle_id: int,
    block_date: date,
    booking_start: time,
    booking_end: time,
    booking_id: int,
    buffer_minutes: Optional[int] = None
) -> List[AvailabilityBlock]:
    """
    Create the pre- and post-booking buffers that fit.

    Returns:
        The buffer blocks actually created (zero, one or two)
    """
    if buffer_minutes is None:
        buffer_minutes = settings.buffer_minutes
    if buffer_minutes <= 0:
        return []

    start_minute = to_minutes(booking_start)
    end_minute = to_minutes(booking_end)

    created = []
    for window_start, window_end, note in (
        (start_minute - buffer_minutes, start_minute, PRE_BUFFER_NOTE),
        (end_minute, end_minute + buffer_minutes, POST_BUFFER_NOTE),
    ):
        block = await _try_buffer(db, vehicle_id, block_date, window_start, window_end, booking_id, note)
        if block is not None:
            created.append(block)

    return created
