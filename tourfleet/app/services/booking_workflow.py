"""
Booking workflow.

Caller-side orchestration of the scheduling core:

    start_checkout  -> availability check, hold on the best free vehicle, quote
    confirm_booking -> compliance gate, hold -> booking, buffers
    cancel_booking  -> booking block and its buffers removed

Pricing and compliance are consulted here, never from inside the
availability engine.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import List, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from tourfleet.app.core.exceptions import ComplianceBlockedError, ResourceNotFoundError, SlotConflictError
from tourfleet.app.domain.compliance.compliance_service import ComplianceService
from tourfleet.app.domain.pricing.pricing_service import PricingQuote, PricingService
from tourfleet.app.models.availability_block import AvailabilityBlock
from tourfleet.app.models.enums import BlockType
from tourfleet.app.services.availability import (
    ALL_BOOKED_MESSAGE,
    AvailabilityResult,
    check_availability,
)
from tourfleet.app.services.availability_blocks import delete_blocks_for_booking
from tourfleet.app.services.buffers import create_buffers
from tourfleet.app.services.holds import convert_to_booking, create_hold
from tourfleet.app.services.vehicle_selector import list_available_vehicles

logger = logging.getLogger(__name__)


@dataclass
class CheckoutResult:
    availability: AvailabilityResult
    hold: Optional[AvailabilityBlock] = None
    pricing: Optional[PricingQuote] = None


@dataclass
class ConfirmationResult:
    booking_block: AvailabilityBlock
    buffers: List[AvailabilityBlock] = field(default_factory=list)
    warnings: List[dict] = field(default_factory=list)


async def start_checkout(
    db: AsyncSession,
    tour_date: Union[date, str],
    start_time: Union[time, str],
    duration_hours: float,
    party_size: int,
    brand_id: Optional[int] = None,
    today: Optional[date] = None,
    now: Optional[datetime] = None
) -> CheckoutResult:
    """
    Reserve a vehicle for a checkout in progress.

    Holds the best-fit vehicle; when another checkout claims it first, moves
    on to the next free vehicle. An unavailable slot is returned, not raised.
    """
    availability = await check_availability(
        db, tour_date, start_time, duration_hours, party_size,
        brand_id=brand_id, today=today, now=now
    )
    if not availability.available:
        return CheckoutResult(availability=availability)

    block_date = tour_date if isinstance(tour_date, date) else date.fromisoformat(tour_date)
    start = time.fromisoformat(availability.start_time)
    end = time.fromisoformat(availability.end_time)

    fallbacks = [
        v for v in await list_available_vehicles(db, block_date, start, end, party_size, brand_id)
        if v.id != availability.vehicle_id
    ]
    candidates = [(availability.vehicle_id, availability.vehicle_name, availability.vehicle_capacity)]
    candidates += [(v.id, v.name, v.capacity) for v in fallbacks]

    for vehicle_id, vehicle_name, vehicle_capacity in candidates:
        try:
            hold = await create_hold(db, vehicle_id, block_date, start, end, brand_id=brand_id, now=now)
        except SlotConflictError:
            logger.info("Vehicle %s taken during checkout, trying next candidate", vehicle_id)
            continue

        availability.vehicle_id = vehicle_id
        availability.vehicle_name = vehicle_name
        availability.vehicle_capacity = vehicle_capacity

        pricing = await PricingService.calculate_pricing(db, block_date, party_size, duration_hours)
        return CheckoutResult(availability=availability, hold=hold, pricing=pricing)

    availability.available = False
    availability.vehicle_id = None
    availability.vehicle_name = None
    availability.vehicle_capacity = None
    availability.conflicts = [ALL_BOOKED_MESSAGE]
    return CheckoutResult(availability=availability)


async def confirm_booking(
    db: AsyncSession,
    hold_id: int,
    booking_id: int,
    driver_id: Optional[int] = None,
    today: Optional[date] = None,
    now: Optional[datetime] = None
) -> ConfirmationResult:
    """
    Confirm a paid checkout.

    Raises:
        ResourceNotFoundError: If the hold is gone (expired, released or converted)
        ComplianceBlockedError: If the vehicle or driver has critical violations
    """
    hold = await db.get(AvailabilityBlock, hold_id)
    if hold is None or hold.block_type != BlockType.HOLD:
        raise ResourceNotFoundError("Hold", hold_id)

    if driver_id is not None:
        compliance = await ComplianceService.check_assignment_compliance(
            db, driver_id, hold.vehicle_id, hold.block_date, today=today
        )
        violations = compliance.all_violations
        warnings = compliance.all_warnings
    else:
        compliance = await ComplianceService.check_vehicle_compliance(db, hold.vehicle_id, today=today)
        violations = compliance.violations
        warnings = compliance.warnings

    if not compliance.can_proceed:
        primary = compliance.primary_violation
        logger.warning(
            "Booking %s blocked by compliance on vehicle %s: %s",
            booking_id, hold.vehicle_id, primary.message if primary else "unknown"
        )
        raise ComplianceBlockedError(
            f"Booking blocked by compliance: {primary.message}" if primary else "Booking blocked by compliance",
            violations=[v.to_dict() for v in violations]
        )

    booking_block = await convert_to_booking(db, hold_id, booking_id, now=now)
    buffers = await create_buffers(
        db,
        booking_block.vehicle_id,
        booking_block.block_date,
        booking_block.start_time,
        booking_block.end_time,
        booking_id,
    )

    return ConfirmationResult(
        booking_block=booking_block,
        buffers=buffers,
        warnings=[w.to_dict() for w in warnings],
    )


async def cancel_booking(db: AsyncSession, booking_id: int) -> int:
    """Free a cancelled booking's vehicle time. Returns the blocks removed."""
    deleted = await delete_blocks_for_booking(db, booking_id)
    logger.info("Booking %s cancelled, %d block(s) removed", booking_id, deleted)
    return deleted
