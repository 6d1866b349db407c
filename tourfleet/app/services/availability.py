"""
Availability query engine.

Answers "can this tour run, and on which vehicle?" by applying, in order:
operating hours, the past-date guard, blackout dates and vehicle
selection. "Nothing available" is a normal result, never an exception.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import List, Optional, Union

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from tourfleet.app.core.config import settings
from tourfleet.app.core.exceptions import InvalidRequestError
from tourfleet.app.domain.scheduling.time_range import (
    TimeRange,
    format_time,
    from_minutes,
    hours_to_minutes,
    parse_date,
    parse_time,
    to_minutes,
)
from tourfleet.app.models.blackout_date import BlackoutDate
from tourfleet.app.services.availability_blocks import delete_expired_holds
from tourfleet.app.services.vehicle_selector import find_candidates

logger = logging.getLogger(__name__)

# Hard business rule, not configurable per request
DAY_START = time(8, 0)
DAY_END = time(22, 0)

OPERATING_HOURS_MESSAGE = f"Tours must be between {format_time(DAY_START)} and {format_time(DAY_END)}"
PAST_DATE_MESSAGE = "Cannot book tours in the past"
BLACKOUT_DEFAULT_REASON = "Date unavailable"
ALL_BOOKED_MESSAGE = "All suitable vehicles are booked for this time slot"


@dataclass
class AvailabilityResult:
    available: bool
    start_time: str
    end_time: Optional[str] = None
    vehicle_id: Optional[int] = None
    vehicle_name: Optional[str] = None
    vehicle_capacity: Optional[int] = None
    conflicts: List[str] = field(default_factory=list)


@dataclass
class Slot:
    start_time: str
    end_time: str
    available: bool
    vehicle_id: Optional[int] = None
    vehicle_name: Optional[str] = None


def _as_date(value: Union[date, str]) -> date:
    return value if isinstance(value, date) else parse_date(value)


def _as_time(value: Union[time, str]) -> time:
    return value if isinstance(value, time) else parse_time(value)


def validate_request(duration_hours: float, party_size: int) -> None:
    """Reject out-of-bounds durations and party sizes before any query runs."""
    if not settings.min_duration_hours <= duration_hours <= settings.max_duration_hours:
        raise InvalidRequestError(
            f"Duration must be between {settings.min_duration_hours:g} and "
            f"{settings.max_duration_hours:g} hours",
            details={"duration_hours": duration_hours}
        )
    if not settings.min_party_size <= party_size <= settings.max_party_size:
        raise InvalidRequestError(
            f"Party size must be between {settings.min_party_size} and {settings.max_party_size}",
            details={"party_size": party_size}
        )


def within_operating_hours(start: time, duration_minutes: int) -> bool:
    return (
        start >= DAY_START
        and to_minutes(start) + duration_minutes <= to_minutes(DAY_END)
    )


async def active_blackouts(
    db: AsyncSession,
    tour_date: date,
    brand_id: Optional[int] = None
) -> List[BlackoutDate]:
    """Active blackouts for the date: fleet-wide ones plus the brand's own."""
    scope = BlackoutDate.brand_id.is_(None)
    if brand_id is not None:
        scope = or_(scope, BlackoutDate.brand_id == brand_id)

    result = await db.execute(
        select(BlackoutDate)
        .where(
            BlackoutDate.blackout_date == tour_date,
            BlackoutDate.is_active.is_(True),
            scope
        )
        .order_by(BlackoutDate.id)
    )
    return list(result.scalars().all())


async def check_availability(
    db: AsyncSession,
    tour_date: Union[date, str],
    start_time: Union[time, str],
    duration_hours: float,
    party_size: int,
    brand_id: Optional[int] = None,
    today: Optional[date] = None,
    now: Optional[datetime] = None
) -> AvailabilityResult:
    """
    Decide whether a tour can run and which vehicle serves it.

    Args:
        db: Database session
        tour_date: Tour date ("YYYY-MM-DD" or date)
        start_time: Tour start ("HH:MM" or time)
        duration_hours: Tour length in hours
        party_size: Number of guests
        brand_id: Brand the request is made for, if any
        today: Calendar override for the past-date guard
        now: Clock override for the expired-hold sweep

    Returns:
        AvailabilityResult with the best-fit vehicle, or the conflicts that
        made the slot unavailable

    Raises:
        InvalidRequestError: For malformed dates/times or out-of-bounds input
    """
    tour_date = _as_date(tour_date)
    start = _as_time(start_time)
    validate_request(duration_hours, party_size)
    duration_minutes = hours_to_minutes(duration_hours)

    await delete_expired_holds(db, now=now)

    if not within_operating_hours(start, duration_minutes):
        return AvailabilityResult(
            available=False,
            start_time=format_time(start),
            conflicts=[OPERATING_HOURS_MESSAGE]
        )

    window = TimeRange.from_duration(tour_date, start, duration_minutes)
    result = AvailabilityResult(
        available=False,
        start_time=format_time(window.start),
        end_time=format_time(window.end)
    )

    if tour_date < (today or date.today()):
        result.conflicts = [PAST_DATE_MESSAGE]
        return result

    blackouts = await active_blackouts(db, tour_date, brand_id)
    if blackouts:
        result.conflicts = [b.reason or BLACKOUT_DEFAULT_REASON for b in blackouts]
        return result

    selection = await find_candidates(db, tour_date, window.start, window.end, party_size, brand_id)

    if not selection.eligible:
        result.conflicts = [f"No vehicles available with capacity for {party_size} guests"]
        return result

    if selection.vehicle is None:
        result.conflicts = [ALL_BOOKED_MESSAGE] + [c.describe() for c in selection.conflicts]
        return result

    vehicle = selection.vehicle
    result.available = True
    result.vehicle_id = vehicle.id
    result.vehicle_name = vehicle.name
    result.vehicle_capacity = vehicle.capacity
    return result


async def enumerate_slots(
    db: AsyncSession,
    tour_date: Union[date, str],
    duration_hours: float,
    party_size: int,
    brand_id: Optional[int] = None,
    today: Optional[date] = None,
    now: Optional[datetime] = None
) -> List[Slot]:
    """
    Every hourly start from 08:00 while the tour still ends by 22:00.

    Each slot is checked on its own against the persisted blocks only; no
    hold is taken while enumerating.
    """
    tour_date = _as_date(tour_date)
    validate_request(duration_hours, party_size)
    duration_minutes = hours_to_minutes(duration_hours)

    slots = []
    start_minute = to_minutes(DAY_START)
    while start_minute + duration_minutes <= to_minutes(DAY_END):
        start = from_minutes(start_minute)
        check = await check_availability(
            db, tour_date, start, duration_hours, party_size,
            brand_id=brand_id, today=today, now=now
        )
        slots.append(Slot(
            start_time=check.start_time,
            end_time=check.end_time,
            available=check.available,
            vehicle_id=check.vehicle_id,
            vehicle_name=check.vehicle_name,
        ))
        start_minute += 60

    logger.debug(
        "Enumerated %d slots for %s (%sh, party of %d): %d available",
        len(slots), tour_date, duration_hours, party_size, sum(s.available for s in slots)
    )
    return slots
