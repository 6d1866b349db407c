"""
Availability engine tests.

Covers operating hours, the past-date guard, blackouts, capacity and
conflict reporting, and hourly slot enumeration.
"""

import pytest
from datetime import date, datetime, time, timedelta, timezone

from tourfleet.app.core.exceptions import InvalidRequestError
from tourfleet.app.models.blackout_date import BlackoutDate
from tourfleet.app.services import holds
from tourfleet.app.services.availability import (
    ALL_BOOKED_MESSAGE,
    OPERATING_HOURS_MESSAGE,
    PAST_DATE_MESSAGE,
    check_availability,
    enumerate_slots,
)
from tourfleet.app.services.availability_blocks import create_booking_block

TOUR_DATE = date(2031, 6, 3)


async def add_blackout(db, reason=None, brand_id=None, is_active=True):
    blackout = BlackoutDate(blackout_date=TOUR_DATE, reason=reason, brand_id=brand_id, is_active=is_active)
    db.add(blackout)
    await db.commit()
    return blackout


@pytest.mark.asyncio
async def test_available_slot_names_vehicle(db_session, make_vehicle):
    vehicle = await make_vehicle(6)

    result = await check_availability(db_session, "2031-06-03", "10:00", 4, 4)

    assert result.available is True
    assert result.start_time == "10:00"
    assert result.end_time == "14:00"
    assert result.vehicle_id == vehicle.id
    assert result.vehicle_name == "Mercedes Sprinter 6"
    assert result.vehicle_capacity == 6
    assert result.conflicts == []


@pytest.mark.asyncio
@pytest.mark.parametrize("start, hours, expected", [
    ("08:00", 4, True),
    ("07:59", 4, False),
    ("18:00", 4, True),
    ("18:01", 4, False),
])
async def test_operating_hours_boundaries(db_session, make_vehicle, start, hours, expected):
    await make_vehicle(6)

    result = await check_availability(db_session, TOUR_DATE, start, hours, 2)

    assert result.available is expected
    if not expected:
        assert result.conflicts == [OPERATING_HOURS_MESSAGE]
        assert result.end_time is None


@pytest.mark.asyncio
async def test_past_date_rejected(db_session, make_vehicle):
    await make_vehicle(6)

    result = await check_availability(
        db_session, TOUR_DATE, "10:00", 4, 2, today=TOUR_DATE + timedelta(days=1)
    )

    assert result.available is False
    assert result.conflicts == [PAST_DATE_MESSAGE]


@pytest.mark.asyncio
async def test_today_is_bookable(db_session, make_vehicle):
    await make_vehicle(6)

    result = await check_availability(db_session, TOUR_DATE, "10:00", 4, 2, today=TOUR_DATE)

    assert result.available is True


@pytest.mark.asyncio
async def test_blackout_reason_reported(db_session, make_vehicle):
    await make_vehicle(6)
    await add_blackout(db_session, reason="Holiday")

    result = await check_availability(db_session, TOUR_DATE, "10:00", 4, 2)

    assert result.available is False
    assert result.conflicts == ["Holiday"]


@pytest.mark.asyncio
async def test_blackout_without_reason_uses_default(db_session, make_vehicle):
    await make_vehicle(6)
    await add_blackout(db_session)

    result = await check_availability(db_session, TOUR_DATE, "10:00", 4, 2)

    assert result.conflicts == ["Date unavailable"]


@pytest.mark.asyncio
async def test_inactive_blackout_ignored(db_session, make_vehicle):
    await make_vehicle(6)
    await add_blackout(db_session, reason="Holiday", is_active=False)

    result = await check_availability(db_session, TOUR_DATE, "10:00", 4, 2)

    assert result.available is True


@pytest.mark.asyncio
async def test_brand_blackout_scoped_to_brand(db_session, make_vehicle):
    await make_vehicle(6)
    await add_blackout(db_session, reason="Private event", brand_id=2)

    blocked = await check_availability(db_session, TOUR_DATE, "10:00", 4, 2, brand_id=2)
    other_brand = await check_availability(db_session, TOUR_DATE, "10:00", 4, 2, brand_id=3)
    no_brand = await check_availability(db_session, TOUR_DATE, "10:00", 4, 2)

    assert blocked.conflicts == ["Private event"]
    assert other_brand.available is True
    assert no_brand.available is True


@pytest.mark.asyncio
async def test_no_vehicle_large_enough(db_session, make_vehicle):
    await make_vehicle(6)

    result = await check_availability(db_session, TOUR_DATE, "10:00", 4, 20)

    assert result.available is False
    assert result.conflicts == ["No vehicles available with capacity for 20 guests"]


@pytest.mark.asyncio
async def test_conflict_names_the_blocking_vehicle(db_session, make_vehicle):
    """Vehicle A (14 seats) booked 12:00-18:00; a 10:00 six-hour tour cannot use it."""
    vehicle = await make_vehicle(14)
    await create_booking_block(db_session, vehicle.id, TOUR_DATE, time(12, 0), time(18, 0), booking_id=1)

    result = await check_availability(db_session, TOUR_DATE, "10:00", 6, 6)

    assert result.available is False
    assert result.conflicts == [ALL_BOOKED_MESSAGE, "Mercedes Sprinter 14 (booking)"]


@pytest.mark.asyncio
async def test_expired_hold_swept_before_check(db_session, make_vehicle):
    await make_vehicle(6)
    created = datetime(2031, 6, 1, 9, 0, tzinfo=timezone.utc)
    vehicle_id = (await check_availability(db_session, TOUR_DATE, "10:00", 4, 2)).vehicle_id
    await holds.create_hold(db_session, vehicle_id, TOUR_DATE, time(10, 0), time(14, 0), now=created)

    held = await check_availability(db_session, TOUR_DATE, "10:00", 4, 2, now=created + timedelta(minutes=1))
    after = await check_availability(db_session, TOUR_DATE, "10:00", 4, 2, now=created + timedelta(hours=1))

    assert held.available is False
    assert after.available is True


@pytest.mark.asyncio
@pytest.mark.parametrize("hours, party", [(3.5, 2), (25, 2), (4, 0), (4, 51)])
async def test_out_of_bounds_request_rejected(db_session, hours, party):
    with pytest.raises(InvalidRequestError):
        await check_availability(db_session, TOUR_DATE, "10:00", hours, party)


@pytest.mark.asyncio
async def test_malformed_time_rejected(db_session):
    with pytest.raises(InvalidRequestError):
        await check_availability(db_session, TOUR_DATE, "25:00", 4, 2)


@pytest.mark.asyncio
async def test_enumerate_slots_four_hours(db_session, make_vehicle):
    """Hourly starts 08:00 through 18:00 for a four-hour tour."""
    vehicle = await make_vehicle(6)
    await create_booking_block(db_session, vehicle.id, TOUR_DATE, time(12, 0), time(14, 0), booking_id=1)

    slots = await enumerate_slots(db_session, TOUR_DATE, 4, 2)

    assert len(slots) == 11
    assert slots[0].start_time == "08:00"
    assert slots[-1].start_time == "18:00"
    assert slots[-1].end_time == "22:00"
    available = {s.start_time: s.available for s in slots}
    assert available["08:00"] is True
    assert available["09:00"] is False
    assert available["13:00"] is False
    assert available["14:00"] is True
    assert all(s.vehicle_id == vehicle.id for s in slots if s.available)


@pytest.mark.asyncio
async def test_enumerate_slots_long_tour(db_session, make_vehicle):
    await make_vehicle(6)

    slots = await enumerate_slots(db_session, TOUR_DATE, 14, 2)

    assert [s.start_time for s in slots] == ["08:00"]


@pytest.mark.asyncio
async def test_enumerate_slots_nothing_fits(db_session, make_vehicle):
    await make_vehicle(6)

    assert await enumerate_slots(db_session, TOUR_DATE, 15, 2) == []
