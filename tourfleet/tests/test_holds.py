"""
Hold lifecycle tests.

none -> held -> booked, held -> released, held -> expired -> swept.
"""

import pytest
from datetime import date, datetime, time, timedelta, timezone

from tourfleet.app.core.config import settings
from tourfleet.app.core.exceptions import ResourceNotFoundError, SlotConflictError
from tourfleet.app.models.enums import BlockType
from tourfleet.app.services import holds
from tourfleet.app.services.audit import AuditAction, get_entity_history
from tourfleet.app.services.availability_blocks import (
    blocks_for_vehicle_on_date,
    create_booking_block,
    delete_expired_holds,
)

TOUR_DATE = date(2031, 6, 3)


@pytest.mark.asyncio
async def test_create_hold_sets_ttl(db_session, make_vehicle):
    vehicle = await make_vehicle(6)
    now = datetime(2031, 6, 1, 9, 0, tzinfo=timezone.utc)

    hold = await holds.create_hold(db_session, vehicle.id, TOUR_DATE, time(10, 0), time(14, 0), brand_id=3, now=now)

    assert hold.block_type == BlockType.HOLD
    assert hold.brand_id == 3
    assert hold.booking_id is None
    assert hold.notes == holds.HOLD_NOTE
    assert hold.state.expires_at.replace(tzinfo=timezone.utc) == now + timedelta(minutes=settings.hold_ttl_minutes)


@pytest.mark.asyncio
async def test_create_hold_propagates_slot_conflict(db_session, make_vehicle):
    vehicle = await make_vehicle(6)
    await create_booking_block(db_session, vehicle.id, TOUR_DATE, time(12, 0), time(16, 0), booking_id=1)

    with pytest.raises(SlotConflictError):
        await holds.create_hold(db_session, vehicle.id, TOUR_DATE, time(10, 0), time(14, 0))


@pytest.mark.asyncio
async def test_convert_hold_to_booking(db_session, make_vehicle):
    vehicle = await make_vehicle(6)
    hold = await holds.create_hold(db_session, vehicle.id, TOUR_DATE, time(10, 0), time(14, 0))

    booking = await holds.convert_to_booking(db_session, hold.id, booking_id=501)

    assert booking.id == hold.id
    assert booking.block_type == BlockType.BOOKING
    assert booking.booking_id == 501
    assert booking.expires_at is None
    assert booking.notes is None

    history = await get_entity_history(db_session, "block", hold.id)
    assert history[0].action == AuditAction.HOLD_CONVERTED
    assert history[0].meta_data["booking_id"] == 501


@pytest.mark.asyncio
async def test_converting_twice_fails_with_not_found(db_session, make_vehicle):
    """The original hold id no longer denotes a hold after conversion."""
    vehicle = await make_vehicle(6)
    hold = await holds.create_hold(db_session, vehicle.id, TOUR_DATE, time(10, 0), time(14, 0))
    await holds.convert_to_booking(db_session, hold.id, booking_id=501)

    with pytest.raises(ResourceNotFoundError) as exc_info:
        await holds.convert_to_booking(db_session, hold.id, booking_id=502)

    assert exc_info.value.status_code == 404
    blocks = await blocks_for_vehicle_on_date(db_session, vehicle.id, TOUR_DATE)
    assert [(b.block_type, b.booking_id) for b in blocks] == [(BlockType.BOOKING, 501)]


@pytest.mark.asyncio
async def test_convert_expired_hold_fails(db_session, make_vehicle):
    vehicle = await make_vehicle(6)
    created = datetime.now(timezone.utc) - timedelta(minutes=settings.hold_ttl_minutes + 1)
    hold = await holds.create_hold(db_session, vehicle.id, TOUR_DATE, time(10, 0), time(14, 0), now=created)

    with pytest.raises(ResourceNotFoundError):
        await holds.convert_to_booking(db_session, hold.id, booking_id=501)


@pytest.mark.asyncio
async def test_convert_missing_hold_fails(db_session):
    with pytest.raises(ResourceNotFoundError):
        await holds.convert_to_booking(db_session, 12345, booking_id=1)


@pytest.mark.asyncio
async def test_release_frees_slot_and_is_idempotent(db_session, make_vehicle):
    vehicle = await make_vehicle(6)
    hold = await holds.create_hold(db_session, vehicle.id, TOUR_DATE, time(10, 0), time(14, 0))

    assert await holds.release(db_session, hold.id) is True
    assert await holds.release(db_session, hold.id) is False

    # Slot is immediately claimable again
    again = await holds.create_hold(db_session, vehicle.id, TOUR_DATE, time(10, 0), time(14, 0))
    assert again.block_type == BlockType.HOLD


@pytest.mark.asyncio
async def test_release_does_not_touch_bookings(db_session, make_vehicle):
    vehicle = await make_vehicle(6)
    booking = await create_booking_block(db_session, vehicle.id, TOUR_DATE, time(10, 0), time(14, 0), booking_id=9)

    assert await holds.release(db_session, booking.id) is False
    assert len(await blocks_for_vehicle_on_date(db_session, vehicle.id, TOUR_DATE)) == 1


@pytest.mark.asyncio
async def test_expired_hold_swept(db_session, make_vehicle):
    """After the TTL and a sweep, the hold is gone from the vehicle's schedule."""
    vehicle = await make_vehicle(6)
    created = datetime(2031, 6, 1, 9, 0, tzinfo=timezone.utc)
    await holds.create_hold(db_session, vehicle.id, TOUR_DATE, time(10, 0), time(14, 0), now=created)

    assert await delete_expired_holds(db_session, now=created + timedelta(minutes=5)) == 0
    assert len(await blocks_for_vehicle_on_date(db_session, vehicle.id, TOUR_DATE)) == 1

    swept = await delete_expired_holds(db_session, now=created + timedelta(minutes=settings.hold_ttl_minutes))
    assert swept == 1
    assert await blocks_for_vehicle_on_date(db_session, vehicle.id, TOUR_DATE) == []
