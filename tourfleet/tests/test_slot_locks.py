"""
Slot lock manager tests.
"""

import asyncio

import pytest
from datetime import date, time

from tourfleet.app.core.slot_locks import SlotLockManager, slot_lock_key
import tourfleet.app.core.slot_locks as slot_locks_module
from tourfleet.app.services import holds

TOUR_DATE = date(2031, 6, 3)


def test_lock_key_format():
    assert slot_lock_key(7, TOUR_DATE) == "slot-lock:7:2031-06-03"


def test_unknown_backend_rejected():
    with pytest.raises(ValueError):
        SlotLockManager(backend="zookeeper")


def test_redis_backend_requires_client():
    with pytest.raises(ValueError):
        SlotLockManager(backend="redis")


@pytest.mark.asyncio
async def test_local_lock_serializes_same_key():
    manager = SlotLockManager()
    order = []

    async def worker(name):
        async with manager.acquire(1, TOUR_DATE):
            order.append(f"{name}-in")
            await asyncio.sleep(0.01)
            order.append(f"{name}-out")

    await asyncio.gather(worker("a"), worker("b"))

    assert order in (["a-in", "a-out", "b-in", "b-out"], ["b-in", "b-out", "a-in", "a-out"])


@pytest.mark.asyncio
async def test_local_locks_independent_per_key():
    manager = SlotLockManager()

    async with manager.acquire(1, TOUR_DATE):
        async with manager.acquire(2, TOUR_DATE):
            pass


@pytest.mark.asyncio
async def test_redis_backend_used_for_block_inserts(db_session, make_vehicle, redis_client_session):
    vehicle = await make_vehicle(6)
    slot_locks_module.slot_locks = SlotLockManager(backend="redis", redis=redis_client_session)

    await holds.create_hold(db_session, vehicle.id, TOUR_DATE, time(10, 0), time(14, 0))

    assert redis_client_session.lock_calls == [f"slot-lock:{vehicle.id}:2031-06-03"]
