"""
Slot locks keyed by (vehicle_id, date).

Every block insert runs its overlap check and commit inside one of these
locks, so "check then claim" is atomic even on databases without a range
exclusion constraint. The "local" backend serializes coroutines inside one
process; the "redis" backend serializes across API workers.
"""

import asyncio
import logging
import weakref
from contextlib import asynccontextmanager
from datetime import date
from typing import AsyncIterator, Optional

from tourfleet.app.core.config import settings

logger = logging.getLogger(__name__)


def slot_lock_key(vehicle_id: int, block_date: date) -> str:
    return f"slot-lock:{vehicle_id}:{block_date.isoformat()}"


class SlotLockManager:
    """Hands out exclusive locks for a vehicle's schedule on one date."""

    def __init__(
        self,
        backend: str = "local",
        redis=None,
        timeout: int = 10,
        blocking_timeout: int = 5
    ):
        if backend not in ("local", "redis"):
            raise ValueError(f"Unknown slot lock backend: {backend!r}")
        if backend == "redis" and redis is None:
            raise ValueError("Redis slot locks need a redis client")
        self.backend = backend
        self.redis = redis
        self.timeout = timeout
        self.blocking_timeout = blocking_timeout
        # Entries vanish once no coroutine holds or waits on the lock
        self._local_locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def _local_lock(self, key: str) -> asyncio.Lock:
        lock = self._local_locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._local_locks[key] = lock
        return lock

    @asynccontextmanager
    async def acquire(self, vehicle_id: int, block_date: date) -> AsyncIterator[None]:
        key = slot_lock_key(vehicle_id, block_date)

        if self.backend == "redis":
            # LockError propagates when the lock cannot be taken in time
            async with self.redis.lock(
                key,
                timeout=self.timeout,
                blocking_timeout=self.blocking_timeout
            ):
                yield
            return

        lock = self._local_lock(key)
        async with lock:
            yield


def build_slot_lock_manager(redis=None) -> SlotLockManager:
    """Create the lock manager described by settings."""
    if settings.slot_lock_backend == "redis" and redis is None:
        from tourfleet.app.core.redis_client import redis_client
        redis = redis_client
    return SlotLockManager(
        backend=settings.slot_lock_backend,
        redis=redis,
        timeout=settings.slot_lock_timeout_seconds,
        blocking_timeout=settings.slot_lock_blocking_timeout_seconds,
    )


slot_locks: Optional[SlotLockManager] = None


def get_slot_locks() -> SlotLockManager:
    global slot_locks
    if slot_locks is None:
        slot_locks = build_slot_lock_manager()
        logger.info("Slot locks using %s backend", slot_locks.backend)
    return slot_locks
