"""
Centralized Test Configuration.
"""

import asyncio
import itertools
from datetime import date, timedelta

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from tourfleet.app.main import app
from tourfleet.app.db.session import get_db, Base
from tourfleet.app.core.slot_locks import SlotLockManager
from tourfleet.app.models.vehicle import Vehicle
from tourfleet.app.models.enums import VehicleStatus
import tourfleet.app.core.redis_client as redis_client_module
import tourfleet.app.core.slot_locks as slot_locks_module

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Event handler to enable foreign keys for SQLite
from sqlalchemy import event
from sqlalchemy.pool import Pool

@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


# Mock Redis for reliability in CI/CD
class MockRedisLock:
    """Stand-in for redis.asyncio.lock.Lock backed by a shared asyncio.Lock."""

    def __init__(self, redis, name, timeout=None, blocking_timeout=None):
        self.redis = redis
        self.name = name
        self.timeout = timeout
        self.blocking_timeout = blocking_timeout

    async def __aenter__(self):
        self.redis.lock_calls.append(self.name)
        await self.redis.locks.setdefault(self.name, asyncio.Lock()).acquire()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.redis.locks[self.name].release()


class MockRedis:
    def __init__(self):
        self.locks = {}
        self.lock_calls = []
        self._closed = False

    async def ping(self):
        if self._closed:
            return False
        return True

    def lock(self, name, timeout=None, blocking_timeout=None):
        return MockRedisLock(self, name, timeout=timeout, blocking_timeout=blocking_timeout)

    async def flushdb(self):
        if not self._closed:
            self.locks = {}
            self.lock_calls = []

    async def aclose(self):
        self._closed = True


# Redis Fixture (Session Scope)
@pytest.fixture(scope="session")
def redis_client_session():
    return MockRedis()

@pytest.fixture(scope="session", autouse=True)
def apply_overrides(redis_client_session):
    """Apply overrides once for the session.
    Global override is safer here than per-test override to avoid app state flux.
    """

    # Patch the global redis client used by the health check
    original_client = redis_client_module.redis_client
    redis_client_module.redis_client = redis_client_session

    async def override_get_db():
        async with TestingSessionLocal() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield

    # Restore and clear
    app.dependency_overrides = {}
    redis_client_module.redis_client = original_client

@pytest.fixture(autouse=True)
async def setup_database(redis_client_session):
    """Create tables before each test function and drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    await redis_client_session.flushdb()
    # Fresh in-process slot locks per test (each test has its own event loop)
    slot_locks_module.slot_locks = SlotLockManager()

    yield

    slot_locks_module.slot_locks = None
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

# Shared session for fixture data creation
@pytest.fixture
async def db_session():
    async with TestingSessionLocal() as session:
        yield session

@pytest.fixture
def session_factory():
    """Independent sessions for concurrent callers."""
    return TestingSessionLocal


_plates = itertools.count(1)


@pytest.fixture
def make_vehicle(db_session):
    """Create a compliant, bookable vehicle."""
    async def _make_vehicle(capacity, make="Mercedes", model=None, **overrides):
        today = date.today()
        fields = dict(
            make=make,
            model=model or f"Sprinter {capacity}",
            license_plate=f"TF-{next(_plates):04d}",
            capacity=capacity,
            vehicle_type="sprinter",
            status=VehicleStatus.AVAILABLE,
            available_to_all_brands=True,
            brand_ids=[],
            registration_expiry=today + timedelta(days=365),
            insurance_expiry=today + timedelta(days=365),
            last_dot_inspection=today - timedelta(days=30),
        )
        fields.update(overrides)
        vehicle = Vehicle(**fields)
        db_session.add(vehicle)
        await db_session.commit()
        await db_session.refresh(vehicle)
        return vehicle

    return _make_vehicle
