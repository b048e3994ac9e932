import json
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from booking_service import engine
from booking_service.db import Base, get_engine, get_session
from booking_service.service import BookingService

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


class FakePublisher:
    """Collects published events instead of talking to RabbitMQ."""

    enabled = True

    def __init__(self):
        self.published = []

    async def start(self):
        pass

    async def publish(self, routing_key: str, body: str):
        self.published.append((routing_key, json.loads(body)))

    async def close(self):
        pass


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_booking():
    def _make(**overrides):
        fields = {
            "job_id": "job-1",
            "worker_id": "worker-1",
            "client_id": "client-1",
            "proposed_rate": 250,
            "estimated_hours": 4,
            "now": NOW,
        }
        fields.update(overrides)
        return engine.create_booking(**fields)

    return _make


@pytest.fixture
def advance():
    """Walk a booking through a sequence of statuses, one hour apart."""

    def _advance(booking, *statuses, start=NOW):
        at = start
        for status in statuses:
            at = at + timedelta(hours=1)
            engine.update_status(booking, status, now=at)
        return at

    return _advance


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    db = get_engine(f"sqlite+aiosqlite:///{tmp_path / 'bookings.db'}")
    async with db.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield db
    await db.dispose()


@pytest.fixture
def session_factory(db_engine):
    return get_session(db_engine)


@pytest.fixture
def publisher():
    return FakePublisher()


@pytest.fixture
def service(session_factory, publisher):
    return BookingService(session_factory, publisher)
