# backend/tests/conftest.py
"""
Pytest configuration for the CareNow booking core.

Every test gets its own in-memory SQLite database; nothing touches a file
or a network store.
"""

import os

# Must be set before carenow.core.config is imported
os.environ.setdefault("CARENOW_DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("CARENOW_ENVIRONMENT", "test")

from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable

from broadcaster import Broadcast
import pytest
import pytest_asyncio
from sqlalchemy.orm import Session

from carenow.core.config import Settings
from carenow.core.ulid_helper import generate_ulid
from carenow.database import create_db_engine, create_session_factory, init_db
from carenow.models import Booking, Partner, Service, User
from carenow.models.booking import BookingStatus

TEST_DATABASE_URL = "sqlite+pysqlite:///:memory:"

WEEK = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


def _validate_test_database_url(database_url: str) -> None:
    if not database_url.startswith("sqlite") or ":memory:" not in database_url:
        raise RuntimeError(f"Tests must run against in-memory SQLite, got {database_url}")


@pytest.fixture
def test_settings() -> Settings:
    return Settings(_env_file=None, database_url=TEST_DATABASE_URL, environment="test")


@pytest.fixture
def db_engine(test_settings):
    _validate_test_database_url(test_settings.database_url)
    engine = create_db_engine(test_settings.database_url)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(db_engine) -> Session:
    session = create_session_factory(db_engine)()
    try:
        yield session
    finally:
        session.close()


@pytest_asyncio.fixture
async def broadcast():
    instance = Broadcast("memory://")
    await instance.connect()
    try:
        yield instance
    finally:
        await instance.disconnect()


# ---------------------------------------------------------------------------
# Seed builders
# ---------------------------------------------------------------------------


@pytest.fixture
def make_service(db) -> Callable[..., Service]:
    def _make(**overrides: Any) -> Service:
        data = {
            "id": "elder_care_1",
            "name": "Elder care",
            "description": "Companionship and daily assistance",
            "category": "elder_care",
            "base_price": 100000.0,
            "duration_minutes": 60,
            "requirements": [],
            "benefits": ["Trained caregivers"],
            "is_active": True,
            "sort_order": 1,
        }
        data.update(overrides)
        service = Service(**data)
        db.add(service)
        db.commit()
        return service

    return _make


@pytest.fixture
def make_partner(db) -> Callable[..., Partner]:
    def _make(**overrides: Any) -> Partner:
        data = {
            "id": generate_ulid(),
            "user_id": generate_ulid(),
            "name": "Lan Nguyen",
            "rating": 4.5,
            "total_reviews": 0,
            "price_per_hour": 100000.0,
            "services": ["elder_care_1"],
            "latitude": 10.7769,
            "longitude": 106.7009,
            "working_hours": {day: ["08:00-12:00", "13:00-17:00"] for day in WEEK},
            "is_verified": True,
            "is_available": True,
        }
        data.update(overrides)
        partner = Partner(**data)
        db.add(partner)
        db.commit()
        return partner

    return _make


@pytest.fixture
def make_user(db) -> Callable[..., User]:
    def _make(**overrides: Any) -> User:
        data = {"id": generate_ulid(), "email": "client@example.com", "display_name": "Client"}
        data.update(overrides)
        user = User(**data)
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def make_booking(db) -> Callable[..., Booking]:
    def _make(**overrides: Any) -> Booking:
        data = {
            "user_id": "user-1",
            "partner_id": "partner-1",
            "service_id": "elder_care_1",
            "service_name": "Elder care",
            "scheduled_date": date(2030, 1, 15),
            "time_slot": "10:00-12:00",
            "hours": 2.0,
            "total_price": 200000.0,
            "status": BookingStatus.PENDING.value,
            "client_address": "12 Le Loi, District 1",
            "client_latitude": 10.7769,
            "client_longitude": 106.7009,
        }
        data.update(overrides)
        booking = Booking(**data)
        db.add(booking)
        db.commit()
        return booking

    return _make


@pytest.fixture
def booking_start() -> datetime:
    """Scheduled start of the default make_booking row."""
    return datetime(2030, 1, 15, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def hours_before(booking_start) -> Callable[[float], datetime]:
    def _at(hours: float) -> datetime:
        return booking_start - timedelta(hours=hours)

    return _at
