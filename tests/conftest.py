"""Shared fixtures: an isolated SQLite database per test and API clients."""

import os

# Must be set before tablebook.core.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BUSINESS_TIMEZONE", "UTC")

from datetime import date, datetime, time, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tablebook.core.config import settings
from tablebook.db.base import Base
from tablebook.db.init_db import seed_tables
from tablebook.db.session import get_db
from tablebook.main import app
from tablebook.scheduling.hours import seed_default_hours


def next_weekday(isoweekday: int, weeks_ahead: int = 2) -> date:
    """A date at least ``weeks_ahead`` weeks out falling on ``isoweekday`` (1 = Monday)."""
    start = date.today() + timedelta(weeks=weeks_ahead)
    return start + timedelta(days=(isoweekday - start.isoweekday()) % 7)


# Weekdays open 12:00-23:00, weekends 11:00-22:00 with the default calendar
MONDAY = next_weekday(1)
SUNDAY = next_weekday(7)


def at(day: date, hh: int, mm: int = 0) -> datetime:
    return datetime.combine(day, time(hh, mm))


@pytest.fixture
def engine():
    """In-memory SQLite shared across threads of a single test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    """A session over an empty schema."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def seeded_db(db):
    """The default eight-table floor plan and opening hours."""
    seed_tables(db)
    seed_default_hours(db)
    return db


@pytest.fixture
def client(seeded_db, session_factory):
    """Unauthenticated client bound to the seeded test database."""

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers(client):
    """Bearer header for a freshly registered admin."""
    response = client.post(
        "/api/v1/auth/admin/register",
        json={
            "email": "manager@example.com",
            "full_name": "Floor Manager",
            "password": "secret-pass",
            "admin_secret": settings.ADMIN_SECRET_KEY,
        },
    )
    assert response.status_code == 201
    return {"Authorization": f"Bearer {response.json()['access_token']}"}
