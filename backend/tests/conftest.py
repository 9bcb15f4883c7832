"""Test fixtures for the school equipment backend."""
from __future__ import annotations

import os
import uuid
from collections.abc import AsyncIterator
from datetime import datetime

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")

from school_equipment.api import deps
from school_equipment.core.config import get_settings
from school_equipment.db.base import Base
from school_equipment.db.session import (
    create_engine_for_url,
    dispose_engine,
    get_sessionmaker,
)
from school_equipment.main import app
from school_equipment.models import Equipment, Teacher

# Monday 10 March 2025, 09:00 school time: module 2 is running.
FIXED_NOW = datetime(2025, 3, 10, 9, 0)


@pytest.fixture(scope="session")
def db_url(tmp_path_factory: pytest.TempPathFactory) -> str:
    """Provide a temporary SQLite database URL for the test session."""
    db_path = tmp_path_factory.mktemp("db") / "test.db"
    return f"sqlite+aiosqlite:///{db_path}"


@pytest_asyncio.fixture()
async def reset_database(db_url: str) -> AsyncIterator[None]:
    """Drop and recreate the database schema for an isolated test."""
    os.environ["DATABASE_URL"] = db_url
    get_settings.cache_clear()
    get_settings()

    await dispose_engine(db_url)
    engine = create_engine_for_url(db_url)
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.drop_all)
        await connection.run_sync(Base.metadata.create_all)
    await engine.dispose()
    yield
    await dispose_engine(db_url)


@pytest.fixture()
def booking_clock() -> deps.BookingClock:
    return deps.BookingClock(now=FIXED_NOW)


@pytest_asyncio.fixture()
async def seeded(reset_database: None, db_url: str) -> dict[str, uuid.UUID]:
    """Seed two projectors (one withdrawn from booking) and two teachers."""
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        projector = Equipment(name="Projector 1", location="Library")
        retired = Equipment(name="Old projector", location="Storage", available=False)
        ana = Teacher(first_name="Ana", last_name="Rojas", course="1° A", subject="Mathematics")
        luis = Teacher(first_name="Luis", last_name="Pérez", course="2° B", subject="History")
        session.add_all([projector, retired, ana, luis])
        await session.commit()
        return {
            "equipment_id": projector.id,
            "unavailable_equipment_id": retired.id,
            "teacher_id": ana.id,
            "other_teacher_id": luis.id,
        }


@pytest_asyncio.fixture()
async def app_context(
    seeded: dict[str, uuid.UUID], booking_clock: deps.BookingClock
) -> AsyncIterator[dict[str, object]]:
    """Yield an async client bound to a fixed school clock and the seeded ids."""
    app.dependency_overrides[deps.get_booking_clock] = lambda: booking_clock
    context: dict[str, object] = dict(seeded)
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            context["client"] = client
            yield context
    finally:
        app.dependency_overrides.pop(deps.get_booking_clock, None)
