"""Common API dependencies."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from dataclasses import dataclass
from datetime import date, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from school_equipment.core.config import get_settings
from school_equipment.db.session import get_session
from school_equipment.services.module_clock import school_now


@dataclass(slots=True, frozen=True)
class BookingClock:
    """The school's local "now" used to judge past dates and elapsed modules."""

    now: datetime

    @property
    def today(self) -> date:
        return self.now.date()


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide an async database session."""
    async for session in get_session():
        yield session


def get_booking_clock() -> BookingClock:
    """Resolve the current time in the configured school timezone."""
    settings = get_settings()
    return BookingClock(now=school_now(settings.school_timezone))
