"""Date-only helpers used at the serialization boundary."""

from __future__ import annotations

from datetime import date, datetime


def as_calendar_day(value: date | datetime | str) -> date:
    """Return the calendar day a value denotes, ignoring time and offset.

    Datetimes keep their own year/month/day even when they carry a UTC offset;
    "2025-10-07T23:30:00-05:00" is October 7 no matter where it is read.
    """
    if isinstance(value, datetime):
        return date(value.year, value.month, value.day)
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if len(text) < 10:
            raise ValueError(f"Invalid calendar day: {value!r}")
        return date.fromisoformat(text[:10])
    raise TypeError(f"Cannot interpret {type(value).__name__} as a calendar day")


def format_day(day: date) -> str:
    """Render a day the way it is shown to staff (dd/mm/YYYY)."""
    return day.strftime("%d/%m/%Y")
