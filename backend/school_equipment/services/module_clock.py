"""School-day module clock.

The school day is split into fifteen fixed 40-minute modules starting at
08:00. All functions here work on wall-clock components of the values they
receive; callers decide which timezone "now" is expressed in (see
:func:`school_now`).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import UTC, date, datetime, time, timedelta
from typing import Final
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

DAY_START: Final = time(8, 0)
MODULE_MINUTES: Final = 40
MODULE_COUNT: Final = 15
FIRST_MODULE: Final = 1
LAST_MODULE: Final = MODULE_COUNT
MODULE_NUMBERS: Final = tuple(range(FIRST_MODULE, LAST_MODULE + 1))
DAY_LENGTH_MINUTES: Final = MODULE_MINUTES * MODULE_COUNT


def _minutes_since_day_start(now: datetime) -> int:
    return (now.hour - DAY_START.hour) * 60 + (now.minute - DAY_START.minute)


def current_module(now: datetime) -> int:
    """Return the module running at ``now``.

    Before 08:00 this is module 1, the earliest selectable module; from 18:00
    onwards it is capped at module 15.
    """
    elapsed = _minutes_since_day_start(now)
    if elapsed < 0:
        return FIRST_MODULE
    if elapsed >= DAY_LENGTH_MINUTES:
        return LAST_MODULE
    module = elapsed // MODULE_MINUTES + 1
    return min(max(module, FIRST_MODULE), LAST_MODULE)


def in_school_hours(now: datetime) -> bool:
    """True between 08:00 and the end of the last module."""
    return 0 <= _minutes_since_day_start(now) < DAY_LENGTH_MINUTES


def has_elapsed(module: int, day: date, now: datetime) -> bool:
    """Return True when ``module`` on ``day`` is already behind us today.

    Only today's modules can be elapsed; past dates are rejected separately by
    date validation.
    """
    if day != now.date():
        return False
    return module < current_module(now)


def is_valid_module(module: object) -> bool:
    return isinstance(module, int) and not isinstance(module, bool) and (
        FIRST_MODULE <= module <= LAST_MODULE
    )


def module_bounds(module: int) -> tuple[time, time]:
    """Return the wall-clock start and end of a module."""
    if not is_valid_module(module):
        raise ValueError(f"Module must be between {FIRST_MODULE} and {LAST_MODULE}")
    start = datetime.combine(date.min, DAY_START) + timedelta(
        minutes=(module - 1) * MODULE_MINUTES
    )
    end = start + timedelta(minutes=MODULE_MINUTES)
    return start.time(), end.time()


def format_module_span(modules: Iterable[int]) -> str:
    """Describe the time span covered by a module selection.

    A contiguous run reads "3 modules from 08:00 to 10:00"; anything else is
    rendered as first start to last end.
    """
    ordered = sorted(set(modules))
    if not ordered:
        return ""
    start, _ = module_bounds(ordered[0])
    _, end = module_bounds(ordered[-1])
    start_label = start.strftime("%H:%M")
    end_label = end.strftime("%H:%M")
    contiguous = ordered[-1] - ordered[0] + 1 == len(ordered)
    if len(ordered) > 1 and contiguous:
        return f"{len(ordered)} modules from {start_label} to {end_label}"
    return f"{start_label} - {end_label}"


def _resolve_timezone(tz_name: str) -> ZoneInfo:
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):  # pragma: no cover - depends on system tz database
        logger.warning("Unknown school timezone %s; falling back to UTC", tz_name)
        return ZoneInfo("UTC")


def school_now(tz_name: str) -> datetime:
    """Current time expressed in the school's local timezone."""
    return datetime.now(UTC).astimezone(_resolve_timezone(tz_name))


__all__ = [
    "DAY_START",
    "MODULE_COUNT",
    "MODULE_MINUTES",
    "MODULE_NUMBERS",
    "current_module",
    "format_module_span",
    "has_elapsed",
    "in_school_hours",
    "is_valid_module",
    "module_bounds",
    "school_now",
]
