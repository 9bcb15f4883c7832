"""Occurrence generation for recurring reservations."""

from __future__ import annotations

import calendar
from datetime import MAXYEAR, date, timedelta
from typing import Final

from school_equipment.models.reservation import Frequency

_DAY_STEPS: Final[dict[Frequency, timedelta]] = {
    Frequency.DAILY: timedelta(days=1),
    Frequency.WEEKLY: timedelta(weeks=1),
    Frequency.BIWEEKLY: timedelta(weeks=2),
}


def add_months(anchor: date, months: int) -> date:
    """Shift ``anchor`` by whole calendar months.

    The day is clamped to the length of the target month, so January 31 plus
    one month is the last day of February. Raises ``OverflowError`` past
    year 9999, like ``date`` arithmetic with ``timedelta`` does.
    """
    month_index = anchor.month - 1 + months
    year = anchor.year + month_index // 12
    if not 1 <= year <= MAXYEAR:
        raise OverflowError("date value out of range")
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(anchor.day, last_day))


def generate_dates(
    start: date,
    frequency: Frequency | str,
    end: date,
    *,
    limit: int | None = None,
) -> list[date]:
    """Return every occurrence from ``start`` through ``end`` inclusive.

    Monthly occurrences are always computed from ``start`` (the n-th occurrence
    is ``start`` plus n months), so a series starting on the 31st returns to
    the 31st in long months instead of drifting after February. Generation
    stops at the last representable date, or once ``limit`` dates exist.
    """
    frequency = Frequency(frequency)
    if start > end:
        return []

    dates: list[date] = []
    current = start
    step = 0
    delta = _DAY_STEPS.get(frequency)
    while current <= end:
        dates.append(current)
        if limit is not None and len(dates) >= limit:
            break
        step += 1
        try:
            if delta is None:
                current = add_months(start, step)
            else:
                current += delta
        except OverflowError:
            break
    return dates
