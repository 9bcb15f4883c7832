"""Grouping and usage summaries over reservation snapshots."""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Protocol

from school_equipment.models.reservation import ReservationStatus
from school_equipment.services.calendar_days import as_calendar_day
from school_equipment.services.module_clock import (
    DAY_START,
    current_module,
    in_school_hours,
)

BOARD_LOOKAHEAD_MODULES = 3


class _SeriesMember(Protocol):
    id: uuid.UUID
    is_recurring: bool
    series_id: uuid.UUID | None


class _UsageRow(Protocol):
    equipment_id: uuid.UUID
    teacher_id: uuid.UUID
    date: date
    modules: list[int]
    status: ReservationStatus


@dataclass(slots=True, frozen=True)
class EquipmentUsage:
    """Confirmed usage of one equipment over a date range."""

    equipment_id: uuid.UUID
    total_reservations: int
    total_modules: int
    days_with_reservations: int
    distinct_teachers: int
    average_modules_per_reservation: float


def group_by_series(reservations: Iterable[_SeriesMember]) -> dict[str, list]:
    """Group series occurrences under their series id.

    Standalone reservations each get their own ``individual-<id>`` key after
    the series groups.
    """
    groups: dict[str, list] = {}
    standalone = []
    for reservation in reservations:
        if reservation.is_recurring and reservation.series_id is not None:
            groups.setdefault(str(reservation.series_id), []).append(reservation)
        else:
            standalone.append(reservation)
    for reservation in standalone:
        groups[f"individual-{reservation.id}"] = [reservation]
    return groups


def equipment_usage(
    equipment_id: uuid.UUID,
    reservations: Iterable[_UsageRow],
    start: date,
    end: date,
) -> EquipmentUsage:
    rows = [
        reservation
        for reservation in reservations
        if reservation.equipment_id == equipment_id
        and ReservationStatus(reservation.status) == ReservationStatus.CONFIRMED
        and start <= as_calendar_day(reservation.date) <= end
    ]
    total_modules = sum(len(row.modules) for row in rows)
    return EquipmentUsage(
        equipment_id=equipment_id,
        total_reservations=len(rows),
        total_modules=total_modules,
        days_with_reservations=len({as_calendar_day(row.date) for row in rows}),
        distinct_teachers=len({row.teacher_id for row in rows}),
        average_modules_per_reservation=(total_modules / len(rows)) if rows else 0.0,
    )


@dataclass(slots=True)
class DisplayBoard:
    """What the equipment display shows at one moment of the school day."""

    module: int
    in_session: bool
    current: list = field(default_factory=list)
    upcoming: list[tuple[object, int]] = field(default_factory=list)


def display_board(
    reservations: Iterable[_UsageRow],
    now: datetime,
    *,
    lookahead: int = BOARD_LOOKAHEAD_MODULES,
) -> DisplayBoard:
    """Today's confirmed reservations in use now and about to start.

    ``upcoming`` pairs each reservation with the number of modules until its
    first module begins. Before 08:00 the horizon starts at module 1; after
    the last module the board is empty.
    """
    module = current_module(now)
    in_session = in_school_hours(now)
    board = DisplayBoard(module=module, in_session=in_session)
    if in_session:
        horizon_start = module
    elif now.time() < DAY_START:
        horizon_start = 0
    else:
        return board

    today = now.date()
    rows = sorted(
        (
            reservation
            for reservation in reservations
            if ReservationStatus(reservation.status) == ReservationStatus.CONFIRMED
            and as_calendar_day(reservation.date) == today
            and reservation.modules
        ),
        key=lambda reservation: min(reservation.modules),
    )
    for reservation in rows:
        first = min(reservation.modules)
        if in_session and module in reservation.modules:
            board.current.append(reservation)
        elif horizon_start < first <= horizon_start + lookahead:
            board.upcoming.append((reservation, first - horizon_start))
    return board
