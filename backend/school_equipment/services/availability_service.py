"""Module availability and series conflict checks.

These functions are pure: they evaluate a caller-supplied snapshot of
reservations and never touch the database. They serve as the fast pre-check;
the slot uniqueness constraint in storage stays the source of truth.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Protocol

from school_equipment.models.reservation import ReservationStatus
from school_equipment.services.calendar_days import as_calendar_day
from school_equipment.services.module_clock import MODULE_NUMBERS


class ReservationLike(Protocol):
    """Shape required from reservation snapshots (ORM rows or drafts)."""

    equipment_id: uuid.UUID
    date: date | datetime | str
    modules: Sequence[int]
    status: ReservationStatus | str


@dataclass(slots=True, frozen=True)
class Availability:
    """Outcome of checking one equipment/day against candidate modules."""

    available: bool
    occupied_modules: frozenset[int]
    conflicting_modules: tuple[int, ...] = ()


@dataclass(slots=True, frozen=True)
class SeriesValidation:
    """Outcome of checking every occurrence of a series."""

    valid: bool
    conflicting_dates: tuple[date, ...]
    occupied_by_date: dict[date, tuple[int, ...]] = field(default_factory=dict)


def _is_cancelled(status: ReservationStatus | str) -> bool:
    return ReservationStatus(status) == ReservationStatus.CANCELLED


def occupied_modules(
    equipment_id: uuid.UUID,
    day: date,
    reservations: Iterable[ReservationLike],
    *,
    exclude_reservation_id: uuid.UUID | None = None,
) -> frozenset[int]:
    """Union of modules claimed by non-cancelled reservations on that day."""
    target_day = as_calendar_day(day)
    occupied: set[int] = set()
    for reservation in reservations:
        if reservation.equipment_id != equipment_id:
            continue
        if exclude_reservation_id is not None and (
            getattr(reservation, "id", None) == exclude_reservation_id
        ):
            continue
        if _is_cancelled(reservation.status):
            continue
        if as_calendar_day(reservation.date) != target_day:
            continue
        occupied.update(reservation.modules)
    return frozenset(occupied)


def check_availability(
    equipment_id: uuid.UUID,
    day: date,
    candidate_modules: Iterable[int],
    reservations: Iterable[ReservationLike],
    *,
    exclude_reservation_id: uuid.UUID | None = None,
) -> Availability:
    """Check whether ``candidate_modules`` are free for the equipment on ``day``.

    An empty candidate set is vacuously available; rejecting an empty
    selection is the caller's job.
    """
    occupied = occupied_modules(
        equipment_id,
        day,
        reservations,
        exclude_reservation_id=exclude_reservation_id,
    )
    conflicts = tuple(sorted(set(candidate_modules) & occupied))
    return Availability(
        available=not conflicts,
        occupied_modules=occupied,
        conflicting_modules=conflicts,
    )


def available_modules(
    equipment_id: uuid.UUID,
    day: date,
    reservations: Iterable[ReservationLike],
) -> list[int]:
    """Module numbers still free for the equipment on ``day``."""
    occupied = occupied_modules(equipment_id, day, reservations)
    return [module for module in MODULE_NUMBERS if module not in occupied]


def validate_series(
    equipment_id: uuid.UUID,
    dates: Sequence[date],
    candidate_modules: Iterable[int],
    reservations: Iterable[ReservationLike],
) -> SeriesValidation:
    """Check every occurrence and collect all conflicting dates in order."""
    candidates = frozenset(candidate_modules)
    snapshot = list(reservations)
    conflicting: list[date] = []
    occupied_by_date: dict[date, tuple[int, ...]] = {}
    for day in dates:
        result = check_availability(equipment_id, day, candidates, snapshot)
        if not result.available:
            conflicting.append(day)
            occupied_by_date[day] = result.conflicting_modules
    return SeriesValidation(
        valid=not conflicting,
        conflicting_dates=tuple(conflicting),
        occupied_by_date=occupied_by_date,
    )
