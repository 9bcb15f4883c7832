"""Assemble validated reservation drafts from booking requests.

Every expected failure (missing fields, past dates, occupied modules, series
conflicts) comes back as a :class:`Rejection` value so callers can branch on
``ok``/``kind``. Exceptions are reserved for contract violations by the
caller.
"""

from __future__ import annotations

import enum
import uuid
from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import ClassVar

from school_equipment.models.reservation import Frequency, ReservationStatus
from school_equipment.services.availability_service import (
    ReservationLike,
    check_availability,
    validate_series,
)
from school_equipment.services.calendar_days import format_day
from school_equipment.services.module_clock import has_elapsed, is_valid_module
from school_equipment.services.recurrence_service import generate_dates

DEFAULT_CONFLICT_PREVIEW = 3
DEFAULT_MAX_OCCURRENCES = 400

_ALLOWED_STATUS_TRANSITIONS: dict[ReservationStatus, set[ReservationStatus]] = {
    ReservationStatus.PENDING: {
        ReservationStatus.CONFIRMED,
        ReservationStatus.CANCELLED,
    },
    ReservationStatus.CONFIRMED: {ReservationStatus.CANCELLED},
    ReservationStatus.CANCELLED: set(),
}

_CREATABLE_STATUSES = {ReservationStatus.PENDING, ReservationStatus.CONFIRMED}


class RejectionKind(str, enum.Enum):
    """Why a request was turned down."""

    INVALID_INPUT = "invalid-input"
    INVALID_DATE = "invalid-date"
    MODULES_UNAVAILABLE = "modules-unavailable"
    SERIES_CONFLICTS = "series-conflicts"


class InvalidStatusTransition(ValueError):
    """Raised when a status change is not part of the reservation lifecycle."""


@dataclass(slots=True)
class ReservationRequest:
    """Raw booking input; fields are optional so gaps can be reported."""

    equipment_id: uuid.UUID | None = None
    teacher_id: uuid.UUID | None = None
    date: date | None = None
    modules: Sequence[int] = ()
    status: ReservationStatus = ReservationStatus.PENDING
    observations: str | None = None
    frequency: Frequency | None = None
    series_end_date: date | None = None


@dataclass(slots=True, frozen=True)
class ReservationDraft:
    """A fully validated reservation ready to be persisted."""

    equipment_id: uuid.UUID
    teacher_id: uuid.UUID
    date: date
    modules: tuple[int, ...]
    status: ReservationStatus = ReservationStatus.PENDING
    observations: str | None = None
    is_recurring: bool = False
    series_id: uuid.UUID | None = None
    frequency: Frequency | None = None
    series_end_date: date | None = None


@dataclass(slots=True, frozen=True)
class Rejection:
    """Structured, recoverable refusal of a booking request."""

    ok: ClassVar[bool] = False

    kind: RejectionKind
    message: str
    errors: tuple[str, ...] = ()
    occupied_modules: tuple[int, ...] = ()
    conflicting_dates: tuple[date, ...] = ()
    extra: dict[str, object] = field(default_factory=dict)

    def as_detail(self) -> dict[str, object]:
        """Serialize into the validation-result payload returned to clients."""
        detail: dict[str, object] = {
            "ok": False,
            "kind": self.kind.value,
            "message": self.message,
            "errors": list(self.errors or (self.message,)),
        }
        if self.occupied_modules:
            detail["detail"] = list(self.occupied_modules)
        elif self.conflicting_dates:
            detail["detail"] = [day.isoformat() for day in self.conflicting_dates]
        detail.update(self.extra)
        return detail


def _invalid(kind: RejectionKind, errors: list[str]) -> Rejection:
    return Rejection(kind=kind, message="; ".join(errors), errors=tuple(errors))


def summarize_conflicting_dates(
    dates: Sequence[date], preview: int = DEFAULT_CONFLICT_PREVIEW
) -> str:
    """Render "Conflicts on dates: a, b, c and N more"."""
    if not dates:
        return ""
    shown = ", ".join(format_day(day) for day in dates[:preview])
    remainder = len(dates) - preview
    suffix = f" and {remainder} more" if remainder > 0 else ""
    return f"Conflicts on dates: {shown}{suffix}"


def _input_errors(request: ReservationRequest) -> list[str]:
    errors: list[str] = []
    if request.equipment_id is None:
        errors.append("Equipment must be selected")
    if request.teacher_id is None:
        errors.append("Teacher must be selected")
    if request.date is None:
        errors.append("Date must be selected")

    modules = list(request.modules or ())
    if not modules:
        errors.append("At least one module must be selected")
    invalid = [module for module in modules if not is_valid_module(module)]
    if invalid:
        errors.append(f"Invalid modules: {', '.join(str(m) for m in invalid)}")
    duplicates = sorted(m for m, count in Counter(modules).items() if count > 1)
    if duplicates and not invalid:
        errors.append(f"Duplicate modules: {', '.join(str(m) for m in duplicates)}")

    if ReservationStatus(request.status) not in _CREATABLE_STATUSES:
        errors.append("New reservations must be pending or confirmed")
    return errors


def _date_errors(
    day: date,
    *,
    today: date,
    last_day: date,
    horizon_days: int | None,
) -> list[str]:
    if day < today:
        return ["Reservations cannot be made for past dates"]
    if horizon_days is not None and last_day > today + timedelta(days=horizon_days):
        return [f"Reservations can be made at most {horizon_days} days ahead"]
    return []


def _elapsed_errors(
    day: date, modules: Iterable[int], now: datetime | None
) -> list[str]:
    if now is None:
        return []
    elapsed = sorted(m for m in set(modules) if has_elapsed(m, day, now))
    if not elapsed:
        return []
    return [f"Modules already elapsed today: {', '.join(str(m) for m in elapsed)}"]


@dataclass(slots=True, frozen=True)
class _Target:
    equipment_id: uuid.UUID
    teacher_id: uuid.UUID
    day: date


def _precheck(
    request: ReservationRequest,
    *,
    today: date,
    now: datetime | None,
    last_day: date | None,
    horizon_days: int | None,
) -> Rejection | _Target:
    errors = _input_errors(request)
    equipment_id, teacher_id, day = (
        request.equipment_id,
        request.teacher_id,
        request.date,
    )
    if errors or equipment_id is None or teacher_id is None or day is None:
        return _invalid(RejectionKind.INVALID_INPUT, errors)

    date_errors = _date_errors(
        day,
        today=today,
        last_day=last_day or day,
        horizon_days=horizon_days,
    )
    if date_errors:
        return _invalid(RejectionKind.INVALID_DATE, date_errors)

    elapsed = _elapsed_errors(day, request.modules, now)
    if elapsed:
        return _invalid(RejectionKind.INVALID_INPUT, elapsed)
    return _Target(equipment_id=equipment_id, teacher_id=teacher_id, day=day)


def occurrence_limit_rejection(
    dates: Sequence[date], max_occurrences: int = DEFAULT_MAX_OCCURRENCES
) -> Rejection | None:
    """Refuse series that expand into more than ``max_occurrences`` dates.

    ``dates`` may be cut short at ``max_occurrences + 1`` entries; the
    rejection does not depend on the exact total.
    """
    if len(dates) <= max_occurrences:
        return None
    return _invalid(
        RejectionKind.INVALID_INPUT,
        [f"Series would create more than {max_occurrences} reservations"],
    )


def build_single(
    request: ReservationRequest,
    reservations: Iterable[ReservationLike],
    *,
    today: date,
    now: datetime | None = None,
    horizon_days: int | None = None,
    exclude_reservation_id: uuid.UUID | None = None,
) -> ReservationDraft | Rejection:
    """Validate a one-off booking and return its draft or the rejection."""
    target = _precheck(
        request,
        today=today,
        now=now,
        last_day=None,
        horizon_days=horizon_days,
    )
    if isinstance(target, Rejection):
        return target

    availability = check_availability(
        target.equipment_id,
        target.day,
        request.modules,
        reservations,
        exclude_reservation_id=exclude_reservation_id,
    )
    if not availability.available:
        modules_label = ", ".join(str(m) for m in availability.conflicting_modules)
        return Rejection(
            kind=RejectionKind.MODULES_UNAVAILABLE,
            message=f"Modules not available: {modules_label}",
            occupied_modules=availability.conflicting_modules,
        )

    return ReservationDraft(
        equipment_id=target.equipment_id,
        teacher_id=target.teacher_id,
        date=target.day,
        modules=tuple(sorted(request.modules)),
        status=ReservationStatus(request.status),
        observations=request.observations,
    )


def _series_observations(observations: str | None, frequency: Frequency) -> str:
    note = f"Recurring reservation ({frequency.value})"
    if observations:
        return f"{observations} • {note}"
    return note


def build_series(
    request: ReservationRequest,
    reservations: Iterable[ReservationLike],
    *,
    today: date,
    now: datetime | None = None,
    horizon_days: int | None = None,
    preview_limit: int = DEFAULT_CONFLICT_PREVIEW,
    max_occurrences: int = DEFAULT_MAX_OCCURRENCES,
) -> list[ReservationDraft] | Rejection:
    """Validate a recurring booking; all occurrences or a rejection, never part."""
    errors: list[str] = []
    frequency, series_end = request.frequency, request.series_end_date
    if frequency is None:
        errors.append("Frequency is required for recurring reservations")
    if series_end is None:
        errors.append("Series end date must be selected")
    elif request.date is not None and series_end <= request.date:
        errors.append("Series end date must be after the start date")
    if errors or frequency is None or series_end is None:
        return _invalid(RejectionKind.INVALID_INPUT, _input_errors(request) + errors)

    target = _precheck(
        request,
        today=today,
        now=now,
        last_day=series_end,
        horizon_days=horizon_days,
    )
    if isinstance(target, Rejection):
        return target

    frequency = Frequency(frequency)
    dates = generate_dates(
        target.day, frequency, series_end, limit=max_occurrences + 1
    )
    too_many = occurrence_limit_rejection(dates, max_occurrences)
    if too_many is not None:
        return too_many

    snapshot = list(reservations)
    validation = validate_series(
        target.equipment_id, dates, request.modules, snapshot
    )
    if not validation.valid:
        return Rejection(
            kind=RejectionKind.SERIES_CONFLICTS,
            message=summarize_conflicting_dates(
                validation.conflicting_dates, preview_limit
            ),
            conflicting_dates=validation.conflicting_dates,
            extra={"conflict_count": len(validation.conflicting_dates)},
        )

    series_id = uuid.uuid4()
    modules = tuple(sorted(request.modules))
    observations = _series_observations(request.observations, frequency)
    return [
        ReservationDraft(
            equipment_id=target.equipment_id,
            teacher_id=target.teacher_id,
            date=day,
            modules=modules,
            status=ReservationStatus(request.status),
            observations=observations,
            is_recurring=True,
            series_id=series_id,
            frequency=frequency,
            series_end_date=series_end,
        )
        for day in dates
    ]


def validate_status_transition(
    current: ReservationStatus, target: ReservationStatus
) -> None:
    """Allow pending→confirmed and pending|confirmed→cancelled only."""
    if target == current:
        return
    allowed = _ALLOWED_STATUS_TRANSITIONS.get(current, set())
    if target not in allowed:
        raise InvalidStatusTransition(
            f"Invalid status transition from {current.value} to {target.value}"
        )
