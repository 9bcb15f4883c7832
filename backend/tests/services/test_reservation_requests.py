"""Tests for assembling single and recurring reservation drafts."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime

import pytest

from school_equipment.models.reservation import Frequency, ReservationStatus
from school_equipment.services.reservation_request_service import (
    InvalidStatusTransition,
    Rejection,
    RejectionKind,
    ReservationDraft,
    ReservationRequest,
    build_series,
    build_single,
    summarize_conflicting_dates,
    validate_status_transition,
)

EQUIPMENT = uuid.uuid4()
TEACHER = uuid.uuid4()
TODAY = date(2025, 10, 1)


@dataclass(frozen=True)
class Booking:
    equipment_id: uuid.UUID
    date: date
    modules: list[int]
    status: ReservationStatus = ReservationStatus.CONFIRMED
    id: uuid.UUID = field(default_factory=uuid.uuid4)


def _request(**overrides) -> ReservationRequest:
    values = {
        "equipment_id": EQUIPMENT,
        "teacher_id": TEACHER,
        "date": date(2025, 10, 7),
        "modules": [3, 4],
    }
    values.update(overrides)
    return ReservationRequest(**values)


def _series_request(**overrides) -> ReservationRequest:
    values = {
        "date": date(2025, 10, 6),
        "modules": [1, 2],
        "frequency": Frequency.WEEKLY,
        "series_end_date": date(2025, 10, 27),
    }
    values.update(overrides)
    return _request(**values)


def test_build_single_returns_draft() -> None:
    outcome = build_single(
        _request(modules=[4, 3], observations="Lab"), [], today=TODAY
    )

    assert isinstance(outcome, ReservationDraft)
    assert outcome.modules == (3, 4)
    assert outcome.status == ReservationStatus.PENDING
    assert outcome.observations == "Lab"
    assert outcome.is_recurring is False
    assert outcome.series_id is None


def test_build_single_reports_missing_fields_together() -> None:
    outcome = build_single(ReservationRequest(), [], today=TODAY)

    assert isinstance(outcome, Rejection)
    assert outcome.ok is False
    assert outcome.kind == RejectionKind.INVALID_INPUT
    assert outcome.errors == (
        "Equipment must be selected",
        "Teacher must be selected",
        "Date must be selected",
        "At least one module must be selected",
    )


@pytest.mark.parametrize(
    ("modules", "message"),
    [
        ([0, 3], "Invalid modules: 0"),
        ([16], "Invalid modules: 16"),
        ([3, 3], "Duplicate modules: 3"),
    ],
)
def test_build_single_rejects_bad_modules(modules: list[int], message: str) -> None:
    outcome = build_single(_request(modules=modules), [], today=TODAY)

    assert isinstance(outcome, Rejection)
    assert outcome.kind == RejectionKind.INVALID_INPUT
    assert message in outcome.errors


def test_build_single_rejects_cancelled_initial_status() -> None:
    outcome = build_single(
        _request(status=ReservationStatus.CANCELLED), [], today=TODAY
    )

    assert isinstance(outcome, Rejection)
    assert outcome.kind == RejectionKind.INVALID_INPUT


def test_build_single_rejects_past_dates() -> None:
    outcome = build_single(_request(date=date(2025, 9, 30)), [], today=TODAY)

    assert isinstance(outcome, Rejection)
    assert outcome.kind == RejectionKind.INVALID_DATE


def test_today_is_bookable_but_elapsed_modules_are_not() -> None:
    now = datetime(2025, 10, 1, 10, 5)  # module 4 running

    accepted = build_single(
        _request(date=TODAY, modules=[4, 5]), [], today=TODAY, now=now
    )
    rejected = build_single(
        _request(date=TODAY, modules=[2, 4]), [], today=TODAY, now=now
    )

    assert isinstance(accepted, ReservationDraft)
    assert isinstance(rejected, Rejection)
    assert rejected.kind == RejectionKind.INVALID_INPUT
    assert rejected.errors == ("Modules already elapsed today: 2",)


def test_booking_horizon_is_enforced() -> None:
    outcome = build_single(
        _request(date=date(2025, 10, 20)), [], today=TODAY, horizon_days=14
    )

    assert isinstance(outcome, Rejection)
    assert outcome.kind == RejectionKind.INVALID_DATE
    assert "14 days" in outcome.message


def test_build_single_reports_occupied_modules() -> None:
    existing = Booking(EQUIPMENT, date(2025, 10, 7), [3, 4])

    outcome = build_single(_request(modules=[4, 5]), [existing], today=TODAY)

    assert isinstance(outcome, Rejection)
    assert outcome.kind == RejectionKind.MODULES_UNAVAILABLE
    assert outcome.occupied_modules == (4,)
    assert outcome.as_detail() == {
        "ok": False,
        "kind": "modules-unavailable",
        "message": "Modules not available: 4",
        "errors": ["Modules not available: 4"],
        "detail": [4],
    }


def test_build_single_ignores_the_reservation_being_edited() -> None:
    existing = Booking(EQUIPMENT, date(2025, 10, 7), [3, 4])

    outcome = build_single(
        _request(modules=[4, 5]),
        [existing],
        today=TODAY,
        exclude_reservation_id=existing.id,
    )

    assert isinstance(outcome, ReservationDraft)


def test_build_series_creates_every_occurrence_with_one_series_id() -> None:
    outcome = build_series(
        _series_request(observations="Algebra", status=ReservationStatus.CONFIRMED),
        [],
        today=TODAY,
    )

    assert isinstance(outcome, list)
    assert [draft.date for draft in outcome] == [
        date(2025, 10, 6),
        date(2025, 10, 13),
        date(2025, 10, 20),
        date(2025, 10, 27),
    ]
    assert len({draft.series_id for draft in outcome}) == 1
    assert outcome[0].series_id is not None
    assert all(draft.is_recurring for draft in outcome)
    assert all(draft.frequency == Frequency.WEEKLY for draft in outcome)
    assert all(draft.series_end_date == date(2025, 10, 27) for draft in outcome)
    assert all(draft.status == ReservationStatus.CONFIRMED for draft in outcome)
    assert outcome[0].observations == "Algebra • Recurring reservation (weekly)"


def test_build_series_rejects_when_any_occurrence_conflicts() -> None:
    existing = Booking(EQUIPMENT, date(2025, 10, 13), [2])

    outcome = build_series(_series_request(), [existing], today=TODAY)

    assert isinstance(outcome, Rejection)
    assert outcome.kind == RejectionKind.SERIES_CONFLICTS
    assert outcome.conflicting_dates == (date(2025, 10, 13),)
    assert outcome.message == "Conflicts on dates: 13/10/2025"
    detail = outcome.as_detail()
    assert detail["detail"] == ["2025-10-13"]
    assert detail["conflict_count"] == 1


def test_build_series_lists_every_conflicting_date() -> None:
    bookings = [
        Booking(EQUIPMENT, date(2025, 10, 6), [1]),
        Booking(EQUIPMENT, date(2025, 10, 20), [2]),
    ]

    outcome = build_series(_series_request(), bookings, today=TODAY)

    assert isinstance(outcome, Rejection)
    assert outcome.conflicting_dates == (date(2025, 10, 6), date(2025, 10, 20))


def test_build_series_truncates_long_conflict_summaries() -> None:
    bookings = [
        Booking(EQUIPMENT, date(2025, 10, day), [1]) for day in range(6, 11)
    ]

    outcome = build_series(
        _series_request(frequency=Frequency.DAILY, series_end_date=date(2025, 10, 10)),
        bookings,
        today=TODAY,
    )

    assert isinstance(outcome, Rejection)
    assert outcome.message == (
        "Conflicts on dates: 06/10/2025, 07/10/2025, 08/10/2025 and 2 more"
    )
    assert outcome.extra == {"conflict_count": 5}


@pytest.mark.parametrize(
    ("overrides", "error"),
    [
        ({"frequency": None}, "Frequency is required for recurring reservations"),
        ({"series_end_date": None}, "Series end date must be selected"),
        (
            {"series_end_date": date(2025, 10, 6)},
            "Series end date must be after the start date",
        ),
    ],
)
def test_build_series_requires_recurrence_fields(overrides: dict, error: str) -> None:
    outcome = build_series(_series_request(**overrides), [], today=TODAY)

    assert isinstance(outcome, Rejection)
    assert outcome.kind == RejectionKind.INVALID_INPUT
    assert error in outcome.errors


def test_build_series_applies_horizon_to_series_end() -> None:
    outcome = build_series(
        _series_request(series_end_date=date(2025, 12, 29)),
        [],
        today=TODAY,
        horizon_days=30,
    )

    assert isinstance(outcome, Rejection)
    assert outcome.kind == RejectionKind.INVALID_DATE


def test_build_series_caps_occurrences() -> None:
    outcome = build_series(
        _series_request(frequency=Frequency.DAILY, series_end_date=date(2025, 12, 31)),
        [],
        today=TODAY,
        max_occurrences=10,
    )

    assert isinstance(outcome, Rejection)
    assert outcome.kind == RejectionKind.INVALID_INPUT
    assert outcome.message == "Series would create more than 10 reservations"


def test_summarize_conflicting_dates() -> None:
    days = [date(2025, 10, day) for day in (6, 13)]

    assert summarize_conflicting_dates([]) == ""
    assert summarize_conflicting_dates(days) == "Conflicts on dates: 06/10/2025, 13/10/2025"
    assert summarize_conflicting_dates(days, preview=1) == (
        "Conflicts on dates: 06/10/2025 and 1 more"
    )


@pytest.mark.parametrize(
    ("current", "target"),
    [
        (ReservationStatus.PENDING, ReservationStatus.CONFIRMED),
        (ReservationStatus.PENDING, ReservationStatus.CANCELLED),
        (ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED),
        (ReservationStatus.CONFIRMED, ReservationStatus.CONFIRMED),
    ],
)
def test_allowed_status_transitions(
    current: ReservationStatus, target: ReservationStatus
) -> None:
    validate_status_transition(current, target)


@pytest.mark.parametrize(
    ("current", "target"),
    [
        (ReservationStatus.CONFIRMED, ReservationStatus.PENDING),
        (ReservationStatus.CANCELLED, ReservationStatus.PENDING),
        (ReservationStatus.CANCELLED, ReservationStatus.CONFIRMED),
    ],
)
def test_rejected_status_transitions(
    current: ReservationStatus, target: ReservationStatus
) -> None:
    with pytest.raises(InvalidStatusTransition):
        validate_status_transition(current, target)
