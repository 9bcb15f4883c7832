"""Reservation persistence helpers.

Creation and edits re-run the pure availability checks against a fresh
snapshot inside the same session that commits the rows. The
``reservation_slots`` unique constraint catches whatever slips through
between the check and the commit (concurrent requests); such failures are
reported as ``modules-unavailable`` rejections, never as server errors.
"""
from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from school_equipment.models.equipment import Equipment
from school_equipment.models.reservation import (
    Frequency,
    Reservation,
    ReservationSlot,
    ReservationStatus,
)
from school_equipment.models.teacher import Teacher
from school_equipment.services.availability_service import (
    Availability,
    available_modules,
    check_availability,
    validate_series,
)
from school_equipment.services.recurrence_service import generate_dates
from school_equipment.services.reservation_request_service import (
    DEFAULT_CONFLICT_PREVIEW,
    DEFAULT_MAX_OCCURRENCES,
    Rejection,
    RejectionKind,
    ReservationDraft,
    ReservationRequest,
    build_series,
    build_single,
    occurrence_limit_rejection,
    summarize_conflicting_dates,
    validate_status_transition,
)

logger = logging.getLogger(__name__)

_UNSET = object()


@dataclass(slots=True, frozen=True)
class SeriesPreview:
    """Occurrences a series request would create and where it collides."""

    dates: list[date]
    conflicting_dates: tuple[date, ...]
    summary: str

    @property
    def valid(self) -> bool:
        return not self.conflicting_dates


def _base_reservation_query():
    return select(Reservation).options(
        selectinload(Reservation.equipment),
        selectinload(Reservation.teacher),
    )


async def list_reservations(
    session: AsyncSession,
    *,
    equipment_id: uuid.UUID | None = None,
    teacher_id: uuid.UUID | None = None,
    status: ReservationStatus | None = None,
    series_id: uuid.UUID | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    skip: int = 0,
    limit: int | None = None,
) -> Sequence[Reservation]:
    stmt = _base_reservation_query()
    if equipment_id is not None:
        stmt = stmt.where(Reservation.equipment_id == equipment_id)
    if teacher_id is not None:
        stmt = stmt.where(Reservation.teacher_id == teacher_id)
    if status is not None:
        stmt = stmt.where(Reservation.status == status)
    if series_id is not None:
        stmt = stmt.where(Reservation.series_id == series_id)
    if date_from is not None:
        stmt = stmt.where(Reservation.date >= date_from)
    if date_to is not None:
        stmt = stmt.where(Reservation.date <= date_to)
    stmt = stmt.order_by(Reservation.date, Reservation.created_at).offset(skip)
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await session.execute(stmt)
    return result.scalars().unique().all()


async def get_reservation(
    session: AsyncSession,
    *,
    reservation_id: uuid.UUID,
) -> Reservation | None:
    stmt = _base_reservation_query().where(Reservation.id == reservation_id)
    result = await session.execute(stmt)
    return result.scalars().unique().one_or_none()


async def get_series(
    session: AsyncSession,
    *,
    series_id: uuid.UUID,
) -> Sequence[Reservation]:
    return await list_reservations(session, series_id=series_id)


async def load_snapshot(
    session: AsyncSession,
    *,
    equipment_id: uuid.UUID,
    date_from: date,
    date_to: date,
) -> list[Reservation]:
    """Non-cancelled reservations of one equipment inside a date window."""
    result = await session.execute(
        select(Reservation).where(
            Reservation.equipment_id == equipment_id,
            Reservation.status != ReservationStatus.CANCELLED,
            Reservation.date >= date_from,
            Reservation.date <= date_to,
        )
    )
    return list(result.scalars().all())


async def count_active_reservations(
    session: AsyncSession,
    *,
    equipment_id: uuid.UUID | None = None,
    teacher_id: uuid.UUID | None = None,
) -> int:
    """Number of non-cancelled reservations for an equipment and/or teacher."""
    stmt = select(func.count()).select_from(Reservation).where(
        Reservation.status != ReservationStatus.CANCELLED
    )
    if equipment_id is not None:
        stmt = stmt.where(Reservation.equipment_id == equipment_id)
    if teacher_id is not None:
        stmt = stmt.where(Reservation.teacher_id == teacher_id)
    result = await session.execute(stmt)
    return result.scalar_one()


async def _validate_equipment(
    session: AsyncSession, *, equipment_id: uuid.UUID
) -> Equipment:
    equipment = await session.get(Equipment, equipment_id)
    if equipment is None:
        raise ValueError("Equipment not found")
    if not equipment.available:
        raise ValueError("Equipment is not available for booking")
    return equipment


async def _validate_teacher(session: AsyncSession, *, teacher_id: uuid.UUID) -> Teacher:
    teacher = await session.get(Teacher, teacher_id)
    if teacher is None:
        raise ValueError("Teacher not found")
    return teacher


async def _validate_related(
    session: AsyncSession, request: ReservationRequest
) -> None:
    if request.equipment_id is not None:
        await _validate_equipment(session, equipment_id=request.equipment_id)
    if request.teacher_id is not None:
        await _validate_teacher(session, teacher_id=request.teacher_id)


async def check_equipment_availability(
    session: AsyncSession,
    *,
    equipment_id: uuid.UUID,
    day: date,
    modules: Sequence[int],
) -> tuple[Availability, list[int]]:
    """Return the availability of ``modules`` plus every free module that day."""
    await _validate_equipment(session, equipment_id=equipment_id)
    snapshot = await load_snapshot(
        session, equipment_id=equipment_id, date_from=day, date_to=day
    )
    availability = check_availability(equipment_id, day, modules, snapshot)
    return availability, available_modules(equipment_id, day, snapshot)


def _slots_for(
    reservation_id: uuid.UUID, draft: ReservationDraft
) -> list[ReservationSlot]:
    return [
        ReservationSlot(
            reservation_id=reservation_id,
            equipment_id=draft.equipment_id,
            date=draft.date,
            module=module,
        )
        for module in draft.modules
    ]


async def _storage_conflict(
    session: AsyncSession, drafts: Sequence[ReservationDraft]
) -> Rejection:
    """Describe a commit-time slot collision the same way as a pre-check miss."""
    first, last = drafts[0].date, drafts[-1].date
    snapshot = await load_snapshot(
        session, equipment_id=drafts[0].equipment_id, date_from=first, date_to=last
    )
    occupied: set[int] = set()
    conflicting: list[date] = []
    for draft in drafts:
        result = check_availability(draft.equipment_id, draft.date, draft.modules, snapshot)
        if not result.available:
            occupied.update(result.conflicting_modules)
            conflicting.append(draft.date)
    modules_label = ", ".join(str(m) for m in sorted(occupied))
    message = "Modules were booked by another request; refresh and try again"
    if modules_label:
        message = f"Modules not available: {modules_label}"
    return Rejection(
        kind=RejectionKind.MODULES_UNAVAILABLE,
        message=message,
        occupied_modules=tuple(sorted(occupied)),
        conflicting_dates=tuple(conflicting) if len(drafts) > 1 else (),
    )


async def _fetch_by_ids(
    session: AsyncSession, ids: Sequence[uuid.UUID]
) -> list[Reservation]:
    stmt = (
        _base_reservation_query()
        .where(Reservation.id.in_(ids))
        .order_by(Reservation.date)
        .execution_options(populate_existing=True)
    )
    result = await session.execute(stmt)
    return list(result.scalars().unique().all())


async def _persist_drafts(
    session: AsyncSession, drafts: Sequence[ReservationDraft]
) -> list[Reservation] | Rejection:
    """Insert every draft and its slots in a single transaction."""
    reservations: list[Reservation] = []
    for draft in drafts:
        reservation = Reservation(
            id=uuid.uuid4(),
            equipment_id=draft.equipment_id,
            teacher_id=draft.teacher_id,
            date=draft.date,
            modules=list(draft.modules),
            status=draft.status,
            is_recurring=draft.is_recurring,
            series_id=draft.series_id,
            frequency=draft.frequency,
            series_end_date=draft.series_end_date,
            observations=draft.observations,
        )
        session.add(reservation)
        session.add_all(_slots_for(reservation.id, draft))
        reservations.append(reservation)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        logger.warning(
            "Slot collision while committing %d reservation(s) for equipment %s",
            len(drafts),
            drafts[0].equipment_id,
        )
        return await _storage_conflict(session, drafts)
    return await _fetch_by_ids(session, [reservation.id for reservation in reservations])


async def create_single(
    session: AsyncSession,
    request: ReservationRequest,
    *,
    today: date,
    now: datetime | None = None,
    horizon_days: int | None = None,
) -> Reservation | Rejection:
    """Validate and store a one-off reservation."""
    await _validate_related(session, request)
    snapshot: list[Reservation] = []
    if request.equipment_id is not None and request.date is not None:
        snapshot = await load_snapshot(
            session,
            equipment_id=request.equipment_id,
            date_from=request.date,
            date_to=request.date,
        )
    outcome = build_single(
        request, snapshot, today=today, now=now, horizon_days=horizon_days
    )
    if isinstance(outcome, Rejection):
        logger.info("Reservation request rejected (%s): %s", outcome.kind.value, outcome.message)
        return outcome

    created = await _persist_drafts(session, [outcome])
    if isinstance(created, Rejection):
        return created
    logger.info(
        "Reserved equipment %s on %s modules %s",
        outcome.equipment_id,
        outcome.date.isoformat(),
        list(outcome.modules),
    )
    return created[0]


async def create_series(
    session: AsyncSession,
    request: ReservationRequest,
    *,
    today: date,
    now: datetime | None = None,
    horizon_days: int | None = None,
    preview_limit: int = DEFAULT_CONFLICT_PREVIEW,
    max_occurrences: int = DEFAULT_MAX_OCCURRENCES,
) -> list[Reservation] | Rejection:
    """Validate and store every occurrence of a recurring reservation, or none."""
    await _validate_related(session, request)
    snapshot: list[Reservation] = []
    if (
        request.equipment_id is not None
        and request.date is not None
        and request.series_end_date is not None
    ):
        snapshot = await load_snapshot(
            session,
            equipment_id=request.equipment_id,
            date_from=request.date,
            date_to=request.series_end_date,
        )
    outcome = build_series(
        request,
        snapshot,
        today=today,
        now=now,
        horizon_days=horizon_days,
        preview_limit=preview_limit,
        max_occurrences=max_occurrences,
    )
    if isinstance(outcome, Rejection):
        logger.info("Series request rejected (%s): %s", outcome.kind.value, outcome.message)
        return outcome

    created = await _persist_drafts(session, outcome)
    if isinstance(created, Rejection):
        return created
    logger.info(
        "Created series %s with %d occurrences for equipment %s",
        outcome[0].series_id,
        len(created),
        outcome[0].equipment_id,
    )
    return created


async def preview_series(
    session: AsyncSession,
    *,
    equipment_id: uuid.UUID,
    start_date: date,
    frequency: Frequency,
    series_end_date: date,
    modules: Sequence[int],
    preview_limit: int = DEFAULT_CONFLICT_PREVIEW,
    max_occurrences: int = DEFAULT_MAX_OCCURRENCES,
) -> SeriesPreview | Rejection:
    """Generate the occurrences of a series and report conflicts without writing.

    Series longer than ``max_occurrences`` are refused the same way creation
    refuses them, before any reservation is loaded.
    """
    await _validate_equipment(session, equipment_id=equipment_id)
    dates = generate_dates(
        start_date, frequency, series_end_date, limit=max_occurrences + 1
    )
    too_many = occurrence_limit_rejection(dates, max_occurrences)
    if too_many is not None:
        return too_many
    snapshot = await load_snapshot(
        session,
        equipment_id=equipment_id,
        date_from=start_date,
        date_to=series_end_date,
    )
    validation = validate_series(equipment_id, dates, modules, snapshot)
    return SeriesPreview(
        dates=dates,
        conflicting_dates=validation.conflicting_dates,
        summary=summarize_conflicting_dates(validation.conflicting_dates, preview_limit),
    )


async def _delete_slots(session: AsyncSession, reservation_ids: Sequence[uuid.UUID]) -> None:
    await session.execute(
        delete(ReservationSlot).where(ReservationSlot.reservation_id.in_(reservation_ids))
    )


async def update_reservation(
    session: AsyncSession,
    *,
    reservation: Reservation,
    today: date,
    now: datetime | None = None,
    horizon_days: int | None = None,
    equipment_id: uuid.UUID | None = None,
    teacher_id: uuid.UUID | None = None,
    date: date | None = None,
    modules: Sequence[int] | None = None,
    status: ReservationStatus | None = None,
    observations: str | None | object = _UNSET,
) -> Reservation | Rejection:
    """Apply edits, re-validating slot changes against current bookings."""
    if reservation.status == ReservationStatus.CANCELLED:
        raise ValueError("Cancelled reservations cannot be modified")
    if status is not None:
        validate_status_transition(reservation.status, status)

    if status == ReservationStatus.CANCELLED:
        if observations is not _UNSET:
            reservation.observations = observations  # type: ignore[assignment]
        return await cancel_reservation(session, reservation=reservation)

    target_equipment = equipment_id or reservation.equipment_id
    target_teacher = teacher_id or reservation.teacher_id
    target_date = date or reservation.date
    target_modules = list(modules) if modules is not None else list(reservation.modules)
    moves_slots = (
        target_equipment != reservation.equipment_id
        or target_date != reservation.date
        or sorted(target_modules) != sorted(reservation.modules)
    )

    if target_teacher != reservation.teacher_id:
        await _validate_teacher(session, teacher_id=target_teacher)

    if moves_slots:
        request = ReservationRequest(
            equipment_id=target_equipment,
            teacher_id=target_teacher,
            date=target_date,
            modules=target_modules,
            status=status or reservation.status,
        )
        await _validate_equipment(session, equipment_id=target_equipment)
        snapshot = await load_snapshot(
            session,
            equipment_id=target_equipment,
            date_from=target_date,
            date_to=target_date,
        )
        outcome = build_single(
            request,
            snapshot,
            today=today,
            now=now,
            horizon_days=horizon_days,
            exclude_reservation_id=reservation.id,
        )
        if isinstance(outcome, Rejection):
            return outcome
        await _delete_slots(session, [reservation.id])
        session.add_all(_slots_for(reservation.id, outcome))
        reservation.equipment_id = outcome.equipment_id
        reservation.date = outcome.date
        reservation.modules = list(outcome.modules)

    reservation.teacher_id = target_teacher
    if status is not None:
        reservation.status = status
    if observations is not _UNSET:
        reservation.observations = observations  # type: ignore[assignment]

    session.add(reservation)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        logger.warning("Slot collision while updating reservation %s", reservation.id)
        return Rejection(
            kind=RejectionKind.MODULES_UNAVAILABLE,
            message="Modules were booked by another request; refresh and try again",
        )
    refreshed = await _fetch_by_ids(session, [reservation.id])
    return refreshed[0]


async def cancel_reservation(
    session: AsyncSession,
    *,
    reservation: Reservation,
) -> Reservation:
    """Cancel one reservation and release its modules."""
    if reservation.status == ReservationStatus.CANCELLED:
        return reservation
    validate_status_transition(reservation.status, ReservationStatus.CANCELLED)
    reservation.status = ReservationStatus.CANCELLED
    try:
        await _delete_slots(session, [reservation.id])
        session.add(reservation)
        await session.commit()
    except SQLAlchemyError:
        await session.rollback()
        raise
    logger.info("Cancelled reservation %s", reservation.id)
    refreshed = await _fetch_by_ids(session, [reservation.id])
    return refreshed[0]


async def cancel_series(
    session: AsyncSession,
    *,
    series_id: uuid.UUID,
) -> int:
    """Cancel every active occurrence of a series in one transaction.

    Returns the number of reservations that changed state. Either every
    occurrence ends up cancelled or, on failure, none does.
    """
    try:
        result = await session.execute(
            select(Reservation.id).where(
                Reservation.series_id == series_id,
                Reservation.status != ReservationStatus.CANCELLED,
            )
        )
        ids = list(result.scalars().all())
        if not ids:
            await session.rollback()
            return 0
        await _delete_slots(session, ids)
        await session.execute(
            update(Reservation)
            .where(Reservation.id.in_(ids))
            .values(status=ReservationStatus.CANCELLED)
            .execution_options(synchronize_session="fetch")
        )
        await session.commit()
    except SQLAlchemyError:
        await session.rollback()
        logger.exception("Failed to cancel series %s; no occurrence was changed", series_id)
        raise
    logger.info("Cancelled %d occurrence(s) of series %s", len(ids), series_id)
    return len(ids)
