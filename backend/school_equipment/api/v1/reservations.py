"""Reservation management API."""

from __future__ import annotations

import uuid
from datetime import date
from typing import Annotated, NoReturn

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from school_equipment.api import deps
from school_equipment.core.config import get_settings
from school_equipment.models.reservation import ReservationStatus
from school_equipment.schemas.reservation import (
    ReservationCreate,
    ReservationRead,
    ReservationSeriesCreate,
    ReservationUpdate,
    SeriesCancelResult,
    SeriesGroupRead,
    ValidationResult,
)
from school_equipment.schemas.scheduling import (
    AvailabilityRead,
    SeriesPreviewRead,
    SeriesPreviewRequest,
)
from school_equipment.services import reporting_service, reservation_service
from school_equipment.services.reservation_request_service import (
    Rejection,
    RejectionKind,
)

router = APIRouter()

_REJECTION_STATUS: dict[RejectionKind, int] = {
    RejectionKind.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
    RejectionKind.INVALID_DATE: status.HTTP_400_BAD_REQUEST,
    RejectionKind.MODULES_UNAVAILABLE: status.HTTP_409_CONFLICT,
    RejectionKind.SERIES_CONFLICTS: status.HTTP_409_CONFLICT,
}


def _raise_rejection(rejection: Rejection) -> NoReturn:
    result = ValidationResult.model_validate(rejection.as_detail())
    raise HTTPException(
        status_code=_REJECTION_STATUS[rejection.kind],
        detail=result.model_dump(exclude_none=True),
    )


async def _get_or_404(session: AsyncSession, reservation_id: uuid.UUID):
    reservation = await reservation_service.get_reservation(
        session, reservation_id=reservation_id
    )
    if reservation is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Reservation not found"
        )
    return reservation


@router.get("", response_model=list[ReservationRead], summary="List reservations")
async def list_reservations(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    equipment_id: uuid.UUID | None = None,
    teacher_id: uuid.UUID | None = None,
    reservation_status: Annotated[ReservationStatus | None, Query(alias="status")] = None,
    date_from: date | None = None,
    date_to: date | None = None,
    skip: int = 0,
    limit: int = 100,
) -> list[ReservationRead]:
    reservations = await reservation_service.list_reservations(
        session,
        equipment_id=equipment_id,
        teacher_id=teacher_id,
        status=reservation_status,
        date_from=date_from,
        date_to=date_to,
        skip=skip,
        limit=min(limit, 500),
    )
    return [ReservationRead.model_validate(obj) for obj in reservations]


@router.post(
    "",
    response_model=ReservationRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create reservation",
)
async def create_reservation(
    payload: ReservationCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    clock: Annotated[deps.BookingClock, Depends(deps.get_booking_clock)],
) -> ReservationRead:
    settings = get_settings()
    try:
        outcome = await reservation_service.create_single(
            session,
            payload.to_request(),
            today=clock.today,
            now=clock.now,
            horizon_days=settings.booking_horizon_days,
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc
    if isinstance(outcome, Rejection):
        _raise_rejection(outcome)
    return ReservationRead.model_validate(outcome)


@router.get(
    "/availability",
    response_model=AvailabilityRead,
    summary="Module availability of an equipment on a day",
)
async def get_availability(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    equipment_id: uuid.UUID,
    day: Annotated[date, Query(alias="date")],
    modules: Annotated[list[int] | None, Query()] = None,
) -> AvailabilityRead:
    requested = sorted(set(modules or []))
    try:
        availability, free = await reservation_service.check_equipment_availability(
            session, equipment_id=equipment_id, day=day, modules=requested
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc
    return AvailabilityRead(
        equipment_id=equipment_id,
        date=day,
        requested_modules=requested,
        available=availability.available,
        occupied_modules=sorted(availability.occupied_modules),
        conflicting_modules=list(availability.conflicting_modules),
        free_modules=free,
    )


@router.get(
    "/grouped",
    response_model=list[SeriesGroupRead],
    summary="Reservations grouped by series",
)
async def list_grouped_reservations(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    equipment_id: uuid.UUID | None = None,
    teacher_id: uuid.UUID | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
) -> list[SeriesGroupRead]:
    reservations = await reservation_service.list_reservations(
        session,
        equipment_id=equipment_id,
        teacher_id=teacher_id,
        date_from=date_from,
        date_to=date_to,
    )
    groups = reporting_service.group_by_series(reservations)
    return [
        SeriesGroupRead(
            key=key,
            series_id=members[0].series_id if members[0].is_recurring else None,
            occurrence_count=len(members),
            reservations=[ReservationRead.model_validate(obj) for obj in members],
        )
        for key, members in groups.items()
    ]


@router.post(
    "/series",
    response_model=list[ReservationRead],
    status_code=status.HTTP_201_CREATED,
    summary="Create recurring reservation series",
)
async def create_reservation_series(
    payload: ReservationSeriesCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    clock: Annotated[deps.BookingClock, Depends(deps.get_booking_clock)],
) -> list[ReservationRead]:
    settings = get_settings()
    try:
        outcome = await reservation_service.create_series(
            session,
            payload.to_request(),
            today=clock.today,
            now=clock.now,
            horizon_days=settings.booking_horizon_days,
            preview_limit=settings.conflict_preview_limit,
            max_occurrences=settings.max_series_occurrences,
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc
    if isinstance(outcome, Rejection):
        _raise_rejection(outcome)
    return [ReservationRead.model_validate(obj) for obj in outcome]


@router.post(
    "/series/preview",
    response_model=SeriesPreviewRead,
    summary="Preview the occurrences and conflicts of a series",
)
async def preview_reservation_series(
    payload: SeriesPreviewRequest,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> SeriesPreviewRead:
    settings = get_settings()
    try:
        preview = await reservation_service.preview_series(
            session,
            equipment_id=payload.equipment_id,
            start_date=payload.start_date,
            frequency=payload.frequency,
            series_end_date=payload.series_end_date,
            modules=payload.modules,
            preview_limit=settings.conflict_preview_limit,
            max_occurrences=settings.max_series_occurrences,
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc
    if isinstance(preview, Rejection):
        _raise_rejection(preview)
    return SeriesPreviewRead(
        dates=preview.dates,
        occurrence_count=len(preview.dates),
        conflicting_dates=list(preview.conflicting_dates),
        valid=preview.valid,
        summary=preview.summary,
    )


@router.get(
    "/series/{series_id}",
    response_model=list[ReservationRead],
    summary="List the occurrences of a series",
)
async def get_reservation_series(
    series_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> list[ReservationRead]:
    occurrences = await reservation_service.get_series(session, series_id=series_id)
    if not occurrences:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Series not found"
        )
    return [ReservationRead.model_validate(obj) for obj in occurrences]


@router.post(
    "/series/{series_id}/cancel",
    response_model=SeriesCancelResult,
    summary="Cancel every occurrence of a series",
)
async def cancel_reservation_series(
    series_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> SeriesCancelResult:
    occurrences = await reservation_service.get_series(session, series_id=series_id)
    if not occurrences:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Series not found"
        )
    updated = await reservation_service.cancel_series(session, series_id=series_id)
    return SeriesCancelResult(series_id=series_id, updated_count=updated)


@router.get(
    "/{reservation_id}", response_model=ReservationRead, summary="Get reservation"
)
async def get_reservation(
    reservation_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> ReservationRead:
    reservation = await _get_or_404(session, reservation_id)
    return ReservationRead.model_validate(reservation)


@router.patch(
    "/{reservation_id}", response_model=ReservationRead, summary="Update reservation"
)
async def update_reservation(
    reservation_id: uuid.UUID,
    payload: ReservationUpdate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    clock: Annotated[deps.BookingClock, Depends(deps.get_booking_clock)],
) -> ReservationRead:
    reservation = await _get_or_404(session, reservation_id)
    settings = get_settings()
    try:
        outcome = await reservation_service.update_reservation(
            session,
            reservation=reservation,
            today=clock.today,
            now=clock.now,
            horizon_days=settings.booking_horizon_days,
            **payload.model_dump(exclude_unset=True),
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc
    if isinstance(outcome, Rejection):
        _raise_rejection(outcome)
    return ReservationRead.model_validate(outcome)


@router.post(
    "/{reservation_id}/cancel",
    response_model=ReservationRead,
    summary="Cancel reservation",
)
async def cancel_reservation(
    reservation_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> ReservationRead:
    reservation = await _get_or_404(session, reservation_id)
    updated = await reservation_service.cancel_reservation(
        session, reservation=reservation
    )
    return ReservationRead.model_validate(updated)
