"""School-day module schedule endpoints."""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from school_equipment.api import deps
from school_equipment.models.reservation import ReservationStatus
from school_equipment.schemas.reservation import ReservationRead
from school_equipment.schemas.scheduling import (
    CurrentModule,
    DisplayBoardRead,
    ModuleSlot,
    UpcomingReservationRead,
)
from school_equipment.services import reporting_service, reservation_service
from school_equipment.services.module_clock import (
    MODULE_NUMBERS,
    current_module,
    in_school_hours,
    module_bounds,
)

router = APIRouter()


@router.get("/modules", response_model=list[ModuleSlot], summary="List day modules")
async def list_modules() -> list[ModuleSlot]:
    slots = []
    for number in MODULE_NUMBERS:
        start, end = module_bounds(number)
        slots.append(
            ModuleSlot(number=number, start=start, end=end, label=f"Module {number}")
        )
    return slots


@router.get(
    "/current-module", response_model=CurrentModule, summary="Module running now"
)
async def get_current_module(
    clock: Annotated[deps.BookingClock, Depends(deps.get_booking_clock)],
) -> CurrentModule:
    module = current_module(clock.now)
    start, end = module_bounds(module)
    return CurrentModule(
        now=clock.now,
        module=module,
        start=start,
        end=end,
        in_session=in_school_hours(clock.now),
    )


@router.get(
    "/board",
    response_model=DisplayBoardRead,
    summary="Equipment in use now and starting soon",
)
async def get_display_board(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    clock: Annotated[deps.BookingClock, Depends(deps.get_booking_clock)],
    equipment_id: uuid.UUID | None = None,
) -> DisplayBoardRead:
    """Today's confirmed reservations for a hallway or staff-room display."""
    reservations = await reservation_service.list_reservations(
        session,
        equipment_id=equipment_id,
        status=ReservationStatus.CONFIRMED,
        date_from=clock.today,
        date_to=clock.today,
    )
    board = reporting_service.display_board(reservations, clock.now)
    return DisplayBoardRead(
        now=clock.now,
        module=board.module,
        in_session=board.in_session,
        current=[ReservationRead.model_validate(obj) for obj in board.current],
        upcoming=[
            UpcomingReservationRead(
                modules_until=modules_until,
                reservation=ReservationRead.model_validate(reservation),
            )
            for reservation, modules_until in board.upcoming
        ],
    )
