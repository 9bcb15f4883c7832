"""Equipment catalogue and usage API."""

from __future__ import annotations

import uuid
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from school_equipment.api import deps
from school_equipment.models.equipment import Equipment
from school_equipment.schemas.equipment import (
    EquipmentCreate,
    EquipmentRead,
    EquipmentUpdate,
)
from school_equipment.schemas.scheduling import EquipmentUsageRead
from school_equipment.services import equipment_service

router = APIRouter()


async def _get_equipment_or_404(
    session: AsyncSession, equipment_id: uuid.UUID
) -> Equipment:
    equipment = await equipment_service.get_equipment(
        session, equipment_id=equipment_id
    )
    if equipment is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Equipment not found"
        )
    return equipment


@router.get("", response_model=list[EquipmentRead], summary="List equipment")
async def list_equipment(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    only_available: bool = False,
) -> list[EquipmentRead]:
    equipment = await equipment_service.list_equipment(
        session, only_available=only_available
    )
    return [EquipmentRead.model_validate(obj) for obj in equipment]


@router.post(
    "",
    response_model=EquipmentRead,
    status_code=status.HTTP_201_CREATED,
    summary="Register equipment",
)
async def create_equipment(
    payload: EquipmentCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> EquipmentRead:
    equipment = await equipment_service.create_equipment(session, payload)
    return EquipmentRead.model_validate(equipment)


@router.get("/{equipment_id}", response_model=EquipmentRead, summary="Get equipment")
async def read_equipment(
    equipment_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> EquipmentRead:
    equipment = await _get_equipment_or_404(session, equipment_id)
    return EquipmentRead.model_validate(equipment)


@router.patch(
    "/{equipment_id}", response_model=EquipmentRead, summary="Update equipment"
)
async def update_equipment(
    equipment_id: uuid.UUID,
    payload: EquipmentUpdate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> EquipmentRead:
    equipment = await _get_equipment_or_404(session, equipment_id)
    updated = await equipment_service.update_equipment(session, equipment, payload)
    return EquipmentRead.model_validate(updated)


@router.delete(
    "/{equipment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete equipment",
)
async def delete_equipment(
    equipment_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> None:
    equipment = await _get_equipment_or_404(session, equipment_id)
    try:
        await equipment_service.delete_equipment(session, equipment)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc


@router.get(
    "/{equipment_id}/usage",
    response_model=EquipmentUsageRead,
    summary="Confirmed usage of an equipment",
)
async def get_equipment_usage(
    equipment_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    start_date: Annotated[date, Query()],
    end_date: Annotated[date, Query()],
) -> EquipmentUsageRead:
    await _get_equipment_or_404(session, equipment_id)
    try:
        usage = await equipment_service.usage_report(
            session,
            equipment_id=equipment_id,
            start_date=start_date,
            end_date=end_date,
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc
    return EquipmentUsageRead(
        equipment_id=usage.equipment_id,
        start_date=start_date,
        end_date=end_date,
        total_reservations=usage.total_reservations,
        total_modules=usage.total_modules,
        days_with_reservations=usage.days_with_reservations,
        distinct_teachers=usage.distinct_teachers,
        average_modules_per_reservation=usage.average_modules_per_reservation,
    )
