"""Equipment lookups and usage reporting."""
from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from school_equipment.models.equipment import Equipment
from school_equipment.models.reservation import ReservationStatus
from school_equipment.schemas.equipment import EquipmentCreate, EquipmentUpdate
from school_equipment.services import reporting_service, reservation_service

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = {"name", "available"}


async def list_equipment(
    session: AsyncSession,
    *,
    only_available: bool = False,
) -> Sequence[Equipment]:
    stmt = select(Equipment).order_by(Equipment.name)
    if only_available:
        stmt = stmt.where(Equipment.available.is_(True))
    result = await session.execute(stmt)
    return result.scalars().all()


async def get_equipment(
    session: AsyncSession, *, equipment_id: uuid.UUID
) -> Equipment | None:
    return await session.get(Equipment, equipment_id)


async def create_equipment(
    session: AsyncSession, payload: EquipmentCreate
) -> Equipment:
    equipment = Equipment(**payload.model_dump())
    session.add(equipment)
    await session.commit()
    await session.refresh(equipment)
    logger.info("Registered equipment %s (%s)", equipment.id, equipment.name)
    return equipment


async def update_equipment(
    session: AsyncSession, equipment: Equipment, payload: EquipmentUpdate
) -> Equipment:
    """Update mutable fields.

    Switching ``available`` off stops new bookings; existing reservations
    are kept.
    """
    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is None and field in _REQUIRED_FIELDS:
            continue
        setattr(equipment, field, value)
    await session.commit()
    await session.refresh(equipment)
    return equipment


async def delete_equipment(session: AsyncSession, equipment: Equipment) -> None:
    """Delete equipment that has no pending or confirmed reservations."""
    active = await reservation_service.count_active_reservations(
        session, equipment_id=equipment.id
    )
    if active:
        raise ValueError(
            f"Equipment has {active} active reservation(s); cancel them first"
        )
    await session.delete(equipment)
    await session.commit()
    logger.info("Deleted equipment %s", equipment.id)


async def usage_report(
    session: AsyncSession,
    *,
    equipment_id: uuid.UUID,
    start_date: date,
    end_date: date,
) -> reporting_service.EquipmentUsage:
    """Summarize confirmed bookings of one equipment over a date range."""
    if start_date > end_date:
        raise ValueError("start_date must be before or equal to end_date")
    reservations = await reservation_service.list_reservations(
        session,
        equipment_id=equipment_id,
        status=ReservationStatus.CONFIRMED,
        date_from=start_date,
        date_to=end_date,
    )
    return reporting_service.equipment_usage(
        equipment_id, reservations, start_date, end_date
    )
