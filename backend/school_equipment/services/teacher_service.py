"""Teacher management services."""
from __future__ import annotations

import logging
import uuid

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from school_equipment.models.teacher import Teacher
from school_equipment.schemas.teacher import TeacherCreate, TeacherUpdate
from school_equipment.services import reservation_service

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = {"first_name", "last_name"}


async def list_teachers(
    session: AsyncSession,
    *,
    course: str | None = None,
    skip: int = 0,
    limit: int = 100,
) -> list[Teacher]:
    """Return teachers ordered by name, optionally for one course."""
    stmt: Select[tuple[Teacher]] = select(Teacher)
    if course is not None:
        stmt = stmt.where(Teacher.course == course)
    stmt = (
        stmt.order_by(Teacher.last_name, Teacher.first_name)
        .offset(skip)
        .limit(min(limit, 500))
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_teacher(
    session: AsyncSession, *, teacher_id: uuid.UUID
) -> Teacher | None:
    return await session.get(Teacher, teacher_id)


async def create_teacher(session: AsyncSession, payload: TeacherCreate) -> Teacher:
    teacher = Teacher(**payload.model_dump())
    session.add(teacher)
    await session.commit()
    await session.refresh(teacher)
    logger.info("Registered teacher %s", teacher.id)
    return teacher


async def update_teacher(
    session: AsyncSession, teacher: Teacher, payload: TeacherUpdate
) -> Teacher:
    """Update mutable fields; explicit nulls on names are ignored."""
    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is None and field in _REQUIRED_FIELDS:
            continue
        setattr(teacher, field, value)
    await session.commit()
    await session.refresh(teacher)
    return teacher


async def delete_teacher(session: AsyncSession, teacher: Teacher) -> None:
    """Delete a teacher that holds no pending or confirmed reservations.

    Their cancelled reservations go with them.
    """
    active = await reservation_service.count_active_reservations(
        session, teacher_id=teacher.id
    )
    if active:
        raise ValueError(
            f"Teacher has {active} active reservation(s); cancel them first"
        )
    await session.delete(teacher)
    await session.commit()
    logger.info("Deleted teacher %s", teacher.id)
