"""Teacher management API endpoints."""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from school_equipment.api import deps
from school_equipment.models.teacher import Teacher
from school_equipment.schemas.teacher import TeacherCreate, TeacherRead, TeacherUpdate
from school_equipment.services import teacher_service

router = APIRouter()


async def _get_teacher_or_404(session: AsyncSession, teacher_id: uuid.UUID) -> Teacher:
    teacher = await teacher_service.get_teacher(session, teacher_id=teacher_id)
    if teacher is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Teacher not found"
        )
    return teacher


@router.get("", response_model=list[TeacherRead], summary="List teachers")
async def list_teachers(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    course: str | None = None,
    skip: int = 0,
    limit: int = 100,
) -> list[TeacherRead]:
    teachers = await teacher_service.list_teachers(
        session, course=course, skip=skip, limit=limit
    )
    return [TeacherRead.model_validate(obj) for obj in teachers]


@router.post(
    "",
    response_model=TeacherRead,
    status_code=status.HTTP_201_CREATED,
    summary="Register teacher",
)
async def create_teacher(
    payload: TeacherCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> TeacherRead:
    teacher = await teacher_service.create_teacher(session, payload)
    return TeacherRead.model_validate(teacher)


@router.get("/{teacher_id}", response_model=TeacherRead, summary="Get teacher")
async def read_teacher(
    teacher_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> TeacherRead:
    teacher = await _get_teacher_or_404(session, teacher_id)
    return TeacherRead.model_validate(teacher)


@router.patch("/{teacher_id}", response_model=TeacherRead, summary="Update teacher")
async def update_teacher(
    teacher_id: uuid.UUID,
    payload: TeacherUpdate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> TeacherRead:
    teacher = await _get_teacher_or_404(session, teacher_id)
    updated = await teacher_service.update_teacher(session, teacher, payload)
    return TeacherRead.model_validate(updated)


@router.delete(
    "/{teacher_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete teacher",
)
async def delete_teacher(
    teacher_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> None:
    teacher = await _get_teacher_or_404(session, teacher_id)
    try:
        await teacher_service.delete_teacher(session, teacher)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc
