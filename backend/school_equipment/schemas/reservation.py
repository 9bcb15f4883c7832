"""Pydantic schemas for reservations."""
from __future__ import annotations

import datetime
import uuid
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from school_equipment.models.reservation import Frequency, ReservationStatus
from school_equipment.schemas.equipment import EquipmentSummary
from school_equipment.schemas.teacher import TeacherSummary
from school_equipment.services.calendar_days import as_calendar_day
from school_equipment.services.module_clock import format_module_span
from school_equipment.services.reservation_request_service import ReservationRequest


def _calendar_day(value: Any) -> Any:
    if isinstance(value, (datetime.date, str)):
        return as_calendar_day(value)
    return value


class ReservationBase(BaseModel):
    """Shared reservation fields."""

    equipment_id: uuid.UUID
    teacher_id: uuid.UUID
    date: datetime.date
    modules: list[int]
    observations: str | None = Field(default=None, max_length=1024)

    @field_validator("date", mode="before")
    @classmethod
    def _date_only(cls, value: Any) -> Any:
        return _calendar_day(value)


class ReservationCreate(ReservationBase):
    """Payload for creating a one-off reservation."""

    status: ReservationStatus = ReservationStatus.PENDING

    def to_request(self) -> ReservationRequest:
        return ReservationRequest(
            equipment_id=self.equipment_id,
            teacher_id=self.teacher_id,
            date=self.date,
            modules=list(self.modules),
            status=self.status,
            observations=self.observations,
        )


class ReservationSeriesCreate(ReservationCreate):
    """Payload for creating a recurring series."""

    frequency: Frequency
    series_end_date: datetime.date

    @field_validator("series_end_date", mode="before")
    @classmethod
    def _end_date_only(cls, value: Any) -> Any:
        return _calendar_day(value)

    def to_request(self) -> ReservationRequest:
        request = super().to_request()
        request.frequency = self.frequency
        request.series_end_date = self.series_end_date
        return request


class ReservationUpdate(BaseModel):
    """Mutable reservation fields."""

    equipment_id: uuid.UUID | None = None
    teacher_id: uuid.UUID | None = None
    date: datetime.date | None = None
    modules: list[int] | None = None
    status: ReservationStatus | None = None
    observations: str | None = Field(default=None, max_length=1024)

    @field_validator("date", mode="before")
    @classmethod
    def _date_only(cls, value: Any) -> Any:
        return _calendar_day(value)


class ReservationRead(BaseModel):
    """Serialized reservation representation."""

    id: uuid.UUID
    equipment_id: uuid.UUID
    teacher_id: uuid.UUID
    date: datetime.date
    modules: list[int]
    status: ReservationStatus
    is_recurring: bool
    series_id: uuid.UUID | None = None
    frequency: Frequency | None = None
    series_end_date: datetime.date | None = None
    observations: str | None = None
    created_at: datetime.datetime
    updated_at: datetime.datetime
    equipment: EquipmentSummary | None = None
    teacher: TeacherSummary | None = None

    model_config = ConfigDict(from_attributes=True)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def time_span(self) -> str:
        return format_module_span(self.modules)


class SeriesCancelResult(BaseModel):
    """Outcome of cancelling a whole series."""

    series_id: uuid.UUID
    updated_count: int


class SeriesGroupRead(BaseModel):
    """Reservations grouped by series (or standalone)."""

    key: str
    series_id: uuid.UUID | None = None
    occurrence_count: int
    reservations: list[ReservationRead]


class ValidationResult(BaseModel):
    """Structured rejection returned in error responses."""

    ok: bool = False
    kind: str
    message: str
    errors: list[str] = Field(default_factory=list)
    detail: list[Any] | None = None
    conflict_count: int | None = None
