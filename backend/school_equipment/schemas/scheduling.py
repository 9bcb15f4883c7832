"""Scheduling-related schemas."""

from __future__ import annotations

import datetime
import uuid
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from school_equipment.models.reservation import Frequency
from school_equipment.schemas.reservation import ReservationRead
from school_equipment.services.calendar_days import as_calendar_day


class ModuleSlot(BaseModel):
    """One module of the school day."""

    number: int
    start: datetime.time
    end: datetime.time
    label: str


class CurrentModule(BaseModel):
    """The module running at the school's local time."""

    now: datetime.datetime
    module: int
    start: datetime.time
    end: datetime.time
    in_session: bool


class UpcomingReservationRead(BaseModel):
    """A reservation starting within the next few modules."""

    modules_until: int
    reservation: ReservationRead


class DisplayBoardRead(BaseModel):
    """Today's confirmed reservations around the running module."""

    now: datetime.datetime
    module: int
    in_session: bool
    current: list[ReservationRead]
    upcoming: list[UpcomingReservationRead]


class AvailabilityRead(BaseModel):
    """Availability of some modules of one equipment on one day."""

    equipment_id: uuid.UUID
    date: datetime.date
    requested_modules: list[int]
    available: bool
    occupied_modules: list[int]
    conflicting_modules: list[int]
    free_modules: list[int]


class SeriesPreviewRequest(BaseModel):
    """Parameters for previewing a recurring series."""

    equipment_id: uuid.UUID
    start_date: datetime.date
    frequency: Frequency
    series_end_date: datetime.date
    modules: list[int] = Field(min_length=1)

    @field_validator("start_date", "series_end_date", mode="before")
    @classmethod
    def _date_only(cls, value: Any) -> Any:
        if isinstance(value, (datetime.date, str)):
            return as_calendar_day(value)
        return value


class SeriesPreviewRead(BaseModel):
    """Generated occurrences of a series and their conflicts."""

    dates: list[datetime.date]
    occurrence_count: int
    conflicting_dates: list[datetime.date]
    valid: bool
    summary: str


class EquipmentUsageRead(BaseModel):
    """Confirmed usage of one equipment over a date range."""

    equipment_id: uuid.UUID
    start_date: datetime.date
    end_date: datetime.date
    total_reservations: int
    total_modules: int
    days_with_reservations: int
    distinct_teachers: int
    average_modules_per_reservation: float

    model_config = ConfigDict(from_attributes=True)
