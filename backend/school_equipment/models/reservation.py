"""Reservation models."""
from __future__ import annotations

import enum
import uuid
import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    Enum,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from school_equipment.db.base import Base
from school_equipment.models.mixins import TimestampMixin


if TYPE_CHECKING:  # pragma: no cover - typing only imports
    from school_equipment.models.equipment import Equipment
    from school_equipment.models.teacher import Teacher


class ReservationStatus(str, enum.Enum):
    """Lifecycle states for reservations."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class Frequency(str, enum.Enum):
    """Repetition rules for recurring series."""

    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"


class Reservation(TimestampMixin, Base):
    """A booking of one piece of equipment for some modules of one school day."""

    __tablename__ = "reservations"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    equipment_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("equipment.id", ondelete="CASCADE"), nullable=False, index=True
    )
    teacher_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False, index=True)
    modules: Mapped[list[int]] = mapped_column(JSON, nullable=False)
    status: Mapped[ReservationStatus] = mapped_column(
        Enum(ReservationStatus), default=ReservationStatus.PENDING, nullable=False
    )
    is_recurring: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    series_id: Mapped[uuid.UUID | None] = mapped_column(nullable=True, index=True)
    frequency: Mapped[Frequency | None] = mapped_column(Enum(Frequency))
    series_end_date: Mapped[datetime.date | None] = mapped_column(Date)
    observations: Mapped[str | None] = mapped_column(String(1024))

    equipment: Mapped["Equipment"] = relationship(
        "Equipment", back_populates="reservations"
    )
    teacher: Mapped["Teacher"] = relationship("Teacher", back_populates="reservations")
    slots: Mapped[list["ReservationSlot"]] = relationship(
        "ReservationSlot",
        back_populates="reservation",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class ReservationSlot(Base):
    """One claimed module of one equipment on one day.

    Rows exist only for non-cancelled reservations; the unique constraint is
    the storage-level guarantee that a module is never booked twice.
    """

    __tablename__ = "reservation_slots"
    __table_args__ = (
        UniqueConstraint(
            "equipment_id", "date", "module", name="uq_slot_equipment_day_module"
        ),
        CheckConstraint("module >= 1 AND module <= 15", name="ck_slot_module_range"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    reservation_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("reservations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    equipment_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("equipment.id", ondelete="CASCADE"), nullable=False
    )
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    module: Mapped[int] = mapped_column(Integer, nullable=False)

    reservation: Mapped["Reservation"] = relationship(
        "Reservation", back_populates="slots"
    )
