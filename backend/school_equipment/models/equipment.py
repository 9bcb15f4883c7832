"""Reservable school equipment."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from school_equipment.db.base import Base
from school_equipment.models.mixins import TimestampMixin


if TYPE_CHECKING:  # pragma: no cover - typing only imports
    from school_equipment.models.reservation import Reservation


class Equipment(TimestampMixin, Base):
    """A shared physical resource such as a projector or laptop cart."""

    __tablename__ = "equipment"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(String(1024))
    location: Mapped[str | None] = mapped_column(String(255))
    available: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    reservations: Mapped[list["Reservation"]] = relationship(
        "Reservation",
        back_populates="equipment",
        cascade="all",
        passive_deletes=True,
    )
