"""Teachers who book equipment."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from school_equipment.db.base import Base
from school_equipment.models.mixins import TimestampMixin


if TYPE_CHECKING:  # pragma: no cover - typing only imports
    from school_equipment.models.reservation import Reservation


class Teacher(TimestampMixin, Base):
    """A teacher (or admin) on whose behalf equipment is reserved."""

    __tablename__ = "teachers"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    first_name: Mapped[str] = mapped_column(String(120), nullable=False)
    last_name: Mapped[str] = mapped_column(String(120), nullable=False)
    course: Mapped[str | None] = mapped_column(String(32))
    subject: Mapped[str | None] = mapped_column(String(120))

    reservations: Mapped[list["Reservation"]] = relationship(
        "Reservation",
        back_populates="teacher",
        cascade="all",
        passive_deletes=True,
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
