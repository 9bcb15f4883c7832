"""ORM models package export."""

from school_equipment.models.equipment import Equipment
from school_equipment.models.reservation import (
    Frequency,
    Reservation,
    ReservationSlot,
    ReservationStatus,
)
from school_equipment.models.teacher import Teacher

__all__ = [
    "Equipment",
    "Frequency",
    "Reservation",
    "ReservationSlot",
    "ReservationStatus",
    "Teacher",
]
