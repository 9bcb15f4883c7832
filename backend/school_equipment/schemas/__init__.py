"""Schema exports."""

from school_equipment.schemas.equipment import (
    EquipmentCreate,
    EquipmentRead,
    EquipmentSummary,
    EquipmentUpdate,
)
from school_equipment.schemas.reservation import (
    ReservationCreate,
    ReservationRead,
    ReservationSeriesCreate,
    ReservationUpdate,
    SeriesCancelResult,
    SeriesGroupRead,
    ValidationResult,
)
from school_equipment.schemas.scheduling import (
    AvailabilityRead,
    CurrentModule,
    DisplayBoardRead,
    EquipmentUsageRead,
    ModuleSlot,
    SeriesPreviewRead,
    SeriesPreviewRequest,
    UpcomingReservationRead,
)
from school_equipment.schemas.teacher import (
    TeacherCreate,
    TeacherRead,
    TeacherSummary,
    TeacherUpdate,
)

__all__ = [
    "AvailabilityRead",
    "CurrentModule",
    "DisplayBoardRead",
    "EquipmentCreate",
    "EquipmentRead",
    "EquipmentSummary",
    "EquipmentUpdate",
    "EquipmentUsageRead",
    "ModuleSlot",
    "ReservationCreate",
    "ReservationRead",
    "ReservationSeriesCreate",
    "ReservationUpdate",
    "SeriesCancelResult",
    "SeriesGroupRead",
    "SeriesPreviewRead",
    "SeriesPreviewRequest",
    "TeacherCreate",
    "TeacherRead",
    "TeacherSummary",
    "TeacherUpdate",
    "UpcomingReservationRead",
    "ValidationResult",
]
