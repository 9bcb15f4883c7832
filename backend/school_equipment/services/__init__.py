"""Service layer exports."""
from school_equipment.services import (
    availability_service,
    equipment_service,
    module_clock,
    recurrence_service,
    reporting_service,
    reservation_request_service,
    reservation_service,
    teacher_service,
)

__all__ = [
    "availability_service",
    "equipment_service",
    "module_clock",
    "recurrence_service",
    "reporting_service",
    "reservation_request_service",
    "reservation_service",
    "teacher_service",
]
