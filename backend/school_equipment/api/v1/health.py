"""Health check endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends

from school_equipment.api import deps
from school_equipment.core.config import get_settings
from school_equipment.services.module_clock import (
    MODULE_COUNT,
    current_module,
    in_school_hours,
)

router = APIRouter()


@router.get("", summary="Service health status")
async def healthcheck(
    clock: Annotated[deps.BookingClock, Depends(deps.get_booking_clock)],
) -> dict[str, object]:
    """Report liveness together with the school clock the service books against."""
    settings = get_settings()
    return {
        "status": "ok",
        "service": settings.app_name,
        "environment": settings.app_env,
        "school_timezone": settings.school_timezone,
        "school_time": clock.now.isoformat(),
        "modules_per_day": MODULE_COUNT,
        "current_module": current_module(clock.now),
        "in_session": in_school_hours(clock.now),
    }
