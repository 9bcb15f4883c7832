"""Versioned API router."""

from fastapi import APIRouter

from . import equipment, health, reservations, schedule, teachers

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(schedule.router, prefix="/schedule", tags=["schedule"])
router.include_router(equipment.router, prefix="/equipment", tags=["equipment"])
router.include_router(teachers.router, prefix="/teachers", tags=["teachers"])
router.include_router(
    reservations.router, prefix="/reservations", tags=["reservations"]
)
