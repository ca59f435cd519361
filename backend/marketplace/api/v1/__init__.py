"""Versioned API router."""

from fastapi import APIRouter

from . import (
    attraction_bookings,
    attractions,
    commissions,
    finance,
    health,
    vehicle_bookings,
    vehicles,
)

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(vehicles.router, tags=["vehicles"])
router.include_router(attractions.router, tags=["attractions"])
router.include_router(vehicle_bookings.router, tags=["vehicle-bookings"])
router.include_router(attraction_bookings.router, tags=["attraction-bookings"])
router.include_router(finance.router, tags=["finance"])
router.include_router(commissions.router, tags=["commissions"])

__all__ = ["router"]
