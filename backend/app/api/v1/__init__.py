"""Versioned API router."""

from fastapi import APIRouter

from . import admin, availability, bookings, health, listings

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(listings.router, tags=["listings"])
router.include_router(availability.router, tags=["availability"])
router.include_router(bookings.router, prefix="/bookings", tags=["bookings"])
router.include_router(admin.router, prefix="/admin", tags=["admin"])

__all__ = ["router"]
