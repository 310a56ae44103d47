"""API endpoints for the study cafe seating service."""

from fastapi import APIRouter
from .seats import router as seats_router
from .reservations import router as reservations_router
from .fixed_seats import router as fixed_seats_router
from .settings import router as settings_router

# Create main API router
api_router = APIRouter(prefix="/api/v1")

# Include all routers
api_router.include_router(seats_router)
api_router.include_router(reservations_router)
api_router.include_router(fixed_seats_router)
api_router.include_router(settings_router)

__all__ = ["api_router"]
