"""Service layer for the study cafe seating engine."""

from .availability_service import AvailabilityService, SeatStatus, compute_status
from .center_settings_service import CenterSettingsService
from .fixed_assignment_service import FixedAssignmentService
from .reservation_service import ReservationService, resolve_expiry
from .seat_service import SeatService

__all__ = [
    "AvailabilityService",
    "SeatStatus",
    "compute_status",
    "CenterSettingsService",
    "FixedAssignmentService",
    "ReservationService",
    "resolve_expiry",
    "SeatService",
]
