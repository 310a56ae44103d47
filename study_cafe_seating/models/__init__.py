"""
Database models for the study cafe seating engine.
"""

from .base import Base
from .seat import Seat
from .reservation import Reservation, ReservationStatus
from .fixed_assignment import FixedSeatAssignment
from .center_settings import CenterSettings

__all__ = [
    "Base",
    "Seat",
    "Reservation",
    "ReservationStatus",
    "FixedSeatAssignment",
    "CenterSettings",
]
