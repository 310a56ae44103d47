"""
Pydantic schemas for reservation requests and responses.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from ..models.reservation import ReservationStatus
from ..utils.clock import as_utc


class ReservationCreateRequest(BaseModel):
    """Schema for reserving a seat."""

    seat_id: UUID = Field(..., description="Seat to reserve")
    center_id: str = Field(..., min_length=1, max_length=64, description="Center that owns the seat")


class ReservationResponse(BaseModel):
    """Schema for reservation responses."""

    id: UUID
    seat_id: UUID
    student_id: str
    center_id: str
    start_at: datetime
    end_at: datetime
    status: ReservationStatus
    remaining_minutes: Optional[int] = Field(
        None, description="Whole minutes left while the reservation is live"
    )

    model_config = {"from_attributes": True}

    @field_validator("start_at", "end_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        """Stored timestamps are UTC even where the driver drops the offset."""
        return as_utc(v)


class ReleaseResponse(BaseModel):
    """Outcome of a release request."""

    reservation_id: UUID
    released: bool = Field(..., description="True when the reservation ended by being released")
    reservation: Optional[ReservationResponse] = None
