"""
Pydantic schemas for seat inventory and seat map responses.
"""

from datetime import date, datetime
from typing import Annotated, List, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, Field


class SeatCreate(BaseModel):
    """Schema for adding a seat to a center."""

    seat_number: int = Field(..., ge=1, description="Display number, unique within the center")
    row: int = Field(..., ge=0, description="Layout row")
    col: int = Field(..., ge=0, description="Layout column")
    is_active: bool = Field(True, description="Whether the seat can be reserved")


class SeatUpdate(BaseModel):
    """Schema for updating seat information."""

    seat_number: Optional[int] = Field(None, ge=1)
    row: Optional[int] = Field(None, ge=0)
    col: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


class SeatResponse(BaseModel):
    """Schema for seat responses."""

    id: UUID
    center_id: str
    seat_number: int
    row: int
    col: int
    is_active: bool

    model_config = {"from_attributes": True}


class AvailableState(BaseModel):
    """Nobody holds the seat."""

    kind: Literal["available"] = "available"


class FixedState(BaseModel):
    """The seat is held by a fixed assignment today."""

    kind: Literal["fixed"] = "fixed"
    assignment_id: UUID
    student_id: str
    start_date: date
    end_date: date


class ReservedState(BaseModel):
    """The seat is held by a live reservation."""

    kind: Literal["reserved"] = "reserved"
    reservation_id: UUID
    student_id: str
    start_at: datetime
    end_at: datetime
    remaining_minutes: int = Field(..., ge=0)


SeatState = Annotated[
    Union[AvailableState, FixedState, ReservedState],
    Field(discriminator="kind"),
]


class SeatStatusResponse(BaseModel):
    """Derived status of a single seat."""

    seat: SeatResponse
    is_available: bool
    state: SeatState


class SeatMapResponse(BaseModel):
    """Status of every seat in a center, as polled by clients."""

    center_id: str
    generated_at: datetime
    poll_interval_seconds: int = Field(..., description="Suggested delay before the next poll")
    notice: Optional[str] = None
    seats: List[SeatStatusResponse]
