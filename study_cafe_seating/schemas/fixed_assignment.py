"""
Pydantic schemas for fixed seat assignments.
"""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field, model_validator


class FixedAssignmentCreate(BaseModel):
    """Schema for granting a fixed seat."""

    seat_id: UUID
    student_id: str = Field(..., min_length=1, max_length=64)
    center_id: str = Field(..., min_length=1, max_length=64)
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def validate_range(self):
        """Ranges are inclusive and must not be inverted."""
        if self.start_date > self.end_date:
            raise ValueError("start_date must be on or before end_date")
        return self


class FixedAssignmentUpdate(BaseModel):
    """Schema for changing the period of a fixed seat."""

    start_date: date
    end_date: date

    @model_validator(mode="after")
    def validate_range(self):
        if self.start_date > self.end_date:
            raise ValueError("start_date must be on or before end_date")
        return self


class FixedAssignmentResponse(BaseModel):
    """Schema for fixed assignment responses."""

    id: UUID
    seat_id: UUID
    student_id: str
    center_id: str
    start_date: date
    end_date: date
    assigned_by_id: str
    created_at: datetime

    model_config = {"from_attributes": True}
