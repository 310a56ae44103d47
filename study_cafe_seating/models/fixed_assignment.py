"""
Fixed seat assignment model for staff-granted date-ranged seats.
"""

import uuid
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:
    from .seat import Seat


class FixedSeatAssignment(Base):
    """An exclusive claim on a seat for an inclusive calendar range."""

    __tablename__ = "study_cafe_fixed_seats"

    seat_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("study_cafe_seats.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )
    student_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    center_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)

    assigned_by_id: Mapped[str] = mapped_column(String(64), nullable=False)

    seat: Mapped["Seat"] = relationship("Seat", lazy="raise")

    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="ck_study_cafe_fixed_seats_range"),
        Index("ix_study_cafe_fixed_seats_seat_range", "seat_id", "start_date", "end_date"),
    )

    def covers(self, day: date) -> bool:
        """Check if the assignment is in force on ``day``."""
        return self.start_date <= day <= self.end_date

    def overlaps(self, start_date: date, end_date: date) -> bool:
        """Check if the inclusive range intersects ``[start_date, end_date]``."""
        return self.start_date <= end_date and start_date <= self.end_date

    def __repr__(self) -> str:
        """String representation of the fixed seat assignment."""
        return (
            f"<FixedSeatAssignment(id={self.id}, seat_id={self.seat_id}, "
            f"student_id={self.student_id}, {self.start_date}..{self.end_date})>"
        )
