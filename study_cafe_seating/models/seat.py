"""
Seat model for the study room seat inventory.
"""

from sqlalchemy import Boolean, CheckConstraint, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class Seat(Base):
    """A physical, numbered study room seat belonging to one center."""

    __tablename__ = "study_cafe_seats"

    center_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    # Display number and layout position
    seat_number: Mapped[int] = mapped_column(Integer, nullable=False)
    row: Mapped[int] = mapped_column(Integer, nullable=False)
    col: Mapped[int] = mapped_column(Integer, nullable=False)

    # Soft-disable; seats are never deleted once referenced
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (
        UniqueConstraint("center_id", "seat_number", name="uq_study_cafe_seats_center_number"),
        CheckConstraint("seat_number > 0", name="ck_study_cafe_seats_number_positive"),
    )

    def __repr__(self) -> str:
        """String representation of the seat."""
        return (
            f"<Seat(id={self.id}, center_id={self.center_id}, "
            f"number={self.seat_number}, active={self.is_active})>"
        )
