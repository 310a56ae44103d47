"""
Reservation model for time-boxed ad-hoc seat claims.
"""

import enum
import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, Enum, ForeignKey, Index, String, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:
    from .seat import Seat


class ReservationStatus(enum.Enum):
    """Enumeration for reservation status."""
    ACTIVE = "active"
    RELEASED = "released"
    EXPIRED = "expired"


ACTIVE_ONLY = text("status = 'active'")


class Reservation(Base):
    """A 120-minute claim on a seat by a student."""

    __tablename__ = "study_cafe_reservations"

    seat_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("study_cafe_seats.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )
    student_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    center_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    start_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)

    # Persisted status lags behind the effective status until someone reads it
    status: Mapped[ReservationStatus] = mapped_column(
        Enum(
            ReservationStatus,
            name="reservation_status",
            native_enum=False,
            length=16,
            values_callable=lambda members: [member.value for member in members],
        ),
        default=ReservationStatus.ACTIVE,
        nullable=False,
        index=True
    )

    seat: Mapped["Seat"] = relationship("Seat", lazy="raise")

    __table_args__ = (
        CheckConstraint("end_at > start_at", name="ck_study_cafe_reservations_window"),
        # One active row per seat and per student within a center
        Index(
            "uq_study_cafe_reservations_active_seat",
            "seat_id",
            unique=True,
            postgresql_where=ACTIVE_ONLY,
            sqlite_where=ACTIVE_ONLY,
        ),
        Index(
            "uq_study_cafe_reservations_active_student",
            "center_id",
            "student_id",
            unique=True,
            postgresql_where=ACTIVE_ONLY,
            sqlite_where=ACTIVE_ONLY,
        ),
    )

    @property
    def is_terminal(self) -> bool:
        """Released and expired reservations never change again."""
        return self.status != ReservationStatus.ACTIVE

    def __repr__(self) -> str:
        """String representation of the reservation."""
        return (
            f"<Reservation(id={self.id}, seat_id={self.seat_id}, "
            f"student_id={self.student_id}, status={self.status.value})>"
        )
