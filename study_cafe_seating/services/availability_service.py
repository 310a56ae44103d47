"""
Availability resolver: derives the status of every seat in a center.

The derivation is a pure function of the seats, the stored reservations and
fixed assignments, and the current time. A fixed assignment covering today
always wins over a reservation on the same seat.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Union
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from ..database import transactional
from ..models.fixed_assignment import FixedSeatAssignment
from ..models.reservation import Reservation
from ..models.seat import Seat
from ..utils.clock import Clock, as_utc, calendar_date, system_clock
from ..utils.exceptions import ServiceUnavailableError
from .center_settings_service import CenterSettingsService
from .fixed_assignment_service import FixedAssignmentService
from .reservation_service import ReservationService, is_live, remaining_minutes
from .seat_service import SeatService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Available:
    kind = "available"


@dataclass(frozen=True)
class Fixed:
    assignment: FixedSeatAssignment
    kind = "fixed"

    @property
    def student_id(self) -> str:
        return self.assignment.student_id


@dataclass(frozen=True)
class Reserved:
    reservation: Reservation
    remaining_minutes: int
    kind = "reserved"

    @property
    def student_id(self) -> str:
        return self.reservation.student_id


SeatState = Union[Available, Fixed, Reserved]


@dataclass(frozen=True)
class SeatStatus:
    """A seat together with who, if anyone, holds it right now."""

    seat: Seat
    state: SeatState

    @property
    def is_available(self) -> bool:
        return isinstance(self.state, Available) and self.seat.is_active

    @property
    def is_fixed(self) -> bool:
        return isinstance(self.state, Fixed)

    @property
    def active_reservation(self) -> Optional[Reservation]:
        return self.state.reservation if isinstance(self.state, Reserved) else None

    @property
    def active_fixed_assignment(self) -> Optional[FixedSeatAssignment]:
        return self.state.assignment if isinstance(self.state, Fixed) else None

    @property
    def remaining_minutes(self) -> Optional[int]:
        return self.state.remaining_minutes if isinstance(self.state, Reserved) else None

    @property
    def student_id(self) -> Optional[str]:
        if isinstance(self.state, Available):
            return None
        return self.state.student_id


def compute_status(
    seats: Iterable[Seat],
    reservations: Iterable[Reservation],
    assignments: Iterable[FixedSeatAssignment],
    now: datetime,
    today: Optional[date] = None,
) -> List[SeatStatus]:
    """
    Derive the status of each seat at ``now``.

    Args:
        seats: Seats to report on, in display order
        reservations: Stored reservations of the center, any status
        assignments: Fixed assignments of the center
        now: Current instant
        today: Calendar day for fixed assignments, derived from ``now`` if omitted

    Returns:
        One status per seat, in the order given
    """
    today = today or calendar_date(now)

    fixed_by_seat: Dict[UUID, FixedSeatAssignment] = {}
    for assignment in sorted(assignments, key=lambda a: a.start_date):
        if assignment.covers(today):
            fixed_by_seat.setdefault(assignment.seat_id, assignment)

    live_by_seat: Dict[UUID, Reservation] = {}
    for reservation in reservations:
        if not is_live(reservation, now):
            continue
        current = live_by_seat.get(reservation.seat_id)
        if current is None or as_utc(reservation.end_at) > as_utc(current.end_at):
            live_by_seat[reservation.seat_id] = reservation

    statuses = []
    for seat in seats:
        if seat.id in fixed_by_seat:
            state: SeatState = Fixed(fixed_by_seat[seat.id])
        elif seat.id in live_by_seat:
            reservation = live_by_seat[seat.id]
            state = Reserved(reservation, remaining_minutes(reservation, now))
        else:
            state = Available()
        statuses.append(SeatStatus(seat=seat, state=state))
    return statuses


class AvailabilityService:
    """Service answering "who sits where" for a center."""

    def __init__(self, session: AsyncSession, clock: Optional[Clock] = None):
        self.session = session
        self.clock = clock or system_clock

    async def list_seat_status(self, center_id: str, now: Optional[datetime] = None) -> List[SeatStatus]:
        """
        Status of every seat in a center at ``now``, ordered by seat number.

        Active reservations found past their window are written back as
        expired. That write is best-effort and never fails the read.

        Raises:
            CenterFeatureDisabledError: If the study cafe is off for the center
        """
        await CenterSettingsService(self.session).ensure_enabled(center_id)

        now = as_utc(now or self.clock.now())
        today = calendar_date(now)

        reservation_service = ReservationService(self.session, self.clock)
        async with transactional(self.session):
            seats = await SeatService(self.session).list_seats(center_id)
            reservations = await reservation_service.list_active(center_id)
            assignments = await FixedAssignmentService(self.session, self.clock).list_covering(
                center_id, today
            )

        statuses = compute_status(seats, reservations, assignments, now, today)

        stale = [r.id for r in reservations if not is_live(r, now)]
        if stale:
            try:
                await reservation_service.expire_stale_reservations(now=now, reservation_ids=stale)
            except ServiceUnavailableError as e:
                logger.warning(f"Could not persist expiry of {len(stale)} reservations: {e}")

        return statuses
