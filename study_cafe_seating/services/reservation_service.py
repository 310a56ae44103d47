"""
Reservation service with concurrency control for ad-hoc seat claims.

A reservation is live while it is ``active`` and ``now < end_at``. Expiry is
never scheduled: an active row whose window has passed is simply reported as
expired by ``resolve_expiry`` and written back whenever someone touches it.
"""

import logging
import math
from datetime import datetime, timedelta
from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy import and_, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..cache import CacheKeyBuilder, distributed_lock
from ..config import get_settings
from ..database import transactional
from ..models.fixed_assignment import FixedSeatAssignment
from ..models.reservation import Reservation, ReservationStatus
from ..models.seat import Seat
from ..utils.auth import Actor
from ..utils.clock import Clock, as_utc, calendar_date, system_clock
from ..utils.exceptions import (
    AlreadyReservedError,
    AuthorizationError,
    BusinessLogicError,
    InvalidReservationStateError,
    ReservationNotFoundError,
    SeatFixedError,
    SeatInactiveError,
    SeatNotFoundError,
    SeatOccupiedError,
)
from ..utils.logging_config import log_business_event
from .center_settings_service import CenterSettingsService

logger = logging.getLogger(__name__)


def resolve_expiry(reservation: Reservation, now: datetime) -> ReservationStatus:
    """
    Effective status of a reservation at ``now``.

    Pure function: an active reservation whose window has closed is reported
    as expired, every other status is returned unchanged.
    """
    if reservation.status == ReservationStatus.ACTIVE and as_utc(now) >= as_utc(reservation.end_at):
        return ReservationStatus.EXPIRED
    return reservation.status


def is_live(reservation: Reservation, now: datetime) -> bool:
    """Whether the reservation currently holds its seat."""
    return resolve_expiry(reservation, now) == ReservationStatus.ACTIVE


def remaining_minutes(reservation: Reservation, now: datetime) -> int:
    """Whole minutes left before a live reservation ends, rounded up."""
    seconds = (as_utc(reservation.end_at) - as_utc(now)).total_seconds()
    if seconds <= 0:
        return 0
    return math.ceil(seconds / 60)


class ReservationService:
    """Service for reserving, releasing and extending seats."""

    def __init__(self, session: AsyncSession, clock: Optional[Clock] = None):
        self.session = session
        self.clock = clock or system_clock
        self.settings = get_settings()

    @property
    def duration(self) -> timedelta:
        return timedelta(minutes=self.settings.reservation_duration_minutes)

    async def reserve(
        self,
        seat_id: UUID,
        student_id: str,
        center_id: str,
        now: Optional[datetime] = None,
    ) -> Reservation:
        """
        Reserve a seat for a student for the standard window.

        At most one live reservation exists per seat and per student within a
        center, even under concurrent requests. The partial unique indexes on
        active rows are the final arbiter when two writers race.

        Args:
            seat_id: Seat to reserve
            student_id: Student making the reservation
            center_id: Center the seat belongs to
            now: Reservation start, defaults to the service clock

        Returns:
            The new active reservation

        Raises:
            CenterFeatureDisabledError: If the study cafe is off for the center
            SeatNotFoundError: If the seat does not exist in the center
            SeatInactiveError: If the seat is out of service
            SeatFixedError: If a fixed assignment covers the seat today
            SeatOccupiedError: If the seat already has a live reservation
            AlreadyReservedError: If the student already has a live reservation
        """
        await CenterSettingsService(self.session).ensure_enabled(center_id)

        logger.info(f"Reserving seat {seat_id} for student {student_id} in center {center_id}")

        lock_keys = (
            CacheKeyBuilder.seat_lock(str(seat_id)),
            CacheKeyBuilder.student_lock(center_id, student_id),
        )

        async with distributed_lock(*lock_keys):
            now = as_utc(now or self.clock.now())
            try:
                async with transactional(self.session):
                    # Writing first takes the write lock on engines without row locks
                    await self._expire_stale(now, seat_id=seat_id, student_id=student_id, center_id=center_id)

                    seat = await self._get_seat_for_update(seat_id)
                    if seat is None or seat.center_id != center_id:
                        raise SeatNotFoundError(str(seat_id))
                    if not seat.is_active:
                        raise SeatInactiveError(str(seat_id))

                    if await self._covering_assignment(seat_id, calendar_date(now)) is not None:
                        raise SeatFixedError(str(seat_id))
                    if await self._live_for_seat(seat_id, now) is not None:
                        raise SeatOccupiedError(str(seat_id))
                    if await self.find_live_reservation(student_id, center_id, now) is not None:
                        raise AlreadyReservedError(student_id, center_id)

                    reservation = Reservation(
                        seat_id=seat_id,
                        student_id=student_id,
                        center_id=center_id,
                        start_at=now,
                        end_at=now + self.duration,
                        status=ReservationStatus.ACTIVE,
                    )
                    self.session.add(reservation)
                    await self.session.flush()

            except IntegrityError as e:
                logger.warning(f"Lost reservation race for seat {seat_id}: {e.orig}")
                raise self._conflict_from(e, seat_id, student_id, center_id) from e

        log_business_event(
            "reservation_created",
            {
                "reservation_id": str(reservation.id),
                "seat_id": str(seat_id),
                "center_id": center_id,
                "end_at": reservation.end_at.isoformat(),
            },
            actor_id=student_id,
        )
        return reservation

    async def release(
        self,
        reservation_id: UUID,
        actor: Actor,
        now: Optional[datetime] = None,
    ) -> Optional[Reservation]:
        """
        End a live reservation early.

        Releasing is idempotent: an unknown id or a reservation that already
        ended is a no-op. Only the owning student or staff may release.

        Args:
            reservation_id: Reservation to release
            actor: Calling actor
            now: Release time, defaults to the service clock

        Returns:
            The reservation in its final state, or None if it does not exist

        Raises:
            AuthorizationError: If the actor neither owns the reservation nor is staff
        """
        now = as_utc(now or self.clock.now())

        async with transactional(self.session):
            reservation = await self.session.get(Reservation, reservation_id, populate_existing=True)
            if reservation is None:
                logger.info(f"Release of unknown reservation {reservation_id} ignored")
                return None

            if not actor.is_staff and reservation.student_id != actor.id:
                raise AuthorizationError(
                    "Only the owner or staff can release a reservation",
                    required_permission="owner_or_staff",
                )

            if not is_live(reservation, now):
                await self._expire_stale(now, reservation_ids=[reservation.id])
                await self.session.refresh(reservation)
                logger.info(f"Reservation {reservation_id} already {reservation.status.value}, nothing to release")
                return reservation

            # Guarded on status and window so a concurrent writer cannot be overwritten
            result = await self.session.execute(
                update(Reservation)
                .where(
                    Reservation.id == reservation.id,
                    Reservation.status == ReservationStatus.ACTIVE,
                    Reservation.end_at > now,
                )
                .values(status=ReservationStatus.RELEASED)
                .execution_options(synchronize_session=False)
            )
            await self.session.refresh(reservation)

        if result.rowcount:
            log_business_event(
                "reservation_released",
                {
                    "reservation_id": str(reservation.id),
                    "seat_id": str(reservation.seat_id),
                    "center_id": reservation.center_id,
                    "by_staff": actor.is_staff,
                },
                actor_id=actor.id,
            )
        return reservation

    async def extend(
        self,
        reservation_id: UUID,
        actor: Actor,
        now: Optional[datetime] = None,
    ) -> Reservation:
        """
        Restart the window of a live reservation from ``now``.

        Args:
            reservation_id: Reservation to extend
            actor: Calling actor, must own the reservation
            now: New window start, defaults to the service clock

        Returns:
            The extended reservation

        Raises:
            ReservationNotFoundError: If the reservation does not exist
            AuthorizationError: If the actor does not own the reservation
            InvalidReservationStateError: If the reservation is no longer live
            SeatFixedError: If a fixed assignment now covers the seat
        """
        async with transactional(self.session):
            reservation = await self.session.get(Reservation, reservation_id)
        if reservation is None:
            raise ReservationNotFoundError(str(reservation_id))

        async with distributed_lock(CacheKeyBuilder.seat_lock(str(reservation.seat_id))):
            now = as_utc(now or self.clock.now())
            async with transactional(self.session):
                reservation = await self.session.get(
                    Reservation, reservation_id, with_for_update=True, populate_existing=True
                )
                if reservation.student_id != actor.id:
                    raise AuthorizationError(
                        "Only the owner can extend a reservation",
                        required_permission="owner",
                    )

                if not is_live(reservation, now):
                    effective = resolve_expiry(reservation, now)
                    raise InvalidReservationStateError(str(reservation_id), effective.value)

                if await self._covering_assignment(reservation.seat_id, calendar_date(now)) is not None:
                    raise SeatFixedError(str(reservation.seat_id))

                result = await self.session.execute(
                    update(Reservation)
                    .where(
                        Reservation.id == reservation.id,
                        Reservation.status == ReservationStatus.ACTIVE,
                        Reservation.end_at > now,
                    )
                    .values(start_at=now, end_at=now + self.duration)
                    .execution_options(synchronize_session=False)
                )
                if not result.rowcount:
                    raise InvalidReservationStateError(str(reservation_id), "ended")
                await self.session.refresh(reservation)

        log_business_event(
            "reservation_extended",
            {
                "reservation_id": str(reservation.id),
                "seat_id": str(reservation.seat_id),
                "end_at": as_utc(reservation.end_at).isoformat(),
            },
            actor_id=actor.id,
        )
        return reservation

    async def get_active_reservation(
        self,
        student_id: str,
        center_id: str,
        now: Optional[datetime] = None,
    ) -> Optional[Reservation]:
        """Get the student's live reservation in a center, if any."""
        now = as_utc(now or self.clock.now())
        async with transactional(self.session):
            return await self.find_live_reservation(student_id, center_id, now)

    async def find_live_reservation(
        self,
        student_id: str,
        center_id: str,
        now: datetime,
    ) -> Optional[Reservation]:
        """Live reservation of a student in a center, within the caller's transaction."""
        result = await self.session.execute(
            select(Reservation)
            .where(
                Reservation.student_id == student_id,
                Reservation.center_id == center_id,
                Reservation.status == ReservationStatus.ACTIVE,
                Reservation.end_at > now,
            )
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def list_active(self, center_id: str) -> List[Reservation]:
        """Reservations of a center whose stored status is still active."""
        async with transactional(self.session):
            result = await self.session.execute(
                select(Reservation).where(
                    Reservation.center_id == center_id,
                    Reservation.status == ReservationStatus.ACTIVE,
                )
            )
            return list(result.scalars().all())

    async def expire_stale_reservations(
        self,
        now: Optional[datetime] = None,
        center_id: Optional[str] = None,
        reservation_ids: Optional[Iterable[UUID]] = None,
    ) -> int:
        """
        Persist the expired status of active reservations past their window.

        Args:
            now: Cut-off time, defaults to the service clock
            center_id: Restrict to one center
            reservation_ids: Restrict to these reservations

        Returns:
            Number of reservations marked expired
        """
        now = as_utc(now or self.clock.now())
        async with transactional(self.session):
            count = await self._expire_stale(
                now,
                center_id=center_id,
                reservation_ids=list(reservation_ids) if reservation_ids is not None else None,
            )

        if count:
            logger.info(f"Marked {count} reservations expired")
        return count

    async def preempt_seat(self, seat_id: UUID, now: datetime) -> int:
        """
        Release any live reservation on a seat that just became fixed.

        Runs inside the caller's transaction.

        Returns:
            Number of reservations released
        """
        result = await self.session.execute(
            update(Reservation)
            .where(
                Reservation.seat_id == seat_id,
                Reservation.status == ReservationStatus.ACTIVE,
                Reservation.end_at > now,
            )
            .values(status=ReservationStatus.RELEASED)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount:
            log_business_event(
                "reservation_preempted",
                {"seat_id": str(seat_id), "released": result.rowcount},
            )
        return result.rowcount

    async def _expire_stale(
        self,
        now: datetime,
        seat_id: Optional[UUID] = None,
        student_id: Optional[str] = None,
        center_id: Optional[str] = None,
        reservation_ids: Optional[List[UUID]] = None,
    ) -> int:
        stmt = update(Reservation).where(
            Reservation.status == ReservationStatus.ACTIVE,
            Reservation.end_at <= now,
        )

        scopes = []
        if seat_id is not None:
            scopes.append(Reservation.seat_id == seat_id)
        if student_id is not None:
            scopes.append(and_(Reservation.student_id == student_id, Reservation.center_id == center_id))
        if scopes:
            stmt = stmt.where(or_(*scopes))
        elif center_id is not None:
            stmt = stmt.where(Reservation.center_id == center_id)

        if reservation_ids is not None:
            if not reservation_ids:
                return 0
            stmt = stmt.where(Reservation.id.in_(reservation_ids))

        result = await self.session.execute(
            stmt.values(status=ReservationStatus.EXPIRED).execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def _get_seat_for_update(self, seat_id: UUID) -> Optional[Seat]:
        return await self.session.get(Seat, seat_id, with_for_update=True, populate_existing=True)

    async def _live_for_seat(self, seat_id: UUID, now: datetime) -> Optional[Reservation]:
        result = await self.session.execute(
            select(Reservation)
            .where(
                Reservation.seat_id == seat_id,
                Reservation.status == ReservationStatus.ACTIVE,
                Reservation.end_at > now,
            )
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def _covering_assignment(self, seat_id: UUID, day) -> Optional[FixedSeatAssignment]:
        result = await self.session.execute(
            select(FixedSeatAssignment)
            .where(
                FixedSeatAssignment.seat_id == seat_id,
                FixedSeatAssignment.start_date <= day,
                FixedSeatAssignment.end_date >= day,
            )
            .limit(1)
        )
        return result.scalar_one_or_none()

    @staticmethod
    def _conflict_from(
        error: IntegrityError,
        seat_id: UUID,
        student_id: str,
        center_id: str,
    ) -> BusinessLogicError:
        """Map a unique-index violation on active rows to the rule it enforces."""
        if "student" in str(error.orig).lower():
            return AlreadyReservedError(student_id, center_id)
        return SeatOccupiedError(str(seat_id))
