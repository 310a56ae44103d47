"""
Fixed seat service: staff-granted, date-ranged exclusive seat assignments.
"""

import logging
from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..cache import CacheKeyBuilder, distributed_lock
from ..database import transactional
from ..models.fixed_assignment import FixedSeatAssignment
from ..models.seat import Seat
from ..utils.auth import Actor
from ..utils.clock import Clock, calendar_date, system_clock
from ..utils.exceptions import (
    AssignmentNotFoundError,
    AuthorizationError,
    OverlappingAssignmentError,
    SeatNotFoundError,
    StudentAlreadyAssignedError,
    ValidationError,
)
from ..utils.logging_config import log_business_event
from .reservation_service import ReservationService

logger = logging.getLogger(__name__)


class FixedAssignmentService:
    """Service for the fixed seat ledger."""

    def __init__(self, session: AsyncSession, clock: Optional[Clock] = None):
        self.session = session
        self.clock = clock or system_clock

    async def assign(
        self,
        seat_id: UUID,
        student_id: str,
        center_id: str,
        start_date: date,
        end_date: date,
        actor: Actor,
    ) -> FixedSeatAssignment:
        """
        Grant a student a seat for an inclusive date range.

        A live reservation on the seat is released when the new range covers
        today.

        Args:
            seat_id: Seat to assign
            student_id: Student receiving the seat
            center_id: Center the seat belongs to
            start_date: First day of the assignment
            end_date: Last day of the assignment
            actor: Calling actor, must be staff

        Returns:
            The created assignment

        Raises:
            AuthorizationError: If the actor is not staff
            ValidationError: If the range is inverted
            SeatNotFoundError: If the seat does not exist in the center
            OverlappingAssignmentError: If the seat is already assigned in the range
            StudentAlreadyAssignedError: If the student holds another fixed seat in the range
        """
        self._require_staff(actor)
        self._validate_range(start_date, end_date)

        async with distributed_lock(CacheKeyBuilder.seat_lock(str(seat_id))):
            async with transactional(self.session):
                seat = await self.session.get(Seat, seat_id, with_for_update=True, populate_existing=True)
                if seat is None or seat.center_id != center_id:
                    raise SeatNotFoundError(str(seat_id))

                await self._check_overlaps(seat_id, student_id, center_id, start_date, end_date)

                assignment = FixedSeatAssignment(
                    seat_id=seat_id,
                    student_id=student_id,
                    center_id=center_id,
                    start_date=start_date,
                    end_date=end_date,
                    assigned_by_id=actor.id,
                )
                self.session.add(assignment)
                await self.session.flush()

                await self._preempt_if_current(assignment)

        log_business_event(
            "fixed_seat_assigned",
            {
                "assignment_id": str(assignment.id),
                "seat_id": str(seat_id),
                "student_id": student_id,
                "center_id": center_id,
                "start_date": start_date.isoformat(),
                "end_date": end_date.isoformat(),
            },
            actor_id=actor.id,
        )
        return assignment

    async def update(
        self,
        assignment_id: UUID,
        start_date: date,
        end_date: date,
        actor: Actor,
    ) -> FixedSeatAssignment:
        """
        Change the date range of an assignment.

        The same overlap rules as ``assign`` apply, ignoring the assignment
        itself.

        Raises:
            AuthorizationError: If the actor is not staff
            ValidationError: If the range is inverted
            AssignmentNotFoundError: If the assignment does not exist
            OverlappingAssignmentError: If the new range collides on the seat
            StudentAlreadyAssignedError: If the student holds another fixed seat in the range
        """
        self._require_staff(actor)
        self._validate_range(start_date, end_date)

        async with transactional(self.session):
            assignment = await self.session.get(FixedSeatAssignment, assignment_id)
        if assignment is None:
            raise AssignmentNotFoundError(str(assignment_id))

        async with distributed_lock(CacheKeyBuilder.seat_lock(str(assignment.seat_id))):
            async with transactional(self.session):
                await self.session.get(
                    Seat, assignment.seat_id, with_for_update=True, populate_existing=True
                )
                assignment = await self.session.get(
                    FixedSeatAssignment, assignment_id, populate_existing=True
                )
                if assignment is None:
                    raise AssignmentNotFoundError(str(assignment_id))

                await self._check_overlaps(
                    assignment.seat_id,
                    assignment.student_id,
                    assignment.center_id,
                    start_date,
                    end_date,
                    exclude_id=assignment.id,
                )

                assignment.start_date = start_date
                assignment.end_date = end_date
                await self.session.flush()

                await self._preempt_if_current(assignment)

        log_business_event(
            "fixed_seat_updated",
            {
                "assignment_id": str(assignment.id),
                "start_date": start_date.isoformat(),
                "end_date": end_date.isoformat(),
            },
            actor_id=actor.id,
        )
        return assignment

    async def remove(self, assignment_id: UUID, actor: Actor) -> bool:
        """
        Delete an assignment.

        Removing an unknown assignment is a no-op.

        Returns:
            True if an assignment was deleted

        Raises:
            AuthorizationError: If the actor is not staff
        """
        self._require_staff(actor)

        async with transactional(self.session):
            assignment = await self.session.get(FixedSeatAssignment, assignment_id)
            if assignment is None:
                logger.info(f"Removal of unknown fixed assignment {assignment_id} ignored")
                return False
            await self.session.delete(assignment)

        log_business_event(
            "fixed_seat_removed",
            {"assignment_id": str(assignment_id), "seat_id": str(assignment.seat_id)},
            actor_id=actor.id,
        )
        return True

    async def list_assignments(
        self,
        center_id: str,
        include_ended: bool = True,
    ) -> List[FixedSeatAssignment]:
        """
        List a center's assignments ordered by start date.

        Args:
            center_id: Center whose assignments to list
            include_ended: Also return assignments whose range is over
        """
        query = select(FixedSeatAssignment).where(FixedSeatAssignment.center_id == center_id)
        if not include_ended:
            query = query.where(FixedSeatAssignment.end_date >= self.clock.today())

        async with transactional(self.session):
            result = await self.session.execute(
                query.order_by(FixedSeatAssignment.start_date, FixedSeatAssignment.created_at)
            )
            return list(result.scalars().all())

    async def list_covering(self, center_id: str, day: date) -> List[FixedSeatAssignment]:
        """Assignments of a center in force on ``day``."""
        async with transactional(self.session):
            result = await self.session.execute(
                select(FixedSeatAssignment).where(
                    FixedSeatAssignment.center_id == center_id,
                    FixedSeatAssignment.start_date <= day,
                    FixedSeatAssignment.end_date >= day,
                )
            )
            return list(result.scalars().all())

    async def purge_ended_assignments(self, today: Optional[date] = None) -> int:
        """
        Delete assignments whose last day is before ``today``.

        Returns:
            Number of assignments deleted
        """
        today = today or self.clock.today()
        async with transactional(self.session):
            result = await self.session.execute(
                delete(FixedSeatAssignment)
                .where(FixedSeatAssignment.end_date < today)
                .execution_options(synchronize_session=False)
            )

        if result.rowcount:
            logger.info(f"Purged {result.rowcount} fixed assignments ended before {today}")
        return result.rowcount

    async def _check_overlaps(
        self,
        seat_id: UUID,
        student_id: str,
        center_id: str,
        start_date: date,
        end_date: date,
        exclude_id: Optional[UUID] = None,
    ) -> None:
        overlapping = [
            FixedSeatAssignment.start_date <= end_date,
            FixedSeatAssignment.end_date >= start_date,
        ]
        if exclude_id is not None:
            overlapping.append(FixedSeatAssignment.id != exclude_id)

        on_seat = await self.session.execute(
            select(FixedSeatAssignment.id)
            .where(FixedSeatAssignment.seat_id == seat_id, *overlapping)
            .limit(1)
        )
        conflict = on_seat.scalar_one_or_none()
        if conflict is not None:
            raise OverlappingAssignmentError(str(seat_id), str(conflict))

        for_student = await self.session.execute(
            select(FixedSeatAssignment.id)
            .where(
                FixedSeatAssignment.student_id == student_id,
                FixedSeatAssignment.center_id == center_id,
                *overlapping,
            )
            .limit(1)
        )
        conflict = for_student.scalar_one_or_none()
        if conflict is not None:
            raise StudentAlreadyAssignedError(student_id, str(conflict))

    async def _preempt_if_current(self, assignment: FixedSeatAssignment) -> None:
        now = self.clock.now()
        if assignment.covers(calendar_date(now)):
            await ReservationService(self.session, self.clock).preempt_seat(assignment.seat_id, now)

    @staticmethod
    def _require_staff(actor: Actor) -> None:
        if not actor.is_staff:
            raise AuthorizationError(
                "Only staff can manage fixed seats",
                required_permission="staff",
            )

    @staticmethod
    def _validate_range(start_date: date, end_date: date) -> None:
        if start_date > end_date:
            raise ValidationError(
                "start_date must be on or before end_date",
                field_errors={"end_date": ["before start_date"]},
            )
