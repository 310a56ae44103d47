"""Fixed seat ledger: overlap rules, pre-emption and housekeeping."""

from datetime import date, datetime, timezone
from uuid import uuid4

import pytest

from conftest import CENTER_ID
from study_cafe_seating.models import ReservationStatus
from study_cafe_seating.services.availability_service import AvailabilityService
from study_cafe_seating.services.fixed_assignment_service import FixedAssignmentService
from study_cafe_seating.services.reservation_service import ReservationService
from study_cafe_seating.utils.exceptions import (
    AssignmentNotFoundError,
    AuthorizationError,
    OverlappingAssignmentError,
    SeatFixedError,
    SeatNotFoundError,
    StudentAlreadyAssignedError,
    ValidationError,
)


@pytest.mark.asyncio
async def test_overlapping_range_on_same_seat_is_rejected(session, clock, seats, staff):
    service = FixedAssignmentService(session, clock)
    await service.assign(seats[8].id, "student-a", CENTER_ID, date(2024, 1, 1), date(2024, 1, 31), staff)

    with pytest.raises(OverlappingAssignmentError):
        await service.assign(seats[8].id, "student-b", CENTER_ID, date(2024, 1, 15), date(2024, 2, 15), staff)


@pytest.mark.asyncio
async def test_adjacent_ranges_are_allowed(session, clock, seats, staff):
    service = FixedAssignmentService(session, clock)
    await service.assign(seats[8].id, "student-a", CENTER_ID, date(2024, 1, 1), date(2024, 1, 31), staff)

    second = await service.assign(seats[8].id, "student-b", CENTER_ID, date(2024, 2, 1), date(2024, 2, 29), staff)

    assert second.start_date == date(2024, 2, 1)
    assert len(await service.list_assignments(CENTER_ID)) == 2


@pytest.mark.asyncio
async def test_student_cannot_hold_two_fixed_seats_at_once(session, clock, seats, staff):
    service = FixedAssignmentService(session, clock)
    await service.assign(seats[8].id, "student-a", CENTER_ID, date(2024, 1, 1), date(2024, 1, 31), staff)

    with pytest.raises(StudentAlreadyAssignedError):
        await service.assign(seats[9].id, "student-a", CENTER_ID, date(2024, 1, 20), date(2024, 2, 10), staff)


@pytest.mark.asyncio
async def test_only_staff_can_assign(session, clock, seats, student_a):
    with pytest.raises(AuthorizationError):
        await FixedAssignmentService(session, clock).assign(
            seats[8].id, "student-a", CENTER_ID, date(2024, 3, 1), date(2024, 3, 31), student_a
        )


@pytest.mark.asyncio
async def test_inverted_range_is_invalid(session, clock, seats, staff):
    with pytest.raises(ValidationError):
        await FixedAssignmentService(session, clock).assign(
            seats[8].id, "student-a", CENTER_ID, date(2024, 3, 31), date(2024, 3, 1), staff
        )


@pytest.mark.asyncio
async def test_unknown_seat_is_not_found(session, clock, seats, staff):
    with pytest.raises(SeatNotFoundError):
        await FixedAssignmentService(session, clock).assign(
            uuid4(), "student-a", CENTER_ID, date(2024, 3, 1), date(2024, 3, 31), staff
        )


@pytest.mark.asyncio
async def test_fixed_seat_blocks_reservations_only_while_in_force(session, clock, seats, staff, student_a):
    await FixedAssignmentService(session, clock).assign(
        seats[3].id, "student-f", CENTER_ID, date(2024, 3, 1), date(2024, 3, 31), staff
    )
    reservations = ReservationService(session, clock)

    clock.set(datetime(2024, 3, 15, 10, 0, tzinfo=timezone.utc))
    with pytest.raises(SeatFixedError):
        await reservations.reserve(seats[3].id, student_a.id, CENTER_ID)

    clock.set(datetime(2024, 4, 1, 10, 0, tzinfo=timezone.utc))
    reservation = await reservations.reserve(seats[3].id, student_a.id, CENTER_ID)
    assert reservation.status == ReservationStatus.ACTIVE


@pytest.mark.asyncio
async def test_assigning_current_range_preempts_live_reservation(session, clock, seats, staff, student_a):
    reservations = ReservationService(session, clock)
    reservation = await reservations.reserve(seats[7].id, student_a.id, CENTER_ID)

    await FixedAssignmentService(session, clock).assign(
        seats[7].id, "student-f", CENTER_ID, date(2024, 3, 1), date(2024, 3, 31), staff
    )

    statuses = {s.seat.seat_number: s for s in await AvailabilityService(session, clock).list_seat_status(CENTER_ID)}
    assert statuses[7].is_fixed
    assert statuses[7].student_id == "student-f"

    released = await reservations.release(reservation.id, student_a)
    assert released.status == ReservationStatus.RELEASED
    assert await reservations.get_active_reservation(student_a.id, CENTER_ID) is None


@pytest.mark.asyncio
async def test_future_assignment_leaves_reservation_alone(session, clock, seats, staff, student_a):
    reservations = ReservationService(session, clock)
    reservation = await reservations.reserve(seats[7].id, student_a.id, CENTER_ID)

    await FixedAssignmentService(session, clock).assign(
        seats[7].id, "student-f", CENTER_ID, date(2024, 3, 2), date(2024, 3, 31), staff
    )

    active = await reservations.get_active_reservation(student_a.id, CENTER_ID)
    assert active.id == reservation.id


class TestUpdateAndRemove:
    @pytest.mark.asyncio
    async def test_update_ignores_its_own_range(self, session, clock, seats, staff):
        service = FixedAssignmentService(session, clock)
        assignment = await service.assign(
            seats[8].id, "student-a", CENTER_ID, date(2024, 1, 1), date(2024, 1, 31), staff
        )

        updated = await service.update(assignment.id, date(2024, 1, 10), date(2024, 2, 10), staff)

        assert (updated.start_date, updated.end_date) == (date(2024, 1, 10), date(2024, 2, 10))

    @pytest.mark.asyncio
    async def test_update_into_another_range_is_rejected(self, session, clock, seats, staff):
        service = FixedAssignmentService(session, clock)
        await service.assign(seats[8].id, "student-a", CENTER_ID, date(2024, 1, 1), date(2024, 1, 31), staff)
        later = await service.assign(seats[8].id, "student-b", CENTER_ID, date(2024, 2, 1), date(2024, 2, 29), staff)

        with pytest.raises(OverlappingAssignmentError):
            await service.update(later.id, date(2024, 1, 25), date(2024, 2, 29), staff)

    @pytest.mark.asyncio
    async def test_update_unknown_assignment(self, session, clock, seats, staff):
        with pytest.raises(AssignmentNotFoundError):
            await FixedAssignmentService(session, clock).update(uuid4(), date(2024, 1, 1), date(2024, 1, 2), staff)

    @pytest.mark.asyncio
    async def test_remove_frees_the_seat(self, session, clock, seats, staff, student_a):
        service = FixedAssignmentService(session, clock)
        assignment = await service.assign(
            seats[3].id, "student-f", CENTER_ID, date(2024, 3, 1), date(2024, 3, 31), staff
        )

        assert await service.remove(assignment.id, staff) is True
        assert await service.remove(assignment.id, staff) is False

        reservation = await ReservationService(session, clock).reserve(seats[3].id, student_a.id, CENTER_ID)
        assert reservation.status == ReservationStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_remove_requires_staff(self, session, clock, seats, student_a):
        with pytest.raises(AuthorizationError):
            await FixedAssignmentService(session, clock).remove(uuid4(), student_a)


@pytest.mark.asyncio
async def test_purge_deletes_only_ended_assignments(session, clock, seats, staff):
    service = FixedAssignmentService(session, clock)
    await service.assign(seats[8].id, "student-a", CENTER_ID, date(2024, 1, 1), date(2024, 2, 29), staff)
    current = await service.assign(seats[9].id, "student-b", CENTER_ID, date(2024, 2, 1), date(2024, 3, 1), staff)

    assert await service.purge_ended_assignments() == 1

    remaining = await service.list_assignments(CENTER_ID)
    assert [a.id for a in remaining] == [current.id]
