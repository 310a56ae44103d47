"""Pure expiry and seat status derivation."""

from datetime import date, timedelta
from uuid import uuid4

from conftest import CENTER_ID, T0
from study_cafe_seating.models import FixedSeatAssignment, Reservation, ReservationStatus, Seat
from study_cafe_seating.services.availability_service import (
    Available,
    Fixed,
    Reserved,
    compute_status,
)
from study_cafe_seating.services.reservation_service import remaining_minutes, resolve_expiry


def make_seat(number: int, is_active: bool = True) -> Seat:
    return Seat(id=uuid4(), center_id=CENTER_ID, seat_number=number, row=0, col=number, is_active=is_active)


def make_reservation(seat: Seat, student_id: str = "student-a", status=ReservationStatus.ACTIVE) -> Reservation:
    return Reservation(
        id=uuid4(),
        seat_id=seat.id,
        student_id=student_id,
        center_id=CENTER_ID,
        start_at=T0,
        end_at=T0 + timedelta(minutes=120),
        status=status,
    )


def make_assignment(seat: Seat, start: date, end: date, student_id: str = "student-f") -> FixedSeatAssignment:
    return FixedSeatAssignment(
        id=uuid4(),
        seat_id=seat.id,
        student_id=student_id,
        center_id=CENTER_ID,
        start_date=start,
        end_date=end,
        assigned_by_id="teacher-kim",
    )


class TestResolveExpiry:
    def test_active_within_window_stays_active(self):
        reservation = make_reservation(make_seat(1))
        assert resolve_expiry(reservation, T0 + timedelta(minutes=119, seconds=59)) == ReservationStatus.ACTIVE

    def test_active_reaching_end_is_expired(self):
        reservation = make_reservation(make_seat(1))
        assert resolve_expiry(reservation, T0 + timedelta(minutes=120)) == ReservationStatus.EXPIRED

    def test_terminal_statuses_never_change(self):
        seat = make_seat(1)
        released = make_reservation(seat, status=ReservationStatus.RELEASED)
        expired = make_reservation(seat, status=ReservationStatus.EXPIRED)

        assert resolve_expiry(released, T0 + timedelta(days=1)) == ReservationStatus.RELEASED
        assert resolve_expiry(expired, T0) == ReservationStatus.EXPIRED

    def test_naive_end_is_read_as_utc(self):
        reservation = make_reservation(make_seat(1))
        reservation.end_at = reservation.end_at.replace(tzinfo=None)
        assert resolve_expiry(reservation, T0 + timedelta(minutes=30)) == ReservationStatus.ACTIVE


class TestRemainingMinutes:
    def test_whole_minutes(self):
        reservation = make_reservation(make_seat(1))
        assert remaining_minutes(reservation, T0 + timedelta(minutes=30)) == 90

    def test_partial_minute_rounds_up(self):
        reservation = make_reservation(make_seat(1))
        assert remaining_minutes(reservation, T0 + timedelta(minutes=119, seconds=1)) == 1

    def test_never_negative(self):
        reservation = make_reservation(make_seat(1))
        assert remaining_minutes(reservation, T0 + timedelta(hours=5)) == 0


class TestComputeStatus:
    def test_empty_center_is_all_available(self):
        seats = [make_seat(n) for n in (1, 2, 3)]

        statuses = compute_status(seats, [], [], T0)

        assert [s.seat.seat_number for s in statuses] == [1, 2, 3]
        assert all(isinstance(s.state, Available) and s.is_available for s in statuses)

    def test_live_reservation_reports_remaining_minutes(self):
        seat = make_seat(12)
        reservation = make_reservation(seat)

        (status,) = compute_status([seat], [reservation], [], T0 + timedelta(minutes=30))

        assert isinstance(status.state, Reserved)
        assert not status.is_available
        assert status.active_reservation is reservation
        assert status.remaining_minutes == 90
        assert status.student_id == "student-a"

    def test_expired_reservation_frees_the_seat(self):
        seat = make_seat(12)
        reservation = make_reservation(seat)

        (status,) = compute_status([seat], [reservation], [], T0 + timedelta(minutes=121))

        assert status.is_available
        assert status.active_reservation is None
        assert status.remaining_minutes is None

    def test_fixed_assignment_beats_reservation(self):
        seat = make_seat(3)
        reservation = make_reservation(seat)
        assignment = make_assignment(seat, date(2024, 3, 1), date(2024, 3, 31))

        (status,) = compute_status([seat], [reservation], [assignment], T0)

        assert isinstance(status.state, Fixed)
        assert status.is_fixed
        assert status.active_fixed_assignment is assignment
        assert status.active_reservation is None
        assert status.student_id == "student-f"

    def test_assignment_outside_today_is_ignored(self):
        seat = make_seat(3)
        assignment = make_assignment(seat, date(2024, 2, 1), date(2024, 2, 29))

        (status,) = compute_status([seat], [], [assignment], T0)

        assert status.is_available

    def test_inactive_seat_is_not_available(self):
        seat = make_seat(4, is_active=False)

        (status,) = compute_status([seat], [], [], T0)

        assert isinstance(status.state, Available)
        assert not status.is_available
