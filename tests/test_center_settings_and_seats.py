"""Center settings toggle and seat inventory administration."""

import pytest

from conftest import CENTER_ID
from study_cafe_seating.schemas.center_settings import CenterSettingsUpdate
from study_cafe_seating.schemas.seat import SeatCreate, SeatUpdate
from study_cafe_seating.services.availability_service import AvailabilityService
from study_cafe_seating.services.center_settings_service import CenterSettingsService
from study_cafe_seating.services.seat_service import DEFAULT_LAYOUT, SeatService
from study_cafe_seating.utils.exceptions import (
    AuthorizationError,
    CenterFeatureDisabledError,
    SeatNotFoundError,
    ValidationError,
)


@pytest.mark.asyncio
async def test_unconfigured_center_reads_as_disabled(session):
    service = CenterSettingsService(session)

    settings = await service.get_settings("center-new")

    assert settings.center_id == "center-new"
    assert settings.is_enabled is False
    with pytest.raises(CenterFeatureDisabledError):
        await service.ensure_enabled("center-new")


@pytest.mark.asyncio
async def test_enabling_seeds_default_layout_once(session, staff):
    service = CenterSettingsService(session)

    await service.upsert_settings("center-new", CenterSettingsUpdate(is_enabled=True), staff)
    await service.upsert_settings("center-new", CenterSettingsUpdate(is_enabled=False), staff)
    await service.upsert_settings("center-new", CenterSettingsUpdate(is_enabled=True), staff)

    center_seats = await SeatService(session).list_seats("center-new")
    assert len(center_seats) == len(DEFAULT_LAYOUT) == 26
    assert [seat.seat_number for seat in center_seats] == list(range(1, 27))


@pytest.mark.asyncio
async def test_partial_update_keeps_entry_password(session, staff):
    service = CenterSettingsService(session)
    await service.upsert_settings(
        CENTER_ID, CenterSettingsUpdate(is_enabled=True, entry_password="1234"), staff
    )

    updated = await service.upsert_settings(
        CENTER_ID, CenterSettingsUpdate(is_enabled=True, notice="Closed Sunday"), staff
    )

    assert updated.entry_password == "1234"
    assert updated.notice == "Closed Sunday"


@pytest.mark.asyncio
async def test_students_cannot_change_settings(session, student_a):
    with pytest.raises(AuthorizationError):
        await CenterSettingsService(session).upsert_settings(
            CENTER_ID, CenterSettingsUpdate(is_enabled=True), student_a
        )


@pytest.mark.asyncio
async def test_list_enabled_centers(session, staff, seats):
    service = CenterSettingsService(session)
    await service.upsert_settings("center-closed", CenterSettingsUpdate(is_enabled=False), staff)

    enabled = await service.list_enabled_centers()

    assert [s.center_id for s in enabled] == [CENTER_ID]


@pytest.mark.asyncio
async def test_disabling_hides_seat_map(session, clock, staff, seats):
    await CenterSettingsService(session).upsert_settings(CENTER_ID, CenterSettingsUpdate(is_enabled=False), staff)

    with pytest.raises(CenterFeatureDisabledError):
        await AvailabilityService(session, clock).list_seat_status(CENTER_ID)


class TestSeatAdministration:
    @pytest.mark.asyncio
    async def test_create_seat(self, session, seats):
        seat = await SeatService(session).create_seat(CENTER_ID, SeatCreate(seat_number=27, row=6, col=0))

        assert seat.seat_number == 27
        assert seat.is_active is True

    @pytest.mark.asyncio
    async def test_duplicate_seat_number_is_rejected(self, session, seats):
        with pytest.raises(ValidationError):
            await SeatService(session).create_seat(CENTER_ID, SeatCreate(seat_number=12, row=9, col=9))

    @pytest.mark.asyncio
    async def test_renumber_onto_existing_number_is_rejected(self, session, seats):
        with pytest.raises(ValidationError):
            await SeatService(session).update_seat(seats[1].id, SeatUpdate(seat_number=2))

    @pytest.mark.asyncio
    async def test_update_moves_seat(self, session, seats):
        seat = await SeatService(session).update_seat(seats[1].id, SeatUpdate(row=7, col=7))

        assert (seat.row, seat.col, seat.seat_number) == (7, 7, 1)

    @pytest.mark.asyncio
    async def test_get_unknown_seat(self, session, seats):
        from uuid import uuid4

        with pytest.raises(SeatNotFoundError):
            await SeatService(session).get_seat(uuid4())

    @pytest.mark.asyncio
    async def test_initialize_is_a_no_op_for_seeded_center(self, session, seats):
        assert await SeatService(session).initialize_default_layout(CENTER_ID) == []
