"""
Seat map and seat inventory API endpoints.
"""

from datetime import datetime
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..database import get_db
from ..schemas.seat import (
    AvailableState,
    FixedState,
    ReservedState,
    SeatCreate,
    SeatMapResponse,
    SeatResponse,
    SeatStatusResponse,
    SeatUpdate,
)
from ..services.availability_service import AvailabilityService, SeatStatus
from ..services.center_settings_service import CenterSettingsService
from ..services.seat_service import SeatService
from ..utils.auth import Actor
from ..utils.clock import Clock, as_utc, get_clock
from ..utils.dependencies import get_current_actor, require_staff

router = APIRouter(prefix="/study-cafe", tags=["seats"])


def to_status_response(seat_status: SeatStatus) -> SeatStatusResponse:
    """Render a derived seat status for the wire."""
    reservation = seat_status.active_reservation
    assignment = seat_status.active_fixed_assignment

    if assignment is not None:
        state = FixedState(
            assignment_id=assignment.id,
            student_id=assignment.student_id,
            start_date=assignment.start_date,
            end_date=assignment.end_date,
        )
    elif reservation is not None:
        state = ReservedState(
            reservation_id=reservation.id,
            student_id=reservation.student_id,
            start_at=as_utc(reservation.start_at),
            end_at=as_utc(reservation.end_at),
            remaining_minutes=seat_status.remaining_minutes,
        )
    else:
        state = AvailableState()

    return SeatStatusResponse(
        seat=SeatResponse.model_validate(seat_status.seat),
        is_available=seat_status.is_available,
        state=state,
    )


@router.get("/seats/{center_id}", response_model=SeatMapResponse)
async def get_seat_map(
    center_id: str,
    actor: Actor = Depends(get_current_actor),
    clock: Clock = Depends(get_clock),
    db: AsyncSession = Depends(get_db)
):
    """
    Get the status of every seat in a center.

    Clients poll this endpoint; ``poll_interval_seconds`` is the suggested
    delay between polls.
    """
    now = clock.now()
    statuses = await AvailabilityService(db, clock).list_seat_status(center_id, now=now)
    center_settings = await CenterSettingsService(db).get_settings(center_id)

    return SeatMapResponse(
        center_id=center_id,
        generated_at=now,
        poll_interval_seconds=get_settings().seat_poll_interval_seconds,
        notice=center_settings.notice,
        seats=[to_status_response(seat_status) for seat_status in statuses],
    )


@router.post("/seats/{center_id}", response_model=SeatResponse, status_code=status.HTTP_201_CREATED)
async def create_seat(
    center_id: str,
    seat_data: SeatCreate,
    staff: Actor = Depends(require_staff()),
    db: AsyncSession = Depends(get_db)
):
    """Add a seat to a center (staff only)."""
    return await SeatService(db).create_seat(center_id, seat_data)


@router.patch("/seats/item/{seat_id}", response_model=SeatResponse)
async def update_seat(
    seat_id: UUID,
    seat_data: SeatUpdate,
    staff: Actor = Depends(require_staff()),
    db: AsyncSession = Depends(get_db)
):
    """Renumber, move or (de)activate a seat (staff only)."""
    return await SeatService(db).update_seat(seat_id, seat_data)


@router.post("/seats/{center_id}/initialize", response_model=List[SeatResponse])
async def initialize_seats(
    center_id: str,
    staff: Actor = Depends(require_staff()),
    db: AsyncSession = Depends(get_db)
):
    """
    Seed the default 26-seat layout for a center without seats (staff only).

    Returns the created seats, or an empty list if the center already has seats.
    """
    return await SeatService(db).initialize_default_layout(center_id)
