"""
Reservation API endpoints.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models.reservation import Reservation, ReservationStatus
from ..schemas.reservation import (
    ReleaseResponse,
    ReservationCreateRequest,
    ReservationResponse,
)
from ..services.reservation_service import (
    ReservationService,
    is_live,
    remaining_minutes,
    resolve_expiry,
)
from ..utils.auth import Actor
from ..utils.clock import Clock, get_clock
from ..utils.dependencies import get_current_actor
from ..utils.exceptions import AuthorizationError

router = APIRouter(prefix="/study-cafe/reservations", tags=["reservations"])


def to_reservation_response(reservation: Reservation, clock: Clock) -> ReservationResponse:
    """Render a reservation with its effective status."""
    now = clock.now()
    response = ReservationResponse.model_validate(reservation)
    response.status = resolve_expiry(reservation, now)
    if is_live(reservation, now):
        response.remaining_minutes = remaining_minutes(reservation, now)
    return response


@router.post("", response_model=ReservationResponse, status_code=status.HTTP_201_CREATED)
async def reserve_seat(
    reservation_request: ReservationCreateRequest,
    actor: Actor = Depends(get_current_actor),
    clock: Clock = Depends(get_clock),
    db: AsyncSession = Depends(get_db)
):
    """
    Reserve a seat for the calling student.

    The reservation runs for the standard window from now and is released
    automatically when it ends.
    """
    if actor.is_staff:
        raise AuthorizationError(
            "Only students can reserve a seat",
            required_permission="student",
        )

    reservation = await ReservationService(db, clock).reserve(
        seat_id=reservation_request.seat_id,
        student_id=actor.id,
        center_id=reservation_request.center_id,
    )
    return to_reservation_response(reservation, clock)


@router.get("/me", response_model=Optional[ReservationResponse])
async def get_my_reservation(
    center_id: str = Query(..., min_length=1, max_length=64),
    actor: Actor = Depends(get_current_actor),
    clock: Clock = Depends(get_clock),
    db: AsyncSession = Depends(get_db)
):
    """Get the caller's live reservation in a center, or null."""
    reservation = await ReservationService(db, clock).get_active_reservation(actor.id, center_id)
    if reservation is None:
        return None
    return to_reservation_response(reservation, clock)


@router.post("/{reservation_id}/release", response_model=ReleaseResponse)
async def release_reservation(
    reservation_id: UUID,
    actor: Actor = Depends(get_current_actor),
    clock: Clock = Depends(get_clock),
    db: AsyncSession = Depends(get_db)
):
    """
    Release a reservation early.

    Owners and staff may release. Releasing is idempotent; a reservation that
    expired or does not exist comes back with ``released`` false.
    """
    reservation = await ReservationService(db, clock).release(reservation_id, actor)
    if reservation is None:
        return ReleaseResponse(reservation_id=reservation_id, released=False)

    return ReleaseResponse(
        reservation_id=reservation_id,
        released=reservation.status == ReservationStatus.RELEASED,
        reservation=to_reservation_response(reservation, clock),
    )


@router.post("/{reservation_id}/extend", response_model=ReservationResponse)
async def extend_reservation(
    reservation_id: UUID,
    actor: Actor = Depends(get_current_actor),
    clock: Clock = Depends(get_clock),
    db: AsyncSession = Depends(get_db)
):
    """Restart the caller's reservation window from now."""
    reservation = await ReservationService(db, clock).extend(reservation_id, actor)
    return to_reservation_response(reservation, clock)
