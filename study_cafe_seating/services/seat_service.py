"""
Seat service for managing the per-center seat inventory.
"""

import logging
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import transactional
from ..models.seat import Seat
from ..schemas.seat import SeatCreate, SeatUpdate
from ..utils.exceptions import SeatNotFoundError, ValidationError
from ..utils.logging_config import log_business_event

logger = logging.getLogger(__name__)


# (seat_number, row, col) of the standard 26-seat study room
DEFAULT_LAYOUT: Tuple[Tuple[int, int, int], ...] = (
    (21, 0, 0), (22, 1, 0), (23, 2, 0), (24, 3, 0), (25, 4, 0), (26, 5, 0),
    (20, 0, 1), (19, 1, 1), (18, 2, 1), (17, 3, 1), (16, 4, 1),
    (15, 0, 2), (14, 1, 2), (13, 2, 2), (12, 3, 2), (11, 4, 2),
    (6, 0, 3), (7, 1, 3), (8, 2, 3), (9, 3, 3), (10, 4, 3),
    (5, 0, 4), (4, 1, 4), (3, 2, 4), (2, 3, 4), (1, 4, 4),
)


class SeatService:
    """Service for seat inventory operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_seats(self, center_id: str, active_only: bool = False) -> List[Seat]:
        """
        List a center's seats ordered by seat number.

        Args:
            center_id: Center whose seats to list
            active_only: Skip seats taken out of service

        Returns:
            The center's seats
        """
        query = select(Seat).where(Seat.center_id == center_id)
        if active_only:
            query = query.where(Seat.is_active.is_(True))

        async with transactional(self.session):
            result = await self.session.execute(query.order_by(Seat.seat_number))
            return list(result.scalars().all())

    async def get_seat(self, seat_id: UUID) -> Seat:
        """
        Get a seat by ID.

        Raises:
            SeatNotFoundError: If the seat does not exist
        """
        async with transactional(self.session):
            seat = await self.session.get(Seat, seat_id)
        if seat is None:
            raise SeatNotFoundError(str(seat_id))
        return seat

    async def create_seat(self, center_id: str, seat_data: SeatCreate) -> Seat:
        """
        Add a seat to a center.

        Args:
            center_id: Center that owns the seat
            seat_data: Seat number, layout position and active flag

        Returns:
            The created seat

        Raises:
            ValidationError: If the seat number is already used in the center
        """
        try:
            async with transactional(self.session):
                await self._ensure_number_free(center_id, seat_data.seat_number)
                seat = Seat(center_id=center_id, **seat_data.model_dump())
                self.session.add(seat)
                await self.session.flush()
        except IntegrityError as e:
            raise self._duplicate_number(center_id, seat_data.seat_number) from e

        logger.info(f"Created seat {seat.seat_number} for center {center_id}")
        return seat

    async def update_seat(self, seat_id: UUID, seat_data: SeatUpdate) -> Seat:
        """
        Update seat number, layout position or active flag.

        Raises:
            SeatNotFoundError: If the seat does not exist
            ValidationError: If the new seat number is already used in the center
        """
        changes = seat_data.model_dump(exclude_unset=True, exclude_none=True)

        try:
            async with transactional(self.session):
                seat = await self.session.get(
                    Seat, seat_id, with_for_update=True, populate_existing=True
                )
                if seat is None:
                    raise SeatNotFoundError(str(seat_id))

                new_number = changes.get("seat_number")
                if new_number is not None and new_number != seat.seat_number:
                    await self._ensure_number_free(seat.center_id, new_number)

                for field, value in changes.items():
                    setattr(seat, field, value)
                await self.session.flush()
        except IntegrityError as e:
            raise self._duplicate_number(seat.center_id, changes.get("seat_number")) from e

        if "is_active" in changes:
            log_business_event(
                "seat_activated" if seat.is_active else "seat_deactivated",
                {"seat_id": str(seat.id), "center_id": seat.center_id},
            )
        return seat

    async def initialize_default_layout(self, center_id: str) -> List[Seat]:
        """
        Seed the standard layout for a center that has no seats yet.

        Centers that already have seats are left untouched.

        Returns:
            The seats created, empty when the center was already seeded
        """
        async with transactional(self.session):
            existing = await self.session.execute(
                select(Seat.id).where(Seat.center_id == center_id).limit(1)
            )
            if existing.first() is not None:
                logger.debug(f"Center {center_id} already has seats, skipping layout")
                return []

            seats = [
                Seat(center_id=center_id, seat_number=number, row=row, col=col, is_active=True)
                for number, row, col in DEFAULT_LAYOUT
            ]
            self.session.add_all(seats)
            await self.session.flush()

        logger.info(f"Initialized {len(seats)} seats for center {center_id}")
        return sorted(seats, key=lambda seat: seat.seat_number)

    async def _ensure_number_free(self, center_id: str, seat_number: int) -> None:
        result = await self.session.execute(
            select(Seat.id).where(
                Seat.center_id == center_id,
                Seat.seat_number == seat_number,
            )
        )
        if result.first() is not None:
            raise self._duplicate_number(center_id, seat_number)

    @staticmethod
    def _duplicate_number(center_id: str, seat_number: Optional[int]) -> ValidationError:
        return ValidationError(
            f"Seat number {seat_number} already exists in center {center_id}",
            field_errors={"seat_number": ["already in use"]},
        )
