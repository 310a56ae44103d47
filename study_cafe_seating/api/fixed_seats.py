"""
Fixed seat assignment API endpoints.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..schemas.fixed_assignment import (
    FixedAssignmentCreate,
    FixedAssignmentResponse,
    FixedAssignmentUpdate,
)
from ..services.fixed_assignment_service import FixedAssignmentService
from ..utils.auth import Actor
from ..utils.clock import Clock, get_clock
from ..utils.dependencies import get_current_actor, require_staff

router = APIRouter(prefix="/study-cafe/fixed-seats", tags=["fixed-seats"])


@router.post("", response_model=FixedAssignmentResponse, status_code=status.HTTP_201_CREATED)
async def assign_fixed_seat(
    assignment_data: FixedAssignmentCreate,
    actor: Actor = Depends(get_current_actor),
    clock: Clock = Depends(get_clock),
    db: AsyncSession = Depends(get_db)
):
    """
    Grant a student a seat for an inclusive date range (staff only).

    Any live reservation on the seat is released if the range covers today.
    """
    return await FixedAssignmentService(db, clock).assign(
        seat_id=assignment_data.seat_id,
        student_id=assignment_data.student_id,
        center_id=assignment_data.center_id,
        start_date=assignment_data.start_date,
        end_date=assignment_data.end_date,
        actor=actor,
    )


@router.patch("/{assignment_id}", response_model=FixedAssignmentResponse)
async def update_fixed_seat(
    assignment_id: UUID,
    assignment_data: FixedAssignmentUpdate,
    actor: Actor = Depends(get_current_actor),
    clock: Clock = Depends(get_clock),
    db: AsyncSession = Depends(get_db)
):
    """Change the date range of a fixed seat (staff only)."""
    return await FixedAssignmentService(db, clock).update(
        assignment_id,
        start_date=assignment_data.start_date,
        end_date=assignment_data.end_date,
        actor=actor,
    )


@router.delete("/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_fixed_seat(
    assignment_id: UUID,
    actor: Actor = Depends(get_current_actor),
    clock: Clock = Depends(get_clock),
    db: AsyncSession = Depends(get_db)
):
    """Delete a fixed seat (staff only). Unknown ids are ignored."""
    await FixedAssignmentService(db, clock).remove(assignment_id, actor)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{center_id}", response_model=List[FixedAssignmentResponse])
async def list_fixed_seats(
    center_id: str,
    include_ended: bool = Query(True, description="Include assignments whose range is over"),
    staff: Actor = Depends(require_staff()),
    clock: Clock = Depends(get_clock),
    db: AsyncSession = Depends(get_db)
):
    """List a center's fixed seats ordered by start date (staff only)."""
    return await FixedAssignmentService(db, clock).list_assignments(center_id, include_ended=include_ended)
