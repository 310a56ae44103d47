"""
Celery tasks that tidy the seat ledgers.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Optional, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .celery_app import celery_app
from ..database import create_database_engine, create_session_factory
from ..services.fixed_assignment_service import FixedAssignmentService
from ..services.reservation_service import ReservationService
from ..utils.clock import Clock, system_clock

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def sweep_expired_reservations(
    session_factory: async_sessionmaker[AsyncSession],
    clock: Optional[Clock] = None,
) -> Dict[str, int]:
    """Persist ``expired`` on every active reservation past its window."""
    async with session_factory() as session:
        expired = await ReservationService(session, clock or system_clock).expire_stale_reservations()
    return {"expired_count": expired}


async def purge_ended_fixed_seats(
    session_factory: async_sessionmaker[AsyncSession],
    clock: Optional[Clock] = None,
) -> Dict[str, int]:
    """Delete fixed assignments whose last day has passed."""
    async with session_factory() as session:
        purged = await FixedAssignmentService(session, clock or system_clock).purge_ended_assignments()
    return {"purged_count": purged}


def _run(job: Callable[[async_sessionmaker[AsyncSession]], Awaitable[T]]) -> T:
    """Run ``job`` on a fresh event loop with an engine bound to that loop."""

    async def _with_engine() -> T:
        engine = create_database_engine()
        try:
            return await job(create_session_factory(engine))
        finally:
            await engine.dispose()

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(_with_engine())
    finally:
        loop.close()


@celery_app.task(name="expire_stale_reservations_task")
def expire_stale_reservations_task():
    """Periodic task marking lapsed reservations as expired."""
    logger.info("Starting reservation expiry sweep")
    result = _run(sweep_expired_reservations)
    logger.info(f"Reservation expiry sweep finished: {result['expired_count']} expired")
    return result


@celery_app.task(name="purge_ended_fixed_seats_task")
def purge_ended_fixed_seats_task():
    """Periodic task deleting fixed seats that ended before today."""
    logger.info("Starting fixed seat purge")
    result = _run(purge_ended_fixed_seats)
    logger.info(f"Fixed seat purge finished: {result['purged_count']} deleted")
    return result
