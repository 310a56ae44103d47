"""
Celery application configuration for background housekeeping.

Nothing here is needed for correctness: expiry is derived on read. The beat
schedule only keeps stored statuses close to the truth and prunes old rows.
"""

from celery import Celery
from ..config import get_settings

settings = get_settings()

# Create Celery app
celery_app = Celery(
    "study_cafe_seating",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=[
        "study_cafe_seating.tasks.housekeeping_tasks",
    ]
)

# Celery configuration
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=5 * 60,
    task_soft_time_limit=4 * 60,
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=1000,
)

# Periodic tasks configuration
celery_app.conf.beat_schedule = {
    "expire-stale-reservations": {
        "task": "expire_stale_reservations_task",
        "schedule": settings.expiry_sweep_interval_seconds,
    },
    "purge-ended-fixed-seats": {
        "task": "purge_ended_fixed_seats_task",
        "schedule": settings.fixed_seat_purge_interval_seconds,
    },
}
