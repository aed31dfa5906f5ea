"""Celery worker configuration.

Only periodic maintenance runs here. Booking side effects (notifications,
system messages) run in-process as detached asyncio tasks.
"""

from celery import Celery
from celery.schedules import crontab

from beautybook.config import settings

celery_app = Celery(
    "beautybook_tasks",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["beautybook.tasks"],
)

celery_app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone=settings.default_timezone,
    enable_utc=True,

    # Task execution settings
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_time_limit=300,  # 5 minutes max
    task_soft_time_limit=240,

    # Worker settings
    worker_prefetch_multiplier=1,

    # Results expire after 1 hour
    result_expires=3600,

    # Beat schedule for periodic tasks
    beat_schedule={
        # Deactivate, then delete, device tokens nobody has used in a while, daily at 4 AM
        "cleanup-stale-device-tokens": {
            "task": "beautybook.tasks.cleanup_stale_device_tokens",
            "schedule": crontab(hour=4, minute=0),
        },
    },
)


if __name__ == "__main__":
    celery_app.start()
