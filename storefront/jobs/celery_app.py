"""Celery application configuration"""

from celery import Celery
from celery.signals import worker_process_init

from storefront.config import settings
from storefront.log import configure_logging

# Create Celery app
celery_app = Celery(
    "storefront",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "storefront.jobs.tasks",
    ],
)

# Configure Celery
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=300,  # 5 minutes
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_reject_on_worker_lost=True,

    # Beat schedule for periodic tasks
    beat_schedule={
        "cancel-expired-reservations": {
            "task": "cancel_expired_reservations",
            "schedule": 3600.0,  # Every hour
        },
    },
)


@worker_process_init.connect
def setup_worker_logging(**kwargs):
    configure_logging()
