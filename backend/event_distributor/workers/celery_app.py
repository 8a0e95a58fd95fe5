"""Celery application for background publishing and verification.

Start a worker with::

    celery -A event_distributor.workers.celery_app worker --concurrency=1
"""

from celery import Celery

from event_distributor.config import get_settings

settings = get_settings()

celery_app = Celery(
    "event_distributor",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["event_distributor.workers.tasks.publishing_tasks"],
)

# Room for ten adapter timeouts per batch
batch_limit = int(settings.adapter_timeout_seconds * 10)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    result_expires=24 * 3600,
    timezone=settings.event_timezone,
    enable_utc=True,
    task_track_started=True,
    task_soft_time_limit=batch_limit,
    task_time_limit=batch_limit + 60,
    # Browser automation drives one page per worker process
    worker_prefetch_multiplier=1,
    # Acknowledged on receipt; a redelivered publish creates the platform events twice
    task_acks_late=False,
    task_reject_on_worker_lost=False,
    broker_connection_retry_on_startup=True,
)
