from __future__ import annotations

import logging

from celery import Celery

from weather_app.core.config import settings


logger = logging.getLogger(__name__)

BROKER_CONFIGURED = bool(settings.CELERY_BROKER_URL)

celery_app = Celery("weather-updates")

if BROKER_CONFIGURED:
    broker_url = settings.CELERY_BROKER_URL
else:
    broker_url = "memory://"
    logger.warning("CELERY_BROKER_URL is not configured; weather update runs execute inline.")

celery_app.conf.update(
    broker_url=broker_url,
    result_backend=None,
    task_default_queue="weather-updates",
    task_serializer="json",
    accept_content=["json"],
    worker_prefetch_multiplier=1,
    # A redelivered run would mail the whole batch twice.
    task_acks_late=False,
    broker_connection_retry_on_startup=True,
    # Inline runs raise like queued ones would fail.
    task_eager_propagates=True,
    timezone="UTC",
    enable_utc=True,
    include=["weather_app.tasks.weather_updates"],
)


def enqueue(task, *args, **kwargs):
    """
    Convenience helper so callers can enqueue tasks without caring
    whether the broker is configured. In tests/local dev we execute tasks inline.
    """
    if BROKER_CONFIGURED:
        return task.delay(*args, **kwargs)
    logger.info("Celery broker not configured; running %s synchronously", task.name)
    return task.apply(args=args, kwargs=kwargs)
