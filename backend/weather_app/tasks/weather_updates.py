from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from weather_app.celery_app import celery_app, enqueue
from weather_app.core.config import settings
from weather_app.core.database import SessionLocal
from weather_app.dependencies.services import get_mailer, get_weather_service
from weather_app.models.subscription import Frequency
from weather_app.services.dispatcher import WeatherUpdateDispatcher
from weather_app.services.subscriber_store import SubscriberStore


logger = logging.getLogger(__name__)


def _with_db_session() -> Session:
    return SessionLocal()


def run_weather_update(db: Session, frequency: str) -> dict:
    dispatcher = WeatherUpdateDispatcher(
        SubscriberStore(db),
        get_weather_service(),
        get_mailer(),
        base_url=settings.PUBLIC_BASE_URL,
        batch_size=settings.DISPATCH_BATCH_SIZE,
    )
    result = dispatcher.send_weather_update(frequency)
    if not result.ok:
        logger.error("%s update finished with errors, last error: %s", frequency, result.last_error)
    return {"frequency": result.frequency, "sent": result.sent, "failed": result.failed}


@celery_app.task(name="weather_updates.send_weather_update")
def send_weather_update(frequency: str) -> dict:
    db = _with_db_session()
    try:
        return run_weather_update(db, frequency)
    finally:
        db.close()


def dispatch_tick(tick: datetime) -> None:
    """
    Scheduler callback: every tick triggers the hourly run; the tick at the top of
    DAILY_UPDATE_HOUR also triggers the daily run.
    """
    frequencies = [Frequency.hourly]
    if tick.hour == settings.DAILY_UPDATE_HOUR and tick.minute == 0:
        frequencies.append(Frequency.daily)

    for frequency in frequencies:
        logger.info("%s update started", frequency.value)
        try:
            enqueue(send_weather_update, frequency.value)
        except Exception:  # pylint: disable=broad-except
            logger.exception("%s update aborted", frequency.value)
