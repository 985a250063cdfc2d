from __future__ import annotations

import logging
import threading

from fastapi import Depends
from sqlalchemy.orm import Session

from weather_app.core.config import settings
from weather_app.core.database import get_db
from weather_app.services.email import Mailer, build_mailer
from weather_app.services.subscriber_store import SubscriberStore
from weather_app.services.subscriptions import SubscriptionService
from weather_app.services.weather import WeatherData, WeatherService
from weather_app.services.weather_cache import TTLCache

logger = logging.getLogger(__name__)

_mailer: Mailer | None = None
_weather_service: WeatherService | None = None
_lock = threading.Lock()


def get_mailer() -> Mailer:
    global _mailer
    if _mailer is not None:
        return _mailer
    with _lock:
        if _mailer is None:
            _mailer = build_mailer(settings)
            logger.info("Mailer configured: %s", type(_mailer).__name__)
    return _mailer


def get_weather_service() -> WeatherService:
    global _weather_service
    if _weather_service is not None:
        return _weather_service
    with _lock:
        if _weather_service is None:
            if not settings.WEATHER_API_KEY:
                logger.warning("WEATHER_API_KEY is unset; weather lookups will be rejected upstream")
            _weather_service = WeatherService(
                api_url=settings.WEATHER_API_URL,
                api_key=settings.WEATHER_API_KEY,
                cache=TTLCache[WeatherData](settings.WEATHER_CACHE_TTL_SECONDS),
                timeout=settings.WEATHER_API_TIMEOUT_SECONDS,
            )
    return _weather_service


def reset_service_singletons() -> None:
    """
    Test helper to ensure fresh instances are constructed after settings change.
    """

    global _mailer, _weather_service
    with _lock:
        _mailer = None
        _weather_service = None


def get_subscription_service(
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
) -> SubscriptionService:
    return SubscriptionService(SubscriberStore(db), mailer, base_url=settings.PUBLIC_BASE_URL)


def get_token_service(db: Session = Depends(get_db)) -> SubscriptionService:
    # Confirm/unsubscribe never send mail, so no mailer is resolved here.
    return SubscriptionService(SubscriberStore(db), None, base_url=settings.PUBLIC_BASE_URL)
