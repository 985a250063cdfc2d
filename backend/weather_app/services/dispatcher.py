# weather_app/services/dispatcher.py
"""
Weather update fan-out.

A dispatch run pages through confirmed subscribers of one frequency class and sends
each a weather update. Per-recipient failures (unknown city, provider outage, mail
rejection) are logged and remembered, never raised; a failed page read aborts the run.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from weather_app.models.subscription import Frequency
from weather_app.services.email import Mailer
from weather_app.services.links import build_unsubscribe_url
from weather_app.services.mail_templates import render_weather_update_mail
from weather_app.services.subscriber_store import SubscriberStoreProtocol, UserEmailInfo
from weather_app.services.weather import WeatherProvider

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 100


@dataclass
class DispatchResult:
    frequency: str
    sent: int = 0
    failed: int = 0
    last_error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.last_error is None


class WeatherUpdateDispatcher:
    def __init__(
        self,
        store: SubscriberStoreProtocol,
        weather: WeatherProvider,
        mailer: Mailer,
        *,
        base_url: str,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ):
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self.store = store
        self.weather = weather
        self.mailer = mailer
        self.base_url = base_url
        self.batch_size = batch_size

    def send_weather_update(self, frequency: Frequency | str) -> DispatchResult:
        frequency_value = Frequency(frequency).value
        result = DispatchResult(frequency=frequency_value)

        offset = 0
        while True:
            # StoreError propagates: the run is aborted, nothing else is attempted.
            batch = self.store.get_user_email_info_batch(self.batch_size, offset, frequency_value)
            if not batch:
                break

            for entry in batch:
                try:
                    self._send_one(entry)
                except Exception as exc:  # noqa: BLE001
                    logger.warning(
                        "%s update to %s for city %s failed: %s",
                        frequency_value,
                        entry.email,
                        entry.city,
                        exc,
                    )
                    result.failed += 1
                    result.last_error = exc
                    continue
                result.sent += 1

            offset += self.batch_size

        logger.info(
            "%s dispatch finished: sent=%d failed=%d",
            frequency_value,
            result.sent,
            result.failed,
        )
        return result

    def _send_one(self, entry: UserEmailInfo) -> None:
        data = self.weather.get_weather(entry.city)

        mail = render_weather_update_mail(
            city=entry.city,
            temperature=data.temperature,
            humidity=data.humidity,
            description=data.description,
            unsubscribe_url=build_unsubscribe_url(self.base_url, entry.token_value),
        )
        self.mailer.send(to_email=entry.email, subject=mail.subject, html=mail.html, text=mail.text)
