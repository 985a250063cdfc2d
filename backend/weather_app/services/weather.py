# weather_app/services/weather.py
"""
Current-weather lookups against OpenWeatherMap, with a per-city TTL cache.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from weather_app.services.weather_cache import TTLCache

logger = logging.getLogger(__name__)


class WeatherProviderError(Exception):
    """Raised when the weather provider call fails or returns something unusable."""


class CityNotFoundError(WeatherProviderError):
    """Raised when the provider does not know the requested city."""

    def __init__(self, city: str):
        super().__init__("city not found")
        self.city = city


@dataclass(frozen=True)
class WeatherData:
    temperature: float
    humidity: int
    description: str


class WeatherProvider(Protocol):
    def get_weather(self, city: str) -> WeatherData:
        ...


def parse_weather_payload(payload: Any) -> WeatherData:
    try:
        main = payload["main"]
        conditions = payload["weather"]
        return WeatherData(
            temperature=float(main["temp"]),
            humidity=int(main["humidity"]),
            description=str(conditions[0]["description"]),
        )
    except (KeyError, IndexError, TypeError, ValueError) as exc:
        raise WeatherProviderError("Invalid weather response payload") from exc


class WeatherService:
    def __init__(
        self,
        *,
        api_url: str,
        api_key: str,
        cache: TTLCache[WeatherData] | None = None,
        client: httpx.Client | None = None,
        timeout: float = 5.0,
    ):
        self.api_url = api_url
        self.api_key = api_key
        self.cache = cache if cache is not None else TTLCache(0)
        self.client = client or httpx.Client(timeout=timeout)

    def get_weather(self, city: str) -> WeatherData:
        cached = self.cache.get(city)
        if cached is not None:
            logger.debug("Weather cache hit for city: %s", city)
            return cached

        data = parse_weather_payload(self._call_api(city))
        self.cache.set(city, data)
        return data

    def _call_api(self, city: str) -> Any:
        params = {"q": city, "appid": self.api_key, "units": "metric"}
        try:
            response = self.client.get(self.api_url, params=params)
        except httpx.HTTPError as exc:
            logger.warning("Weather API request failed for %s: %s", city, exc)
            raise WeatherProviderError("Unable to reach weather provider") from exc

        if response.status_code == 404:
            raise CityNotFoundError(city)
        if response.status_code != 200:
            logger.warning("Weather API error %s for %s: %s", response.status_code, city, response.text[:200])
            raise WeatherProviderError(f"Weather provider returned HTTP {response.status_code}")

        try:
            return response.json()
        except ValueError as exc:
            raise WeatherProviderError("Invalid weather response JSON") from exc
