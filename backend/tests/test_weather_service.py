from __future__ import annotations

import httpx
import pytest

from weather_app.services.weather import (
    CityNotFoundError,
    WeatherData,
    WeatherProviderError,
    WeatherService,
    parse_weather_payload,
)
from weather_app.services.weather_cache import TTLCache

API_URL = "https://api.example.com/data/2.5/weather"

OK_PAYLOAD = {
    "main": {"temp": 21.37, "humidity": 55},
    "weather": [{"description": "scattered clouds"}],
}


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def _service(handler, cache=None) -> tuple[WeatherService, list[httpx.Request]]:
    requests: list[httpx.Request] = []

    def _record(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    client = httpx.Client(transport=httpx.MockTransport(_record))
    return WeatherService(api_url=API_URL, api_key="k123", cache=cache, client=client), requests


def test_get_weather_parses_payload_and_sends_params():
    svc, requests = _service(lambda req: httpx.Response(200, json=OK_PAYLOAD))

    data = svc.get_weather("Kyiv")

    assert data == WeatherData(temperature=21.37, humidity=55, description="scattered clouds")
    params = requests[0].url.params
    assert params["q"] == "Kyiv"
    assert params["appid"] == "k123"
    assert params["units"] == "metric"


def test_city_not_found_maps_404():
    svc, _ = _service(lambda req: httpx.Response(404, json={"cod": "404", "message": "city not found"}))

    with pytest.raises(CityNotFoundError) as exc:
        svc.get_weather("Atlantis")
    assert exc.value.city == "Atlantis"
    assert str(exc.value) == "city not found"


@pytest.mark.parametrize("status", [401, 429, 500, 503])
def test_other_statuses_are_provider_errors(status):
    svc, _ = _service(lambda req: httpx.Response(status, text="nope"))

    with pytest.raises(WeatherProviderError) as exc:
        svc.get_weather("Kyiv")
    assert not isinstance(exc.value, CityNotFoundError)


def test_transport_failure_is_provider_error():
    def _boom(request):
        raise httpx.ConnectError("connection refused", request=request)

    svc, _ = _service(_boom)
    with pytest.raises(WeatherProviderError):
        svc.get_weather("Kyiv")


def test_invalid_json_is_provider_error():
    svc, _ = _service(lambda req: httpx.Response(200, content=b"<html>"))
    with pytest.raises(WeatherProviderError):
        svc.get_weather("Kyiv")


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"main": {"temp": 1}, "weather": [{"description": "x"}]},
        {"main": {"temp": 1, "humidity": 2}, "weather": []},
        {"main": {"temp": "warm", "humidity": 2}, "weather": [{"description": "x"}]},
        [],
    ],
)
def test_parse_rejects_malformed_payloads(payload):
    with pytest.raises(WeatherProviderError):
        parse_weather_payload(payload)


def test_cache_serves_repeat_lookups_until_ttl_expires():
    clock = FakeClock()
    svc, requests = _service(
        lambda req: httpx.Response(200, json=OK_PAYLOAD),
        cache=TTLCache[WeatherData](600, clock=clock),
    )

    svc.get_weather("Kyiv")
    svc.get_weather(" kyiv ")
    assert len(requests) == 1

    clock.now += 600
    svc.get_weather("Kyiv")
    assert len(requests) == 2


def test_errors_are_not_cached():
    clock = FakeClock()
    responses = [httpx.Response(503), httpx.Response(200, json=OK_PAYLOAD)]
    svc, requests = _service(lambda req: responses.pop(0), cache=TTLCache[WeatherData](600, clock=clock))

    with pytest.raises(WeatherProviderError):
        svc.get_weather("Kyiv")
    assert svc.get_weather("Kyiv").temperature == 21.37
    assert len(requests) == 2


def test_ttl_cache_zero_ttl_disables_caching():
    cache = TTLCache[str](0)
    cache.set("Kyiv", "x")
    assert cache.get("Kyiv") is None


def test_ttl_cache_clear():
    cache = TTLCache[str](60, clock=FakeClock())
    cache.set("Kyiv", "x")
    assert cache.get("KYIV") == "x"
    cache.clear()
    assert cache.get("Kyiv") is None


def test_ttl_cache_write_evicts_expired_entries():
    clock = FakeClock()
    cache = TTLCache[str](60, clock=clock)
    cache.set("Kyiv", "a")
    cache.set("Lviv", "b")

    clock.now += 60
    cache.set("Odesa", "c")

    assert len(cache) == 1
    assert cache.get("Odesa") == "c"
