from __future__ import annotations

from weather_app.services.weather import WeatherProviderError


def test_weather_success(client, weather):
    r = client.get("/api/weather", params={"city": "Kyiv"})
    assert r.status_code == 200
    assert r.json() == {"temperature": 23.5, "humidity": 60, "description": "sunny"}
    assert weather.calls == ["Kyiv"]


def test_weather_empty_city(client, weather):
    for params in ({}, {"city": ""}, {"city": "  "}):
        r = client.get("/api/weather", params=params)
        assert r.status_code == 400
        assert r.json() == {"error": "VALIDATION_ERROR", "message": "City parameter is empty"}
    assert weather.calls == []


def test_weather_city_not_found(client):
    r = client.get("/api/weather", params={"city": "Atlantis"})
    assert r.status_code == 404
    assert r.json() == {"error": "NOT_FOUND", "message": "city not found"}


def test_weather_provider_failure_is_generic_500(client, weather):
    def _fail(city):
        raise WeatherProviderError("Weather provider returned HTTP 503")

    weather.get_weather = _fail
    r = client.get("/api/weather", params={"city": "Kyiv"})
    assert r.status_code == 500
    assert r.json()["message"] == "Something went wrong"


def test_weather_wrong_method(client):
    r = client.post("/api/weather", params={"city": "Kyiv"})
    assert r.status_code == 400
    assert r.json()["message"] == "Unsupported method"
