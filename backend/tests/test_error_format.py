from __future__ import annotations

from fastapi.testclient import TestClient

from weather_app.dependencies.services import get_weather_service


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_unknown_route_uses_error_shape(client):
    r = client.get("/api/nope")
    assert r.status_code == 404
    body = r.json()
    assert set(body) == {"error", "message"}
    assert body["error"] == "NOT_FOUND"


def test_method_not_allowed_is_400(client):
    r = client.delete("/api/subscribe")
    assert r.status_code == 400
    assert r.json() == {"error": "VALIDATION_ERROR", "message": "Unsupported method"}


def test_unhandled_error_is_generic_500(app):
    class _NoData:
        def get_weather(self, city):
            return None

    app.dependency_overrides[get_weather_service] = lambda: _NoData()

    with TestClient(app, raise_server_exceptions=False) as c:
        r = c.get("/api/weather", params={"city": "Kyiv"})

    assert r.status_code == 500
    assert r.json() == {"error": "INTERNAL_ERROR", "message": "Something went wrong"}
