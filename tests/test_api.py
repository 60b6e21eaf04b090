"""
Tests for the http integration: middleware, health and metrics routes.
"""

import pytest
from fastapi.testclient import TestClient

from reqmetrics.config import settings
from reqmetrics.main import create_app


@pytest.fixture
def app(registry):
    app = create_app(registry, metrics_prefix="web")

    @app.get("/items/{item_id}")
    async def read_item(item_id: str):
        return {"item_id": item_id}

    @app.get("/broken")
    async def broken():
        raise RuntimeError("handler failed")

    return app


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


class TestMiddleware:
    def test_measures_request(self, registry, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert registry.get("web_requests_total").get({"method": "GET"}) == 1
        assert registry.get("web_in_progress_count").get({"method": "GET"}) == 0
        durations = registry.get("web_request_duration_seconds")
        assert durations.get({"method": "GET", "route": "/health", "status": "200"}).count == 1
        assert durations.get({"method": "GET"}).count == 0

    def test_uses_route_template(self, registry, client):
        client.get("/items/1")
        client.get("/items/2")

        durations = registry.get("web_request_duration_seconds")
        assert (
            durations.get({"method": "GET", "route": "/items/{item_id}", "status": "200"}).count
            == 2
        )

    def test_unmatched_route(self, registry, client):
        response = client.get("/nowhere")

        assert response.status_code == 404
        durations = registry.get("web_request_duration_seconds")
        assert durations.get({"method": "GET", "route": "unmatched", "status": "404"}).count == 1

    def test_handler_exception(self, registry, client):
        with pytest.raises(RuntimeError, match="handler failed"):
            client.get("/broken")

        assert registry.get("web_requests_total").get({"method": "GET"}) == 1
        assert (
            registry.get("web_exceptions_total").get({"method": "GET", "class": "RuntimeError"})
            == 1
        )
        assert registry.get("web_in_progress_count").get({"method": "GET"}) == 0


class TestRoutes:
    def test_health(self, client):
        response = client.get("/health")

        assert response.json() == {
            "status": "ok",
            "service": settings.service_name,
            "version": "0.1.0",
        }

    def test_metrics(self, client):
        client.post("/health")
        response = client.get("/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert 'web_requests_total{method="POST"} 1.0' in response.text
        assert "# TYPE web_request_duration_seconds histogram" in response.text

    def test_metrics_disabled(self, client, monkeypatch):
        monkeypatch.setattr(settings, "enable_metrics", False)

        assert client.get("/metrics").status_code == 404
