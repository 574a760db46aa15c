"""Tests for request/correlation ID middleware and error envelopes."""

import re
from unittest.mock import AsyncMock

from fastapi.testclient import TestClient

from src.api.app import create_app
from src.api.dependencies import get_database

# UUID v4 regex pattern
UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$")


def _make_app():
    """Create an app whose /health needs no real database."""
    app = create_app()

    mock_db = AsyncMock()
    mock_db.health_check = AsyncMock(return_value=True)
    app.dependency_overrides[get_database] = lambda: mock_db

    return app


class TestCorrelationIdMiddleware:
    """Test X-Request-ID middleware behavior."""

    def test_generates_uuid_when_no_header(self):
        app = _make_app()
        with TestClient(app) as client:
            resp = client.get("/health")
            assert resp.status_code == 200
            request_id = resp.headers.get("X-Request-ID")
            assert request_id is not None
            assert UUID_RE.match(request_id), f"Expected UUID v4, got: {request_id}"

    def test_echoes_custom_request_id(self):
        app = _make_app()
        with TestClient(app) as client:
            resp = client.get("/health", headers={"X-Request-ID": "custom-id-123"})
            assert resp.headers.get("X-Request-ID") == "custom-id-123"

    def test_echoes_correlation_id(self):
        """X-Correlation-ID is echoed back as X-Request-ID."""
        app = _make_app()
        with TestClient(app) as client:
            resp = client.get("/health", headers={"X-Correlation-ID": "corr-456"})
            assert resp.headers.get("X-Request-ID") == "corr-456"

    def test_request_id_takes_priority_over_correlation_id(self):
        app = _make_app()
        with TestClient(app) as client:
            resp = client.get(
                "/health",
                headers={
                    "X-Request-ID": "req-id",
                    "X-Correlation-ID": "corr-id",
                },
            )
            assert resp.headers.get("X-Request-ID") == "req-id"

    def test_error_responses_carry_request_id(self):
        app = _make_app()
        with TestClient(app) as client:
            resp = client.get("/api/nowhere", headers={"X-Request-ID": "err-1"})
            assert resp.status_code == 404
            assert resp.headers.get("X-Request-ID") == "err-1"


class TestErrorEnvelope:
    """Framework errors use the same envelope as service errors."""

    def test_unknown_route(self):
        with TestClient(_make_app()) as client:
            resp = client.get("/api/nowhere")
            assert resp.status_code == 404
            assert resp.json()["success"] is False
            assert resp.json()["error_type"] == "not_found"

    def test_method_not_allowed(self):
        with TestClient(_make_app()) as client:
            resp = client.delete("/api/toilets")
            assert resp.status_code == 405
            assert resp.json()["error_type"] == "method_not_allowed"

    def test_malformed_body(self):
        with TestClient(_make_app()) as client:
            resp = client.post(
                "/api/rating",
                content="not json",
                headers={"Content-Type": "application/json"},
            )
            assert resp.status_code == 422
            assert resp.json()["error_type"] == "validation"

    def test_root(self):
        with TestClient(_make_app()) as client:
            data = client.get("/").json()
            assert data["service"] == "Restroom Tracker API"
            assert data["docs"] == "/docs"
