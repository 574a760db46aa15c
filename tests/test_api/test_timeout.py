"""Tests for request timeout middleware."""

import asyncio

from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.api.middleware.timeout import TimeoutMiddleware


def _create_test_app(timeout: float = 1.0) -> FastAPI:
    """Create a minimal FastAPI app with timeout middleware for testing."""
    app = FastAPI()
    app.add_middleware(TimeoutMiddleware, timeout_seconds=timeout)

    @app.get("/api/toilets")
    async def fast():
        return {"success": True}

    @app.get("/api/toilets/status")
    async def slow():
        await asyncio.sleep(10)
        return {"success": True}

    @app.get("/health")
    async def health():
        await asyncio.sleep(0.3)
        return {"status": "healthy"}

    return app


class TestTimeoutMiddleware:
    """Tests for TimeoutMiddleware behavior."""

    def test_fast_request_succeeds(self):
        app = _create_test_app(timeout=5.0)
        client = TestClient(app)
        response = client.get("/api/toilets")
        assert response.status_code == 200
        assert response.json() == {"success": True}

    def test_slow_request_returns_504_envelope(self):
        app = _create_test_app(timeout=0.1)
        client = TestClient(app)
        response = client.get("/api/toilets/status")
        assert response.status_code == 504

        data = response.json()
        assert data["success"] is False
        assert data["error_type"] == "timeout"
        assert data["message"] == "GET /api/toilets/status timed out after 0.1s"

    def test_health_excluded_from_timeout(self):
        """Health takes longer than the limit but is never cut off."""
        app = _create_test_app(timeout=0.1)
        client = TestClient(app)
        response = client.get("/health")
        assert response.status_code == 200

    def test_custom_exempt_paths(self):
        app = FastAPI()
        app.add_middleware(TimeoutMiddleware, timeout_seconds=0.1, exempt_paths=("/api/toilets",))

        @app.get("/api/toilets/status")
        async def slow():
            await asyncio.sleep(0.3)
            return {"success": True}

        response = TestClient(app).get("/api/toilets/status")
        assert response.status_code == 200
