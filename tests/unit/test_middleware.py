"""Unit tests for the request protection middleware."""

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from typespeed.application.middleware import (
    RateLimiter,
    RateLimitMiddleware,
    RequestSizeLimitMiddleware,
    SecurityHeadersMiddleware,
)


@pytest.fixture
def limiter():
    return RateLimiter(requests_per_minute=5, scan_requests_per_minute=2)


@pytest.fixture
def app(limiter):
    """Create a test FastAPI app with low limits."""
    test_app = FastAPI()
    test_app.add_middleware(RequestSizeLimitMiddleware, max_size=100, max_upload_size=1000)
    test_app.add_middleware(RateLimitMiddleware, limiter=limiter)
    test_app.add_middleware(SecurityHeadersMiddleware)

    @test_app.get("/api/test")
    async def api_endpoint():
        return {"status": "ok"}

    @test_app.post("/api/scan")
    async def scan_endpoint():
        return {"status": "scanned"}

    @test_app.post("/api/files")
    async def upload_endpoint(request: Request):
        return {"size": len(await request.body())}

    @test_app.get("/")
    async def index():
        return {"status": "ok"}

    return test_app


@pytest.fixture
def client(app):
    return TestClient(app)


class TestRateLimiter:
    """Tests for RateLimiter."""

    def test_requests_under_the_limit_are_allowed(self, limiter):
        assert all(limiter.hit("1.2.3.4", "api", 3, now=100.0) for _ in range(3))

    def test_requests_over_the_limit_are_rejected(self, limiter):
        for _ in range(3):
            limiter.hit("1.2.3.4", "api", 3, now=100.0)

        assert not limiter.hit("1.2.3.4", "api", 3, now=101.0)

    def test_window_slides(self, limiter):
        for _ in range(3):
            limiter.hit("1.2.3.4", "api", 3, now=100.0)

        assert limiter.hit("1.2.3.4", "api", 3, now=161.0)

    def test_clients_and_scopes_are_isolated(self, limiter):
        for _ in range(3):
            limiter.hit("1.2.3.4", "api", 3, now=100.0)

        assert limiter.hit("5.6.7.8", "api", 3, now=100.0)
        assert limiter.hit("1.2.3.4", "scan", 3, now=100.0)

    def test_reset(self, limiter):
        for _ in range(3):
            limiter.hit("1.2.3.4", "api", 3, now=100.0)

        limiter.reset()

        assert limiter.hit("1.2.3.4", "api", 3, now=100.0)


class TestRateLimitMiddleware:
    """Tests for RateLimitMiddleware."""

    def test_general_limit_is_enforced(self, client):
        for _ in range(5):
            assert client.get("/api/test").status_code == 200

        response = client.get("/api/test")

        assert response.status_code == 429
        assert "per minute" in response.json()["detail"]
        assert response.headers["Retry-After"] == "60"

    def test_scans_have_a_stricter_limit(self, client):
        assert client.post("/api/scan").status_code == 200
        assert client.post("/api/scan").status_code == 200

        response = client.post("/api/scan")

        assert response.status_code == 429
        assert client.get("/api/test").status_code == 200

    def test_non_api_paths_are_not_limited(self, client):
        for _ in range(10):
            assert client.get("/").status_code == 200


class TestRequestSizeLimitMiddleware:
    """Tests for RequestSizeLimitMiddleware."""

    def test_small_requests_pass(self, client):
        assert client.post("/api/scan", content=b"x" * 50).status_code == 200

    def test_large_requests_are_rejected(self, client):
        response = client.post("/api/scan", content=b"x" * 500)

        assert response.status_code == 413
        assert response.json() == {"detail": "Request payload too large", "max_size": 100}

    def test_uploads_use_their_own_limit(self, client):
        response = client.post("/api/files", content=b"x" * 500)

        assert response.status_code == 200
        assert response.json() == {"size": 500}
        assert client.post("/api/files", content=b"x" * 1500).status_code == 413


class TestSecurityHeadersMiddleware:
    """Tests for SecurityHeadersMiddleware."""

    def test_headers_are_added(self, client):
        response = client.get("/api/test")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "SAMEORIGIN"
        assert "default-src 'self'" in response.headers["Content-Security-Policy"]

    def test_headers_are_added_to_rejections(self, client):
        response = client.post("/api/scan", content=b"x" * 500)

        assert response.status_code == 413
        assert response.headers["X-Content-Type-Options"] == "nosniff"
