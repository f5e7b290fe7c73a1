"""
Tattooed World Backend — Platform Tests
=========================================

What:  Cross-cutting behaviour: health check, request IDs, error envelope,
       rate limiting and the operator CLI parser.

What we test:
    ✅ /health reports database and geocoder state
    ✅ X-Request-ID is echoed when well-formed and replaced otherwise
    ✅ Error bodies carry error/message/details/request_id
    ✅ Sliding-window limiter refuses the N+1th request and recovers
    ✅ CLI arguments are validated before any command runs
"""

import uuid
from unittest.mock import patch

import pytest

from tattooed_world.cli import build_parser, cache_clear, geocode_studios
from tattooed_world.config import settings
from tattooed_world.exceptions import RateLimitExceededError
from tattooed_world.middleware.rate_limit import RateLimitMiddleware


class TestHealth:

    @pytest.mark.asyncio
    async def test_healthy(self, test_client):
        response = await test_client.get("/health")

        body = response.json()
        assert response.status_code == 200
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert body["geocoder"] == "configured"
        assert body["batch_running"] is False


class TestRequestId:

    @pytest.mark.asyncio
    async def test_client_id_echoed(self, test_client):
        response = await test_client.get("/health", headers={"X-Request-ID": "web-42.a"})

        assert response.headers["X-Request-ID"] == "web-42.a"

    @pytest.mark.asyncio
    async def test_malformed_id_replaced(self, test_client):
        response = await test_client.get("/health", headers={"X-Request-ID": "bad id\twith spaces"})

        rid = response.headers["X-Request-ID"]
        assert rid != "bad id\twith spaces"
        assert len(rid) == 8

    @pytest.mark.asyncio
    async def test_error_body_shape(self, test_client):
        response = await test_client.get(
            f"/api/artists/{uuid.uuid4()}", headers={"X-Request-ID": "trace-1"}
        )

        body = response.json()
        assert response.status_code == 404
        assert set(body) == {"error", "message", "details", "request_id"}
        assert body["error"] == "not_found"
        assert body["request_id"] == "trace-1"


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestRateLimit:

    def setup_method(self):
        self.clock = FakeClock()
        self.limiter = RateLimitMiddleware(app=None, clock=self.clock)

    def test_refuses_over_quota_then_recovers(self):
        with patch.object(settings, "rate_limit_requests", 3), patch.object(
            settings, "rate_limit_window", 60
        ):
            for _ in range(3):
                self.limiter.check("10.0.0.1")

            with pytest.raises(RateLimitExceededError) as exc_info:
                self.limiter.check("10.0.0.1")
            assert exc_info.value.retry_after == 61

            # Other clients have their own window
            self.limiter.check("10.0.0.2")

            self.clock.now += 60
            self.limiter.check("10.0.0.1")


class TestCliParser:

    def setup_method(self):
        self.parser = build_parser()

    def test_geocode_studios_arguments(self):
        args = self.parser.parse_args(["geocode-studios", "--limit", "5", "--delay", "0.5"])

        assert args.limit == 5
        assert args.delay == 0.5
        assert args.handler is geocode_studios

    def test_defaults(self):
        args = self.parser.parse_args(["geocode-studios"])

        assert args.limit is None
        assert args.delay is None

    def test_cache_clear(self):
        args = self.parser.parse_args(["cache-clear"])

        assert args.handler is cache_clear

    def test_rejects_zero_limit(self):
        with pytest.raises(SystemExit):
            self.parser.parse_args(["geocode-studios", "--limit", "0"])

    def test_command_required(self):
        with pytest.raises(SystemExit):
            self.parser.parse_args([])
