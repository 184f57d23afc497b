"""Tests for the per-IP sliding window rate limiter."""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from app.middleware.rate_limit import RateLimitMiddleware


def _app(max_requests: int) -> FastAPI:
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware, max_requests=max_requests, window_seconds=60)

    @app.get("/api/ping")
    async def ping():
        return {"ok": True}

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    return app


class TestRateLimitMiddleware:

    @pytest.mark.asyncio
    async def test_requests_over_the_limit_get_429(self):
        transport = ASGITransport(app=_app(max_requests=2))
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            first = await client.get("/api/ping")
            second = await client.get("/api/ping")
            third = await client.get("/api/ping")

        assert first.status_code == 200
        assert second.status_code == 200
        assert third.status_code == 429
        assert third.json()["error"] == "rate_limit_exceeded"
        assert int(third.headers["retry-after"]) >= 1

    @pytest.mark.asyncio
    async def test_health_is_never_limited(self):
        transport = ASGITransport(app=_app(max_requests=1))
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            responses = [await client.get("/health") for _ in range(5)]

        assert all(r.status_code == 200 for r in responses)
