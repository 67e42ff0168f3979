"""Tests for security middleware — headers, request IDs.

Learn: Rate limiting is skipped in tests (no Redis available),
so we only test security headers and request ID middleware here.
"""

import pytest


@pytest.mark.asyncio
async def test_security_headers_on_health(client):
    """Health endpoint returns security headers."""
    r = await client.get("/api/v1/health")
    assert r.status_code == 200
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert r.headers["X-Frame-Options"] == "DENY"
    assert r.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"
    assert "Cache-Control" not in r.headers


@pytest.mark.asyncio
async def test_auth_responses_not_cached(client):
    """Auth bodies carry tokens, so they must never be cached."""
    r = await client.post("/api/v1/auth/logout", json={"session": "x"})
    assert r.headers["Cache-Control"] == "no-store"

    r = await client.post("/api/v1/auth/login", json={})
    assert r.status_code == 400
    assert r.headers["Cache-Control"] == "no-store"


@pytest.mark.asyncio
async def test_request_id_generated(client):
    """Each request gets a unique X-Request-ID header."""
    r1 = await client.get("/api/v1/health")
    r2 = await client.get("/api/v1/health")
    assert "X-Request-ID" in r1.headers
    assert "X-Request-ID" in r2.headers
    assert r1.headers["X-Request-ID"] != r2.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_request_id_propagated(client):
    """Incoming X-Request-ID is propagated through the response."""
    custom_id = "test-trace-12345"
    r = await client.get(
        "/api/v1/health",
        headers={"X-Request-ID": custom_id},
    )
    assert r.headers["X-Request-ID"] == custom_id


@pytest.mark.asyncio
async def test_no_hsts_on_http(client):
    """HSTS header is NOT set on HTTP connections (only HTTPS)."""
    r = await client.get("/api/v1/health")
    assert "Strict-Transport-Security" not in r.headers


class _FakeRedis:
    def __init__(self):
        self.counts = {}

    async def incr(self, key):
        self.counts[key] = self.counts.get(key, 0) + 1
        return self.counts[key]

    async def expire(self, key, seconds):
        return True


@pytest.mark.asyncio
async def test_login_rate_limited(client, monkeypatch):
    """Login has its own, stricter bucket."""
    from tollgate.middleware import rate_limit

    fake = _FakeRedis()
    monkeypatch.setattr(rate_limit, "get_redis", lambda: fake)

    from tollgate.config import settings

    for _ in range(settings.rate_limit_auth_rpm):
        r = await client.post("/api/v1/auth/login", json={})
        assert r.status_code == 400
        assert "X-RateLimit-Remaining" in r.headers

    r = await client.post("/api/v1/auth/login", json={})
    assert r.status_code == 429
    assert r.headers["Retry-After"] == "60"

    # Other routes are counted separately
    r = await client.get("/api/v1/health")
    assert r.status_code == 200
