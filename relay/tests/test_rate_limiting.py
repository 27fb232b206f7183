import pytest
import logging
from typing import Optional
from fastapi.testclient import TestClient
from relay.app.main import app
from relay.app.core.config import settings
from relay.app.core.metrics import metrics
from relay.app.core.rate_limit import (
    InMemoryRateLimitStore,
    RateLimiter,
    RateLimitRecord,
    RateLimitStore,
    rate_limiter,
)
from relay.app.core.errors import RateLimitExceeded
from relay.app.core.sanitizer import get_caller_identity


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture(autouse=True)
def reset_state(monkeypatch):
    monkeypatch.setattr(settings, "hf_token", "test-token")
    rate_limiter._store.clear()
    metrics.reset()
    yield
    rate_limiter._store.clear()


class FailingStore(RateLimitStore):
    async def get(self, key: str) -> Optional[RateLimitRecord]:
        raise ConnectionError("store unavailable")

    async def increment(self, key: str) -> RateLimitRecord:
        raise ConnectionError("store unavailable")

    async def reset(self, key: str, window_start: float) -> RateLimitRecord:
        raise ConnectionError("store unavailable")


@pytest.mark.asyncio
async def test_limit_enforced_within_window():
    limiter = RateLimiter(InMemoryRateLimitStore(), window_ms=60000, max_requests=30)

    for i in range(30):
        await limiter.check("10.0.0.1", now=1000.0 + i)

    with pytest.raises(RateLimitExceeded):
        await limiter.check("10.0.0.1", now=1100.0)


@pytest.mark.asyncio
async def test_window_reset_admits_again():
    limiter = RateLimiter(InMemoryRateLimitStore(), window_ms=60000, max_requests=30)

    for _ in range(31):
        try:
            await limiter.check("10.0.0.1", now=1000.0)
        except RateLimitExceeded:
            pass

    # Exactly one window later is still the same window
    with pytest.raises(RateLimitExceeded):
        await limiter.check("10.0.0.1", now=61000.0)

    await limiter.check("10.0.0.1", now=61001.0)
    record = await limiter._store.get("10.0.0.1")
    assert record.window_start == 61001.0
    assert record.count == 1


@pytest.mark.asyncio
async def test_limit_is_per_identity():
    limiter = RateLimiter(InMemoryRateLimitStore(), window_ms=60000, max_requests=2)

    await limiter.check("a", now=0.0)
    await limiter.check("a", now=1.0)
    with pytest.raises(RateLimitExceeded):
        await limiter.check("a", now=2.0)

    await limiter.check("b", now=3.0)


@pytest.mark.asyncio
async def test_store_failure_fails_open(caplog):
    limiter = RateLimiter(FailingStore(), window_ms=60000, max_requests=1)

    with caplog.at_level(logging.WARNING):
        for _ in range(5):
            await limiter.check("10.0.0.1")

    assert "admitting request" in caplog.text


@pytest.mark.asyncio
async def test_limits_follow_settings(monkeypatch):
    limiter = RateLimiter(InMemoryRateLimitStore())
    monkeypatch.setattr(settings, "rate_limit_max", 1)

    await limiter.check("x", now=0.0)
    with pytest.raises(RateLimitExceeded):
        await limiter.check("x", now=1.0)


@pytest.mark.asyncio
async def test_expired_windows_are_pruned():
    store = InMemoryRateLimitStore()
    limiter = RateLimiter(store, window_ms=60000, max_requests=30)

    for i in range(200):
        await limiter.check(f"10.0.{i // 256}.{i % 256}", now=0.0)
    assert len(store) == 200

    await limiter.check("10.1.0.1", now=60001.0)
    assert len(store) == 1
    assert await store.get("10.1.0.1") is not None


@pytest.mark.asyncio
async def test_prune_keeps_open_windows():
    store = InMemoryRateLimitStore()
    limiter = RateLimiter(store, window_ms=60000, max_requests=2)

    await limiter.check("old", now=0.0)
    await limiter.check("recent", now=30000.0)
    await limiter.check("recent", now=30001.0)

    await limiter.check("new", now=60001.0)
    assert await store.get("old") is None

    # Still inside its window, so the count carries over
    with pytest.raises(RateLimitExceeded):
        await limiter.check("recent", now=60002.0)

def test_identity_from_forwarded_header():
    assert get_caller_identity("203.0.113.7, 10.0.0.1", "127.0.0.1") == "203.0.113.7"
    assert get_caller_identity("  198.51.100.2  ", None) == "198.51.100.2"


def test_identity_fallbacks():
    assert get_caller_identity(None, "127.0.0.1") == "127.0.0.1"
    assert get_caller_identity("", "127.0.0.1") == "127.0.0.1"
    assert get_caller_identity(None, None) == "anon"
    assert get_caller_identity(", 203.0.113.7", "127.0.0.1") == "127.0.0.1"
    assert get_caller_identity(" , ", None) == "anon"


def test_rate_limit_enforcement(client):
    """The 31st request from one caller inside a minute is rejected."""
    headers = {"X-Forwarded-For": "203.0.113.7"}

    # Empty messages are rejected after the limiter has counted them
    for _ in range(settings.rate_limit_max):
        response = client.post("/api/chat", json={"message": ""}, headers=headers)
        assert response.status_code == 400

    response = client.post("/api/chat", json={"message": ""}, headers=headers)
    assert response.status_code == 429
    assert response.json() == {"error": "Rate limit exceeded. Try again shortly."}
    assert metrics.get_metrics()["rate_limit_hits_total"] == 1


def test_rate_limit_per_caller(client, monkeypatch):
    monkeypatch.setattr(settings, "rate_limit_max", 2)

    for _ in range(2):
        response = client.post(
            "/api/chat", json={}, headers={"X-Forwarded-For": "203.0.113.7"}
        )
        assert response.status_code == 400

    response = client.post("/api/chat", json={}, headers={"X-Forwarded-For": "203.0.113.7"})
    assert response.status_code == 429

    response = client.post("/api/chat", json={}, headers={"X-Forwarded-For": "203.0.113.8"})
    assert response.status_code == 400


def test_health_endpoint_bypassed(client, monkeypatch):
    monkeypatch.setattr(settings, "rate_limit_max", 1)

    for _ in range(20):
        response = client.get("/health")
        assert response.status_code == 200
