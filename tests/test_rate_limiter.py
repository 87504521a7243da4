import pytest
import redis

from ukuqala import config, rate_limiter
from ukuqala.rate_limiter import check_rate_limit


@pytest.fixture(autouse=True)
def fresh_cache(monkeypatch):
    monkeypatch.setattr(rate_limiter, "memory_cache", {})


class FakeRedis:
    def __init__(self, count=None, ttl=-2, fail=False):
        self.store = {}
        self.count = count
        self._ttl = ttl
        self.fail = fail

    def get(self, key):
        if self.fail:
            raise redis.ConnectionError("down")
        return self.count

    def ttl(self, key):
        return self._ttl

    def set(self, key, value, ex=None):
        if self.fail:
            raise redis.ConnectionError("down")
        self.store[key] = (value, ex)


def test_allows_up_to_limit():
    results = [check_rate_limit("signin:1.2.3.4", 3, 60) for _ in range(4)]

    assert [allowed for allowed, _, _ in results] == [True, True, True, False]
    assert results[-1][1] == 3
    assert 0 < results[-1][2] <= 60


def test_keys_are_independent():
    check_rate_limit("signin:a", 1, 60)

    assert check_rate_limit("signin:a", 1, 60)[0] is False
    assert check_rate_limit("signin:b", 1, 60)[0] is True


def test_window_resets(monkeypatch):
    now = [1_000_000]
    monkeypatch.setattr(rate_limiter.time, "time", lambda: now[0])

    check_rate_limit("signin:c", 1, 60)
    assert check_rate_limit("signin:c", 1, 60)[0] is False

    now[0] += 61
    assert check_rate_limit("signin:c", 1, 60)[0] is True


def test_counts_seeded_from_redis():
    client = FakeRedis(count="5", ttl=30)

    allowed, count, ttl = check_rate_limit("signin:d", 5, 60, client)

    assert allowed is False
    assert count == 5
    assert ttl == 30


def test_counts_synced_to_redis_periodically(monkeypatch):
    now = [2_000_000]
    monkeypatch.setattr(rate_limiter.time, "time", lambda: now[0])
    client = FakeRedis()

    check_rate_limit("signin:e", 5, 60, client)
    assert client.store == {}

    now[0] += rate_limiter.MEMORY_CACHE_SYNC_INTERVAL
    check_rate_limit("signin:e", 5, 60, client)
    assert client.store["signin:e"] == (2, 60)


def test_redis_failures_fall_back_to_memory():
    client = FakeRedis(fail=True)

    assert check_rate_limit("signin:f", 2, 60, client)[0] is True
    assert check_rate_limit("signin:f", 2, 60, client)[0] is True
    assert check_rate_limit("signin:f", 2, 60, client)[0] is False


def test_signin_endpoint_returns_429(client, monkeypatch):
    monkeypatch.setattr(config, "RATE_LIMIT_ENABLED", True)
    payload = {"email": "nobody@example.com", "password": "wrong"}

    statuses = [client.post("/auth/signin", json=payload).status_code for _ in range(21)]

    assert statuses[:20] == [401] * 20
    assert statuses[20] == 429
    response = client.post("/auth/signin", json=payload)
    assert response.json()["message"].startswith("Too many attempts")
    assert int(response.headers["Retry-After"]) > 0


def test_forwarded_for_is_used_as_client_key(client, monkeypatch):
    monkeypatch.setattr(config, "RATE_LIMIT_ENABLED", True)
    payload = {"email": "nobody@example.com", "password": "wrong"}

    for _ in range(20):
        client.post("/auth/signin", json=payload, headers={"X-Forwarded-For": "10.0.0.1, 172.16.0.1"})

    blocked = client.post("/auth/signin", json=payload, headers={"X-Forwarded-For": "10.0.0.1"})
    other = client.post("/auth/signin", json=payload, headers={"X-Forwarded-For": "10.0.0.2"})
    assert blocked.status_code == 429
    assert other.status_code == 401
