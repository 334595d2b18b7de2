import redis

from binda import cache as cache_module
from binda.cache import Cache, build_appointment_list_key

from .conftest import FakeRedis


def _failing_connect(monkeypatch):
    attempts = []

    def connect():
        attempts.append(1)
        raise redis.ConnectionError("Connection refused")

    monkeypatch.setattr(cache_module, "get_redis_client", connect)
    return attempts


def test_failed_connection_is_not_retried_during_cooldown(monkeypatch):
    attempts = _failing_connect(monkeypatch)
    listing_cache = Cache(retry_cooldown=30)

    assert listing_cache.get("appointments:t1:all:all") is None
    assert listing_cache.set("appointments:t1:all:all", []) is False
    assert listing_cache.get("appointments:t1:all:all") is None

    assert len(attempts) == 1


def test_connection_is_retried_after_cooldown(monkeypatch):
    attempts = _failing_connect(monkeypatch)
    listing_cache = Cache(retry_cooldown=0)

    listing_cache.get("appointments:t1:all:all")
    listing_cache.get("appointments:t1:all:all")

    assert len(attempts) == 2


def test_invalidation_ignores_cooldown(monkeypatch):
    attempts = _failing_connect(monkeypatch)
    listing_cache = Cache(retry_cooldown=30)

    listing_cache.get("appointments:t1:all:all")
    assert listing_cache.delete_pattern("appointments:t1:*") == 0

    assert len(attempts) == 2


class DroppedConnection(FakeRedis):
    def get(self, key):
        raise redis.ConnectionError("Connection reset by peer")


def test_dropped_connection_starts_cooldown(monkeypatch):
    attempts = _failing_connect(monkeypatch)
    listing_cache = Cache(retry_cooldown=30)
    listing_cache.redis_client = DroppedConnection()

    assert listing_cache.get("appointments:t1:all:all") is None
    assert listing_cache.redis_client is None
    assert listing_cache.get("appointments:t1:all:all") is None

    assert attempts == []


def test_round_trip_and_tenant_invalidation():
    listing_cache = Cache()
    listing_cache.redis_client = FakeRedis()
    key = build_appointment_list_key("t1", "confirmed", "2024-06-10")

    listing_cache.set(key, [{"id": "a1"}])
    listing_cache.set(build_appointment_list_key("t2"), [])

    assert key == "appointments:t1:confirmed:2024-06-10"
    assert listing_cache.get(key) == [{"id": "a1"}]
    assert listing_cache.delete_pattern("appointments:t1:*") == 1
    assert listing_cache.get(key) is None
    assert listing_cache.get("appointments:t2:all:all") == []
