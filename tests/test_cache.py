from __future__ import annotations

import json

from weather_insights.cache.redis_store import RedisCacheStore
from weather_insights.cache.store import InMemoryCacheStore
from tests.fakes import FakeRedis


class ManualClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_in_memory_entry_expires_after_ttl() -> None:
    clock = ManualClock()
    cache = InMemoryCacheStore(clock=clock)
    cache.set("weather:current:oslo", {"city": "Oslo"}, 600)

    clock.now += 599
    assert cache.get("weather:current:oslo") == {"city": "Oslo"}

    clock.now += 1
    assert cache.get("weather:current:oslo") is None


def test_in_memory_returns_copies() -> None:
    cache = InMemoryCacheStore()
    value = {"city": "Oslo"}
    cache.set("k", value, 60)
    value["city"] = "Bergen"

    cached = cache.get("k")
    cached["city"] = "Tromsø"

    assert cache.get("k") == {"city": "Oslo"}


def test_in_memory_delete() -> None:
    cache = InMemoryCacheStore()
    cache.set("k", {"a": 1})
    cache.delete("k")
    cache.delete("missing")

    assert cache.get("k") is None


def test_redis_store_writes_json_with_expiry() -> None:
    fake = FakeRedis()
    cache = RedisCacheStore(fake)

    cache.set("weather:current:london", {"city": "London", "temperature": 12.5}, 600)

    assert json.loads(fake.store["weather:current:london"]) == {"city": "London", "temperature": 12.5}
    assert fake.expiry["weather:current:london"] == 600
    assert cache.get("weather:current:london") == {"city": "London", "temperature": 12.5}


def test_redis_store_treats_garbage_as_miss() -> None:
    fake = FakeRedis()
    fake.store["bad"] = "{not json"
    fake.store["list"] = "[1, 2]"
    cache = RedisCacheStore(fake)

    assert cache.get("bad") is None
    assert cache.get("list") is None
    assert cache.get("missing") is None


def test_redis_store_delete_and_ping() -> None:
    fake = FakeRedis()
    cache = RedisCacheStore(fake)
    cache.set("k", {"a": 1})
    assert "k" not in fake.expiry

    cache.delete("k")
    cache.ping()

    assert cache.get("k") is None
