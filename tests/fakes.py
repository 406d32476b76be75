from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from weather_insights.core.errors import ProviderError
from weather_insights.models.weather import ProviderObservation, WeatherObservation


class FakeWeatherHistoryRepository:
    def __init__(self) -> None:
        self._records: list[WeatherObservation] = []
        self._ids = itertools.count(1)
        self.inserts: list[WeatherObservation] = []

    def ping(self) -> None:
        return None

    def add(self, *, city: str, temperature: float, recorded_at: datetime, condition: str = "clear sky") -> WeatherObservation:
        observation = WeatherObservation(
            id=next(self._ids),
            city=city,
            temperature=temperature,
            condition=condition,
            recorded_at=recorded_at,
        )
        self._records.append(observation)
        return observation

    def insert(
        self,
        *,
        city: str,
        temperature: float,
        condition: str,
        recorded_at: datetime,
    ) -> WeatherObservation:
        observation = self.add(
            city=city, temperature=temperature, recorded_at=recorded_at, condition=condition
        )
        self.inserts.append(observation)
        return observation

    def query_by_city(
        self,
        city: str,
        *,
        since: datetime | None = None,
        skip: int | None = None,
        take: int | None = None,
    ) -> list[WeatherObservation]:
        rows = [
            r
            for r in self._records
            if r.city.casefold() == city.casefold()
            and (since is None or r.recorded_at >= since)
        ]
        rows.sort(key=lambda r: (r.recorded_at, r.id), reverse=True)
        start = skip or 0
        end = None if take is None else start + take
        return rows[start:end]

    def count_by_city(self, city: str) -> int:
        return len([r for r in self._records if r.city.casefold() == city.casefold()])


class BrokenWeatherHistoryRepository(FakeWeatherHistoryRepository):
    def count_by_city(self, city: str) -> int:
        raise RuntimeError("database is down")


@dataclass
class FakeProviderClient:
    """Answers like OpenWeatherMap for the cities in ``known``; fails otherwise."""

    known: dict[str, ProviderObservation] = field(default_factory=dict)
    calls: list[tuple[str, str]] = field(default_factory=list)

    def close(self) -> None:
        return None

    def fetch_current(self, city: str, api_key: str) -> ProviderObservation:
        self.calls.append((city, api_key))
        observation = self.known.get(city.casefold())
        if observation is None:
            raise ProviderError("OpenWeatherMap returned 404")
        return observation


def provider_with(*observations: ProviderObservation, aliases: dict[str, str] | None = None) -> FakeProviderClient:
    known: dict[str, ProviderObservation] = {}
    for observation in observations:
        if observation.display_name:
            known[observation.display_name.casefold()] = observation
    for alias, name in (aliases or {}).items():
        known[alias.casefold()] = known[name.casefold()]
    return FakeProviderClient(known=known)


class FakeRedis:
    """Dict-backed stand-in for the ``redis.Redis`` calls the cache and rate limiter make."""

    def __init__(self) -> None:
        self.store: dict[str, str] = {}
        self.expiry: dict[str, int] = {}
        self.zsets: dict[str, dict[str, float]] = {}

    def ping(self) -> bool:
        return True

    def get(self, key: str) -> str | None:
        return self.store.get(key)

    def set(self, key: str, value: str, ex: int | None = None) -> bool:
        self.store[key] = value
        if ex is not None:
            self.expiry[key] = ex
        else:
            self.expiry.pop(key, None)
        return True

    def delete(self, key: str) -> int:
        self.expiry.pop(key, None)
        return 1 if self.store.pop(key, None) is not None else 0

    def close(self) -> None:
        return None

    def pipeline(self) -> FakePipeline:
        return FakePipeline(self)

    def zremrangebyscore(self, key: str, min_score: float, max_score: float) -> int:
        zset = self.zsets.get(key, {})
        stale = [member for member, score in zset.items() if min_score <= score <= max_score]
        for member in stale:
            del zset[member]
        return len(stale)

    def zcard(self, key: str) -> int:
        return len(self.zsets.get(key, {}))

    def zrange(self, key: str, start: int, end: int, withscores: bool = False) -> list:
        items = sorted(self.zsets.get(key, {}).items(), key=lambda item: item[1])
        items = items[start : None if end == -1 else end + 1]
        return items if withscores else [member for member, _ in items]

    def zadd(self, key: str, mapping: dict[str, float]) -> int:
        self.zsets.setdefault(key, {}).update(mapping)
        return len(mapping)

    def zrem(self, key: str, *members: str) -> int:
        zset = self.zsets.get(key, {})
        return sum(1 for member in members if zset.pop(member, None) is not None)

    def expire(self, key: str, seconds: int) -> bool:
        self.expiry[key] = seconds
        return True


class FakePipeline:
    """Queues ``FakeRedis`` calls and runs them in order on ``execute``."""

    def __init__(self, redis: FakeRedis) -> None:
        self._redis = redis
        self._calls: list[tuple[Any, tuple, dict]] = []

    def __getattr__(self, name: str):
        method = getattr(self._redis, name)

        def queue(*args, **kwargs) -> FakePipeline:
            self._calls.append((method, args, kwargs))
            return self

        return queue

    def execute(self) -> list:
        results = [method(*args, **kwargs) for method, args, kwargs in self._calls]
        self._calls.clear()
        return results
