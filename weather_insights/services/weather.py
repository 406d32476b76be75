from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable

from weather_insights.cache.store import CacheStore
from weather_insights.clients.openweather import OpenWeatherClient
from weather_insights.core.errors import (
    CityNotFoundError,
    ConfigurationError,
    HistoryNotFoundError,
    InvalidPaginationError,
    ProviderError,
    WeatherDataError,
)
from weather_insights.models.weather import HistoryPage, WeatherObservation, WeatherSummary
from weather_insights.repositories.weather import WeatherHistoryRepository
from weather_insights.services.cities import build_cache_key, normalize_city

logger = logging.getLogger(__name__)

CURRENT_WEATHER_TTL_SECONDS = 600
SUMMARY_WINDOW_DAYS = 7
UNKNOWN_CONDITION = "unknown"
TWO_PLACES = Decimal("0.01")


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def round_half_up(value: float) -> float:
    return float(Decimal(str(value)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP))


def observation_to_cache(observation: WeatherObservation) -> dict[str, Any]:
    return {
        "id": observation.id,
        "city": observation.city,
        "temperature": observation.temperature,
        "condition": observation.condition,
        "recordedAt": observation.recorded_at.astimezone(timezone.utc).isoformat(),
    }


def observation_from_cache(value: dict[str, Any]) -> WeatherObservation:
    recorded_at = datetime.fromisoformat(str(value["recordedAt"]).replace("Z", "+00:00"))
    if recorded_at.tzinfo is None:
        recorded_at = recorded_at.replace(tzinfo=timezone.utc)
    return WeatherObservation(
        id=int(value["id"]),
        city=str(value["city"]),
        temperature=float(value["temperature"]),
        condition=str(value["condition"]),
        recorded_at=recorded_at,
    )


class WeatherService:
    """Cache-aside lookups against the provider plus history aggregation."""

    def __init__(
        self,
        *,
        repo: WeatherHistoryRepository,
        cache: CacheStore,
        provider: OpenWeatherClient,
        api_key: str | None,
        cache_ttl_seconds: int = CURRENT_WEATHER_TTL_SECONDS,
        summary_days: int = SUMMARY_WINDOW_DAYS,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._repo = repo
        self._cache = cache
        self._provider = provider
        self._api_key = api_key
        self._cache_ttl_seconds = cache_ttl_seconds
        self._summary_days = summary_days
        self._clock = clock

    def get_current_weather(self, city: str) -> WeatherObservation:
        normalized = normalize_city(city)
        key = build_cache_key(normalized)

        cached = self._read_cache(key)
        if cached is not None:
            logger.debug("Cache hit for %s", key)
            return cached
        logger.debug("Cache miss for %s", key)

        if not self._api_key:
            raise ConfigurationError("OpenWeather API key is not configured")

        try:
            fetched = self._provider.fetch_current(normalized, self._api_key)
        except ProviderError as e:
            logger.warning("Failed to fetch weather data for %s: %s", normalized, e)
            raise CityNotFoundError(normalized) from e

        if fetched.temperature is None:
            raise WeatherDataError("Invalid temperature data received from OpenWeatherMap")

        observation = self._repo.insert(
            city=fetched.display_name or normalized,
            temperature=fetched.temperature,
            condition=fetched.condition or UNKNOWN_CONDITION,
            recorded_at=self._clock(),
        )
        self._cache.set(key, observation_to_cache(observation), self._cache_ttl_seconds)
        return observation

    def get_weekly_summary(self, city: str) -> WeatherSummary:
        """Aggregate the observations of the trailing window.

        The mean is rounded half up to two decimals and then clamped into
        ``[min_temp, max_temp]``. When every reading has more than two
        decimals the clamp wins, so a lone 20.125 averages to 20.125.
        """
        normalized = normalize_city(city)
        since = self._clock() - timedelta(days=self._summary_days)

        records = self._repo.query_by_city(normalized, since=since)
        if not records:
            raise HistoryNotFoundError(normalized, days=self._summary_days)

        temperatures = [r.temperature for r in records]
        min_temp = min(temperatures)
        max_temp = max(temperatures)
        average = round_half_up(sum(temperatures) / len(temperatures))
        average = min(max(average, min_temp), max_temp)

        return WeatherSummary(
            city=records[0].city or normalized,
            average_temp=average,
            max_temp=max_temp,
            min_temp=min_temp,
        )

    def get_history(self, city: str, page: int = 1, limit: int = 10) -> HistoryPage:
        """Return one page of stored observations, most recent first.

        The page and the total count are read concurrently; a failure in either
        read fails the call. A city with no stored observations raises
        :class:`HistoryNotFoundError`. A page past the last one comes back
        empty, with the real total so callers can tell how many pages exist.
        """
        if page < 1:
            raise InvalidPaginationError("page must be >= 1")
        if limit < 1:
            raise InvalidPaginationError("limit must be >= 1")

        normalized = normalize_city(city)
        skip = (page - 1) * limit

        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="weather-history") as pool:
            records_future = pool.submit(
                self._repo.query_by_city, normalized, skip=skip, take=limit
            )
            total_future = pool.submit(self._repo.count_by_city, normalized)
            records = records_future.result()
            total = total_future.result()

        if not records and total == 0:
            raise HistoryNotFoundError(normalized)

        return HistoryPage(data=list(records), total=total, page=page, limit=limit)

    def _read_cache(self, key: str) -> WeatherObservation | None:
        value = self._cache.get(key)
        if value is None:
            return None
        try:
            return observation_from_cache(value)
        except (KeyError, TypeError, ValueError):
            logger.warning("Discarding undecodable cache entry %s", key)
            self._cache.delete(key)
            return None
