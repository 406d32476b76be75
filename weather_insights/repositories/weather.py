from __future__ import annotations

from datetime import datetime
from typing import Protocol

from weather_insights.models.weather import WeatherObservation


class WeatherHistoryRepository(Protocol):
    def ping(self) -> None: ...

    def insert(
        self,
        *,
        city: str,
        temperature: float,
        condition: str,
        recorded_at: datetime,
    ) -> WeatherObservation: ...

    def query_by_city(
        self,
        city: str,
        *,
        since: datetime | None = None,
        skip: int | None = None,
        take: int | None = None,
    ) -> list[WeatherObservation]: ...

    def count_by_city(self, city: str) -> int: ...
