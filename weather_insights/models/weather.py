from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class WeatherObservation:
    id: int
    city: str
    temperature: float
    condition: str
    recorded_at: datetime


@dataclass(frozen=True)
class ProviderObservation:
    display_name: str | None
    temperature: float | None
    condition: str | None


@dataclass(frozen=True)
class WeatherSummary:
    city: str
    average_temp: float
    max_temp: float
    min_temp: float


@dataclass(frozen=True)
class HistoryPage:
    data: list[WeatherObservation]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        if self.limit <= 0:
            return 0
        return -(-self.total // self.limit)
