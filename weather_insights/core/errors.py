"""Failures the weather service reports to its callers.

Every error carries the HTTP status the API layer answers with, so the
exception handlers in the app factory never need to inspect the type.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any


def error_body(path: str, status_code: int, message: Any) -> dict[str, Any]:
    return {
        "statusCode": status_code,
        "message": message,
        "timestamp": datetime.now(tz=timezone.utc).isoformat(),
        "path": path,
    }


class WeatherInsightsError(Exception):
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(WeatherInsightsError):
    """A required setting (the provider API key) is missing."""

    status_code = 500


class CityNotFoundError(WeatherInsightsError):
    """The provider could not produce an observation for the city.

    Unknown cities and provider outages are reported the same way.
    """

    status_code = 404

    def __init__(self, city: str) -> None:
        super().__init__(f"Weather data not found for city {city}")
        self.city = city


class WeatherDataError(WeatherInsightsError):
    """The provider answered but the payload has no usable temperature."""

    status_code = 500


class InvalidPaginationError(WeatherInsightsError):
    status_code = 400


class HistoryNotFoundError(WeatherInsightsError):
    status_code = 404

    def __init__(self, city: str, *, days: int | None = None) -> None:
        message = f"No weather history available for {city}"
        if days is not None:
            message = f"{message} in the last {days} days"
        super().__init__(message)
        self.city = city
        self.days = days


class RateLimitExceededError(WeatherInsightsError):
    status_code = 429

    def __init__(self, limit: int, window_seconds: int) -> None:
        super().__init__(
            f"Rate limit exceeded: at most {limit} requests per {window_seconds} seconds"
        )
        self.limit = limit
        self.window_seconds = window_seconds


class ProviderError(Exception):
    """Raised by the provider client for any transport, status or shape failure."""
