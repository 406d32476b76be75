from __future__ import annotations

import numbers
from typing import Any

import httpx

from weather_insights.core.config import OPENWEATHER_DEFAULT_BASE_URL
from weather_insights.core.errors import ProviderError
from weather_insights.models.weather import ProviderObservation


class OpenWeatherClient:
    def __init__(
        self,
        *,
        timeout_seconds: float,
        base_url: str = OPENWEATHER_DEFAULT_BASE_URL,
        units: str = "metric",
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._units = units
        self._client = httpx.Client(
            timeout=timeout_seconds,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def fetch_current(self, city: str, api_key: str) -> ProviderObservation:
        try:
            resp = self._client.get(
                f"{self._base_url}/weather",
                params={"q": city, "appid": api_key, "units": self._units},
            )
            resp.raise_for_status()
            payload = resp.json()
        except httpx.HTTPStatusError as e:
            raise ProviderError(f"OpenWeatherMap returned {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise ProviderError(f"OpenWeatherMap request failed: {e}") from e
        except ValueError as e:
            raise ProviderError("OpenWeatherMap returned a non-JSON body") from e

        return parse_current_weather(payload)


def parse_current_weather(payload: Any) -> ProviderObservation:
    """Turn a ``/weather`` response body into a :class:`ProviderObservation`.

    A body without a ``weather`` array is a provider failure. An empty array,
    or an entry without ``description``, leaves ``condition`` unset. The
    temperature is kept only when it is a real number; deciding what a missing
    temperature means is up to the caller.
    """
    if not isinstance(payload, dict):
        raise ProviderError("Unexpected OpenWeatherMap response shape")

    weather = payload.get("weather")
    if not isinstance(weather, list):
        raise ProviderError("OpenWeatherMap response contained no weather array")

    condition: str | None = None
    if weather and isinstance(weather[0], dict):
        condition = _str_or_none(weather[0].get("description"))

    main = payload.get("main")
    temperature: float | None = None
    if isinstance(main, dict):
        temperature = _number_or_none(main.get("temp"))

    return ProviderObservation(
        display_name=_str_or_none(payload.get("name")) or None,
        temperature=temperature,
        condition=condition,
    )


def _number_or_none(v: Any) -> float | None:
    if isinstance(v, bool) or not isinstance(v, numbers.Real):
        return None
    return float(v)


def _str_or_none(v: Any) -> str | None:
    if v is None:
        return None
    if isinstance(v, str):
        return v
    return str(v)
