from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from weather_insights.api.deps import get_cache_store, get_weather_repository
from weather_insights.cache.store import CacheStore
from weather_insights.repositories.weather import WeatherHistoryRepository

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health", tags=["meta"])
def health(
    repo: Annotated[WeatherHistoryRepository, Depends(get_weather_repository)],
    cache: Annotated[CacheStore, Depends(get_cache_store)],
) -> dict[str, str]:
    try:
        repo.ping()
    except Exception as e:  # noqa: BLE001 - expose as 503 without leaking internals
        logger.error("Database health check failed: %s", e)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database unavailable",
        ) from e
    try:
        cache.ping()
    except Exception as e:  # noqa: BLE001
        logger.error("Cache health check failed: %s", e)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Cache unavailable",
        ) from e
    return {"status": "ok", "database": "ok", "cache": "ok"}
