from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query

from weather_insights.api.deps import WeatherReadUser, get_weather_service
from weather_insights.schemas.weather import (
    ErrorResponse,
    PaginatedHistory,
    WeatherRecord,
    WeatherSummaryResponse,
)
from weather_insights.services.cities import CITY_MAX_LENGTH, CITY_MIN_LENGTH, CITY_PATTERN
from weather_insights.services.weather import WeatherService

router = APIRouter(prefix="/weather")

CityParam = Annotated[
    str,
    Path(
        min_length=CITY_MIN_LENGTH,
        max_length=CITY_MAX_LENGTH,
        pattern=CITY_PATTERN,
        description="City name (letters, spaces and hyphens only)",
        examples=["London"],
    ),
]

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid city name format"},
    404: {"model": ErrorResponse, "description": "No weather data for the city"},
}


@router.get("/summary/{city}", response_model=WeatherSummaryResponse, responses=ERROR_RESPONSES)
def weekly_summary(
    _: WeatherReadUser,
    city: CityParam,
    service: Annotated[WeatherService, Depends(get_weather_service)],
) -> WeatherSummaryResponse:
    return WeatherSummaryResponse.from_summary(service.get_weekly_summary(city))


@router.get("/history/{city}", response_model=PaginatedHistory, responses=ERROR_RESPONSES)
def weather_history(
    _: WeatherReadUser,
    city: CityParam,
    service: Annotated[WeatherService, Depends(get_weather_service)],
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> PaginatedHistory:
    return PaginatedHistory.from_page(service.get_history(city, page=page, limit=limit))


@router.get("/{city}", response_model=WeatherRecord, responses=ERROR_RESPONSES)
def current_weather(
    _: WeatherReadUser,
    city: CityParam,
    service: Annotated[WeatherService, Depends(get_weather_service)],
) -> WeatherRecord:
    return WeatherRecord.from_observation(service.get_current_weather(city))
