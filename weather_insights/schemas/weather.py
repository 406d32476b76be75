from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from weather_insights.models.weather import HistoryPage, WeatherObservation, WeatherSummary


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class WeatherRecord(CamelModel):
    id: int = Field(examples=[1])
    city: str = Field(examples=["São Paulo"])
    temperature: float = Field(examples=[27.3])
    condition: str = Field(examples=["clear sky"])
    recorded_at: datetime

    @classmethod
    def from_observation(cls, observation: WeatherObservation) -> WeatherRecord:
        return cls(
            id=observation.id,
            city=observation.city,
            temperature=observation.temperature,
            condition=observation.condition,
            recorded_at=observation.recorded_at,
        )


class WeatherSummaryResponse(CamelModel):
    city: str = Field(examples=["São Paulo"])
    average_temp: float = Field(examples=[27.3])
    max_temp: float = Field(examples=[31.2])
    min_temp: float = Field(examples=[22.1])

    @classmethod
    def from_summary(cls, summary: WeatherSummary) -> WeatherSummaryResponse:
        return cls.model_validate(summary.__dict__)


class PaginatedHistory(CamelModel):
    data: list[WeatherRecord]
    total: int = Field(ge=0)
    page: int = Field(ge=1)
    limit: int = Field(ge=1)
    total_pages: int = Field(ge=0)

    @classmethod
    def from_page(cls, page: HistoryPage) -> PaginatedHistory:
        return cls(
            data=[WeatherRecord.from_observation(r) for r in page.data],
            total=page.total,
            page=page.page,
            limit=page.limit,
            total_pages=page.total_pages,
        )


class ErrorResponse(CamelModel):
    status_code: int
    message: str | list[str]
    timestamp: datetime
    path: str
