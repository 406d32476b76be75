from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Float, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from weather_insights.db.sql import Base


class WeatherRecordRow(Base):
    __tablename__ = "weather_records"
    __table_args__ = (Index("ix_weather_records_city_key_recorded_at", "city_key", "recorded_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    city: Mapped[str] = mapped_column(String(128))
    # casefold(city); lets lookups ignore case on every backend.
    city_key: Mapped[str] = mapped_column(String(128))
    temperature: Mapped[float] = mapped_column(Float)
    condition: Mapped[str] = mapped_column(String(255))
    recorded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
