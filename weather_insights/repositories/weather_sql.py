from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import func, select, text
from sqlalchemy.orm import Session, sessionmaker

from weather_insights.db.tables import WeatherRecordRow
from weather_insights.models.weather import WeatherObservation

logger = logging.getLogger(__name__)


def city_key(city: str) -> str:
    return city.casefold()


class SqlWeatherHistoryRepository:
    def __init__(self, *, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def ping(self) -> None:
        with self._session_factory() as session:
            session.execute(text("SELECT 1"))

    def insert(
        self,
        *,
        city: str,
        temperature: float,
        condition: str,
        recorded_at: datetime,
    ) -> WeatherObservation:
        row = WeatherRecordRow(
            city=city,
            city_key=city_key(city),
            temperature=float(temperature),
            condition=condition,
            recorded_at=_to_utc(recorded_at),
        )
        with self._session_factory() as session:
            session.add(row)
            session.commit()
            observation = _to_observation(row)
        logger.info("Stored observation %s for %s", observation.id, observation.city)
        return observation

    def query_by_city(
        self,
        city: str,
        *,
        since: datetime | None = None,
        skip: int | None = None,
        take: int | None = None,
    ) -> list[WeatherObservation]:
        stmt = select(WeatherRecordRow).where(WeatherRecordRow.city_key == city_key(city))
        if since is not None:
            stmt = stmt.where(WeatherRecordRow.recorded_at >= _to_utc(since))
        stmt = stmt.order_by(WeatherRecordRow.recorded_at.desc(), WeatherRecordRow.id.desc())
        if skip:
            stmt = stmt.offset(int(skip))
        if take is not None:
            stmt = stmt.limit(int(take))

        with self._session_factory() as session:
            rows = session.scalars(stmt).all()
            return [_to_observation(r) for r in rows]

    def count_by_city(self, city: str) -> int:
        stmt = (
            select(func.count())
            .select_from(WeatherRecordRow)
            .where(WeatherRecordRow.city_key == city_key(city))
        )
        with self._session_factory() as session:
            return int(session.scalar(stmt) or 0)


def _to_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _to_observation(row: WeatherRecordRow) -> WeatherObservation:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    return WeatherObservation(
        id=row.id,
        city=row.city,
        temperature=float(row.temperature),
        condition=row.condition,
        recorded_at=_to_utc(row.recorded_at),
    )
