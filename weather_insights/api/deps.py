from __future__ import annotations

from typing import Annotated

import jwt
from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import OAuth2PasswordBearer, SecurityScopes

from weather_insights.cache.store import CacheStore
from weather_insights.clients.openweather import OpenWeatherClient
from weather_insights.core.config import Settings
from weather_insights.core.security import (
    SCOPES,
    WEATHER_READ_SCOPE,
    decode_access_token,
    verify_password,
)
from weather_insights.repositories.weather import WeatherHistoryRepository
from weather_insights.repositories.weather_sql import SqlWeatherHistoryRepository
from weather_insights.schemas.auth import User
from weather_insights.services.weather import WeatherService

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token", scopes=SCOPES)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def authenticate_user(*, username: str, password: str, settings: Settings) -> User | None:
    if username != settings.admin_username:
        return None
    if not verify_password(password, settings.admin_password_hash):
        return None
    return User(username=username, scopes=list(SCOPES))


def get_weather_repository(request: Request) -> WeatherHistoryRepository:
    return SqlWeatherHistoryRepository(session_factory=request.app.state.session_factory)


def get_cache_store(request: Request) -> CacheStore:
    return request.app.state.cache_store


def get_openweather_client(request: Request) -> OpenWeatherClient:
    return request.app.state.openweather_client


def get_weather_service(
    repo: Annotated[WeatherHistoryRepository, Depends(get_weather_repository)],
    cache: Annotated[CacheStore, Depends(get_cache_store)],
    provider: Annotated[OpenWeatherClient, Depends(get_openweather_client)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> WeatherService:
    return WeatherService(
        repo=repo,
        cache=cache,
        provider=provider,
        api_key=settings.openweather_api_key,
        cache_ttl_seconds=settings.weather_cache_ttl_seconds,
        summary_days=settings.weather_summary_days,
    )


def get_current_user(
    security_scopes: SecurityScopes,
    token: Annotated[str, Depends(oauth2_scheme)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> User:
    authenticate_value = "Bearer"
    if security_scopes.scopes:
        authenticate_value = f'Bearer scope="{security_scopes.scope_str}"'

    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": authenticate_value},
    )

    try:
        payload = decode_access_token(token, settings=settings)
    except jwt.PyJWTError as e:  # noqa: BLE001 - normalize to 401
        raise credentials_exception from e

    sub = payload.get("sub")
    token_scopes = payload.get("scopes", [])
    if not isinstance(sub, str) or not isinstance(token_scopes, list):
        raise credentials_exception

    user = User(username=sub, scopes=[str(s) for s in token_scopes])

    for scope in security_scopes.scopes:
        if scope not in user.scopes:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not enough permissions",
                headers={"WWW-Authenticate": authenticate_value},
            )

    return user


CurrentUser = Annotated[User, Security(get_current_user)]

WeatherReadUser = Annotated[User, Security(get_current_user, scopes=[WEATHER_READ_SCOPE])]
