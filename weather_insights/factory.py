from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

import redis
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.trustedhost import TrustedHostMiddleware

from weather_insights.api.rate_limit import RateLimitMiddleware, create_rate_limiter
from weather_insights.api.router import api_router
from weather_insights.cache.redis_store import RedisCacheStore, create_redis_client
from weather_insights.cache.store import CacheStore, InMemoryCacheStore
from weather_insights.clients.openweather import OpenWeatherClient
from weather_insights.core.config import Settings, load_settings
from weather_insights.core.errors import WeatherInsightsError, error_body
from weather_insights.core.logging import configure_logging
from weather_insights.db.sql import create_db_engine, create_schema, create_session_factory

logger = logging.getLogger(__name__)

INVALID_CITY_MESSAGE = "City name must contain only letters, spaces and hyphens"
WEATHER_PATH_PREFIX = "/api/v1/weather"


def _create_redis_client(settings: Settings) -> redis.Redis | None:
    if not settings.redis_url:
        return None
    return create_redis_client(settings.redis_url, timeout_seconds=settings.weather_timeout_seconds)


def _create_cache_store(redis_client: redis.Redis | None) -> CacheStore:
    if redis_client is not None:
        return RedisCacheStore(redis_client)
    logger.info("APP_REDIS_URL not set; using the in-process cache")
    return InMemoryCacheStore()


def _error_body(request: Request, status_code: int, message: Any) -> dict[str, Any]:
    return error_body(request.url.path, status_code, message)


def _validation_messages(exc: RequestValidationError) -> list[str]:
    messages: list[str] = []
    for err in exc.errors():
        loc = err.get("loc", ())
        field = str(loc[-1]) if loc else "request"
        if field == "city" and err.get("type") == "string_pattern_mismatch":
            messages.append(INVALID_CITY_MESSAGE)
        else:
            messages.append(f"{field}: {err.get('msg', 'invalid value')}")
    return messages


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(WeatherInsightsError)
    async def weather_error_handler(request: Request, exc: WeatherInsightsError):
        if exc.status_code >= 500:
            logger.error("Request to %s failed: %s", request.url.path, exc.message)
        else:
            logger.warning("Client error on %s: %s", request.url.path, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(request, exc.status_code, exc.message),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        messages = _validation_messages(exc)
        logger.warning("Invalid request to %s: %s", request.url.path, "; ".join(messages))
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=jsonable_encoder(
                _error_body(request, status.HTTP_400_BAD_REQUEST, messages)
            ),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={**_error_body(request, exc.status_code, exc.detail), "detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s", request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body(
                request, status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error"
            ),
        )


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = create_db_engine(settings)
        create_schema(engine)
        app.state.db_engine = engine
        app.state.session_factory = create_session_factory(engine)
        redis_client = _create_redis_client(settings)
        app.state.cache_store = _create_cache_store(redis_client)
        app.state.rate_limiter = create_rate_limiter(settings, redis_client)
        app.state.openweather_client = OpenWeatherClient(
            timeout_seconds=settings.weather_timeout_seconds,
            base_url=str(settings.openweather_base_url),
            units=settings.openweather_units,
        )
        if not settings.openweather_api_key:
            logger.warning("APP_OPENWEATHER_API_KEY is not set; current weather lookups will fail")

        yield

        app.state.openweather_client.close()
        close_cache = getattr(app.state.cache_store, "close", None)
        if callable(close_cache):
            close_cache()
        engine.dispose()

    docs_enabled = settings.docs_enabled and not settings.is_production
    app = FastAPI(
        title="Weather Insights API",
        description="Current weather, weekly summaries and history per city.",
        version="0.1.0",
        debug=settings.debug,
        docs_url="/docs" if docs_enabled else None,
        redoc_url=None,
        openapi_url="/openapi.json" if docs_enabled else None,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(RateLimitMiddleware, path_prefix=WEATHER_PATH_PREFIX)
    app.add_middleware(GZipMiddleware, minimum_size=1024)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )
    if settings.trusted_hosts:
        app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.trusted_hosts)

    @app.middleware("http")
    async def security_headers(request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        if settings.is_production:
            response.headers.setdefault(
                "Strict-Transport-Security", "max-age=31536000; includeSubDomains"
            )
        return response

    register_exception_handlers(app)

    @app.get("/", tags=["meta"])
    def root():
        return {"name": "weather-insights-api", "status": "ok"}

    app.include_router(api_router)
    return app
