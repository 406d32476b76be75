from __future__ import annotations

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from weather_insights.api import deps
from weather_insights.cache.store import InMemoryCacheStore
from weather_insights.core.config import Settings
from weather_insights.core.security import get_password_hash
from weather_insights.factory import create_app
from weather_insights.models.weather import ProviderObservation
from tests.fakes import FakeProviderClient, FakeWeatherHistoryRepository, provider_with


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        env="test",
        debug=True,
        docs_enabled=False,
        log_level="DEBUG",
        secret_key="test_secret_key_must_be_32_chars_minimum",
        admin_username="admin",
        admin_password_hash=get_password_hash("password"),
        cors_origins=["http://localhost"],
        trusted_hosts=["testserver", "localhost"],
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        redis_url=None,
        openweather_api_key="test-api-key",
        openweather_base_url="https://api.test.openweathermap",
        weather_timeout_seconds=1.0,
    )


@pytest.fixture()
def repo() -> FakeWeatherHistoryRepository:
    return FakeWeatherHistoryRepository()


@pytest.fixture()
def cache() -> InMemoryCacheStore:
    return InMemoryCacheStore()


@pytest.fixture()
def provider() -> FakeProviderClient:
    return provider_with(
        ProviderObservation(display_name="São Paulo", temperature=26.0, condition="scattered clouds"),
        ProviderObservation(display_name="London", temperature=12.5, condition="light rain"),
        aliases={"Sao Paulo": "São Paulo"},
    )


@pytest.fixture()
def client(
    settings: Settings,
    repo: FakeWeatherHistoryRepository,
    cache: InMemoryCacheStore,
    provider: FakeProviderClient,
) -> TestClient:
    app = create_app(settings)
    app.dependency_overrides[deps.get_weather_repository] = lambda: repo
    app.dependency_overrides[deps.get_cache_store] = lambda: cache
    app.dependency_overrides[deps.get_openweather_client] = lambda: provider
    with TestClient(app) as client:
        yield client


@pytest.fixture()
def token(client: TestClient) -> str:
    resp = client.post(
        "/api/v1/auth/token",
        data={"username": "admin", "password": "password"},
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )
    assert resp.status_code == 200, resp.text
    return resp.json()["access_token"]


@pytest.fixture()
def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def now() -> datetime:
    return datetime.now(tz=timezone.utc)
