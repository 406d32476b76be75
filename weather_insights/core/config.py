from __future__ import annotations

from pydantic import AnyHttpUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_ADMIN_PASSWORD_HASH = (
    "$2b$12$sdOU8uwfeIt/6CaZUIM6ke71zg30wHn0r3QC4TDA3xHYwQxTVEEXi"
)

OPENWEATHER_DEFAULT_BASE_URL = "https://api.openweathermap.org/data/2.5"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="APP_",
        case_sensitive=False,
    )

    env: str = Field(default="development")
    debug: bool = Field(default=False)
    docs_enabled: bool = Field(default=True)
    log_level: str = Field(default="INFO")

    secret_key: str = Field(min_length=32)
    algorithm: str = Field(default="HS256")
    access_token_expire_minutes: int = Field(default=60, ge=1, le=60 * 24 * 30)

    admin_username: str = Field(default="admin", min_length=3, max_length=64)
    admin_password_hash: str = Field(default=DEFAULT_ADMIN_PASSWORD_HASH, min_length=10)

    cors_origins: list[str] = Field(default_factory=list)
    trusted_hosts: list[str] = Field(default_factory=lambda: ["localhost", "127.0.0.1"])

    database_url: str = Field(default="sqlite:///./weather_insights.sqlite3", min_length=1)
    database_echo: bool = Field(default=False)

    # Unset means the process-local cache is used instead of Redis.
    redis_url: str | None = Field(default=None)

    openweather_api_key: str | None = Field(default=None)
    openweather_base_url: AnyHttpUrl = Field(default=OPENWEATHER_DEFAULT_BASE_URL)
    openweather_units: str = Field(default="metric", pattern=r"^(standard|metric|imperial)$")
    weather_timeout_seconds: float = Field(default=10.0, ge=1.0, le=30.0)
    weather_cache_ttl_seconds: int = Field(default=600, ge=1, le=60 * 60 * 24)
    weather_summary_days: int = Field(default=7, ge=1, le=365)

    # Requests per client and window on the weather routes; 0 disables the limiter.
    rate_limit_requests: int = Field(default=10, ge=0)
    rate_limit_window_seconds: int = Field(default=60, ge=1, le=60 * 60)

    @property
    def is_production(self) -> bool:
        return self.env.lower() == "production"


def load_settings() -> Settings:
    settings = Settings()
    if not settings.cors_origins:
        settings.cors_origins = ["http://localhost:3000", "http://localhost:8000"]
    return settings
