from __future__ import annotations

import json
import logging
from typing import Any

import redis

logger = logging.getLogger(__name__)


def create_redis_client(url: str, *, timeout_seconds: float = 5.0) -> redis.Redis:
    return redis.Redis.from_url(
        url,
        decode_responses=True,
        socket_timeout=timeout_seconds,
        socket_connect_timeout=timeout_seconds,
    )


class RedisCacheStore:
    """JSON values in Redis, expired with ``SET key value EX ttl``."""

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    def ping(self) -> None:
        self._client.ping()

    def get(self, key: str) -> dict[str, Any] | None:
        raw = self._client.get(key)
        if not raw:
            return None
        try:
            value = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Failed to parse cache entry for key %s", key)
            return None
        if not isinstance(value, dict):
            logger.warning("Ignoring non-object cache entry for key %s", key)
            return None
        return value

    def set(self, key: str, value: dict[str, Any], ttl_seconds: int | None = None) -> None:
        payload = json.dumps(value)
        if ttl_seconds and ttl_seconds > 0:
            self._client.set(key, payload, ex=ttl_seconds)
        else:
            self._client.set(key, payload)

    def delete(self, key: str) -> None:
        self._client.delete(key)

    def close(self) -> None:
        self._client.close()
