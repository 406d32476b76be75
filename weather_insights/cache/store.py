from __future__ import annotations

import copy
import threading
import time
from typing import Any, Callable, Protocol


class CacheStore(Protocol):
    def ping(self) -> None: ...

    def get(self, key: str) -> dict[str, Any] | None: ...

    def set(self, key: str, value: dict[str, Any], ttl_seconds: int | None = None) -> None: ...

    def delete(self, key: str) -> None: ...


class InMemoryCacheStore:
    """Process-local cache used when no Redis URL is configured."""

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._lock = threading.Lock()
        self._clock = clock
        self._entries: dict[str, tuple[dict[str, Any], float | None]] = {}

    def ping(self) -> None:
        return None

    def get(self, key: str) -> dict[str, Any] | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at is not None and self._clock() >= expires_at:
                del self._entries[key]
                return None
            return copy.deepcopy(value)

    def set(self, key: str, value: dict[str, Any], ttl_seconds: int | None = None) -> None:
        expires_at = None
        if ttl_seconds and ttl_seconds > 0:
            expires_at = self._clock() + ttl_seconds
        with self._lock:
            self._entries[key] = (copy.deepcopy(value), expires_at)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)
