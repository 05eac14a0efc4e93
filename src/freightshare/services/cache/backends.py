"""Cache backend contract and in-process implementations."""

from __future__ import annotations

import threading
import time
from typing import Callable, Dict, Optional, Protocol, Tuple


class CacheBackend(Protocol):
    """Key/value store with per-key expiry.

    Implementations raise ``CacheUnavailable`` when the backend cannot be reached.
    """

    def get(self, key: str) -> Optional[str]:
        ...

    def put(self, key: str, value: str, ttl_seconds: int) -> None:
        ...


class InMemoryCacheBackend:
    """Thread-safe dictionary cache with lazy expiry."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._store: Dict[str, Tuple[str, float | None]] = {}

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at is not None and self._clock() >= expires_at:
                del self._store[key]
                return None
            return value

    def put(self, key: str, value: str, ttl_seconds: int) -> None:
        expires_at = self._clock() + ttl_seconds if ttl_seconds > 0 else None
        with self._lock:
            self._store[key] = (value, expires_at)


class NullCacheBackend:
    """Never stores anything; every lookup is a miss."""

    def get(self, key: str) -> Optional[str]:
        return None

    def put(self, key: str, value: str, ttl_seconds: int) -> None:
        return None
