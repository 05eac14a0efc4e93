"""Redis-backed cache for match results."""

from __future__ import annotations

import logging
from typing import Optional

import redis

from ...errors import CacheUnavailable

logger = logging.getLogger(__name__)


class RedisCacheBackend:
    def __init__(self, client: redis.Redis) -> None:
        self.client = client

    @classmethod
    def from_url(cls, url: str, *, socket_timeout: float = 5.0) -> "RedisCacheBackend":
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=socket_timeout,
            socket_timeout=socket_timeout,
        )
        return cls(client)

    def get(self, key: str) -> Optional[str]:
        try:
            value = self.client.get(key)
        except redis.RedisError as exc:
            raise CacheUnavailable(f"Redis GET {key} failed: {exc}") from exc
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    def put(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            self.client.setex(key, ttl_seconds, value)
        except redis.RedisError as exc:
            raise CacheUnavailable(f"Redis SETEX {key} failed: {exc}") from exc
