"""Corridor-keyed memoization of match results."""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import TypeAdapter, ValidationError

from ...errors import CacheUnavailable
from ...models.domain import GeoPoint, MatchResult
from .backends import CacheBackend

logger = logging.getLogger(__name__)

MATCH_CACHE_TTL_SECONDS = 300
KEY_PREFIX = "crs:matches"

_match_result_adapter = TypeAdapter(MatchResult)


def corridor_key(origin: GeoPoint, destination: GeoPoint) -> str:
    """Cache key with coordinates rounded to three decimals (~100 m)."""

    return (
        f"{KEY_PREFIX}:{origin.lat:.3f}:{origin.lng:.3f}:"
        f"{destination.lat:.3f}:{destination.lng:.3f}"
    )


class MatchResultCache:
    """Best-effort cache: backend failures degrade to a miss and never propagate."""

    def __init__(self, backend: CacheBackend, ttl_seconds: int = MATCH_CACHE_TTL_SECONDS) -> None:
        self.backend = backend
        self.ttl_seconds = ttl_seconds

    def get(self, key: str) -> Optional[MatchResult]:
        try:
            payload = self.backend.get(key)
        except CacheUnavailable as exc:
            logger.warning(f"Cache read failed for {key}, computing fresh results: {exc}")
            return None
        if payload is None:
            return None
        try:
            return _match_result_adapter.validate_json(payload)
        except ValidationError as exc:
            logger.warning(f"Discarding undecodable cache entry {key}: {exc}")
            return None

    def put(self, key: str, result: MatchResult, ttl_seconds: int | None = None) -> None:
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        payload = _match_result_adapter.dump_json(result).decode("utf-8")
        try:
            self.backend.put(key, payload, ttl)
        except CacheUnavailable as exc:
            logger.warning(f"Cache write failed for {key}: {exc}")
