"""Match result caching."""

from .backends import CacheBackend, InMemoryCacheBackend, NullCacheBackend
from .match_cache import MATCH_CACHE_TTL_SECONDS, MatchResultCache, corridor_key

__all__ = [
    "CacheBackend",
    "InMemoryCacheBackend",
    "NullCacheBackend",
    "MatchResultCache",
    "MATCH_CACHE_TTL_SECONDS",
    "corridor_key",
]
