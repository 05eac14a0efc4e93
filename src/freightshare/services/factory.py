"""Composition root: builds collaborators from settings."""

from __future__ import annotations

import logging

from ..config import Settings, settings as default_settings
from ..db.supabase import get_supabase_client
from ..persistence.base import ShipmentStore
from ..persistence.memory import InMemoryShipmentStore
from ..persistence.supabase_store import SupabaseShipmentStore
from .cache import CacheBackend, InMemoryCacheBackend, MatchResultCache, NullCacheBackend
from .events import EventBus, InMemoryEventBus, MatchEventPublisher
from .matching.engine import LoadMatchingEngine

logger = logging.getLogger(__name__)


def build_store(config: Settings) -> ShipmentStore:
    match config.storage_backend:
        case "supabase":
            client = get_supabase_client()
            if client is None:
                raise ValueError("Supabase storage selected but FREIGHTSHARE_SUPABASE_URL/KEY are not configured.")
            return SupabaseShipmentStore(client)
        case "memory":
            return InMemoryShipmentStore()
        case _:
            raise ValueError(f"Unknown storage backend '{config.storage_backend}'.")


def build_cache_backend(config: Settings) -> CacheBackend:
    match config.cache_backend:
        case "memory":
            return InMemoryCacheBackend()
        case "none":
            return NullCacheBackend()
        case "redis":
            if not config.redis_url:
                raise ValueError("Redis cache selected but FREIGHTSHARE_REDIS_URL is not configured.")
            from .cache.redis_backend import RedisCacheBackend

            return RedisCacheBackend.from_url(config.redis_url)
        case _:
            raise ValueError(f"Unknown cache backend '{config.cache_backend}'.")


def build_event_bus(config: Settings) -> EventBus:
    match config.event_backend:
        case "memory":
            return InMemoryEventBus()
        case "kafka":
            from .events.kafka_bus import KafkaEventBus

            return KafkaEventBus.connect(config.kafka_brokers, config.kafka_client_id)
        case _:
            raise ValueError(f"Unknown event backend '{config.event_backend}'.")


def build_engine(config: Settings | None = None) -> LoadMatchingEngine:
    config = config or default_settings
    logger.info(
        f"Building matching engine (storage={config.storage_backend}, "
        f"cache={config.cache_backend}, events={config.event_backend})"
    )
    return LoadMatchingEngine(
        store=build_store(config),
        cache=MatchResultCache(build_cache_backend(config)),
        publisher=MatchEventPublisher(build_event_bus(config)),
    )
