"""Match event publication."""

from .buses import EventBus, InMemoryEventBus
from .publisher import MATCH_TOPIC, MatchEventPublisher

__all__ = ["EventBus", "InMemoryEventBus", "MatchEventPublisher", "MATCH_TOPIC"]
