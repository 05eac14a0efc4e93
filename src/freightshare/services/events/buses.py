"""Event bus contract and the in-process implementation."""

from __future__ import annotations

import json
import logging
import threading
from typing import Any, List, Protocol, Tuple

logger = logging.getLogger(__name__)


class EventBus(Protocol):
    """Fire-and-forget transport; raises ``PublishFailed`` when a message is rejected."""

    def publish(self, topic: str, payload: dict[str, Any]) -> None:
        ...

    def close(self) -> None:
        ...


class InMemoryEventBus:
    """Keeps published messages in memory and logs them."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.messages: List[Tuple[str, dict[str, Any]]] = []

    def publish(self, topic: str, payload: dict[str, Any]) -> None:
        with self._lock:
            self.messages.append((topic, payload))
        logger.info(f"Event published to '{topic}': {json.dumps(payload)}")

    def close(self) -> None:
        return None

    def messages_for(self, topic: str) -> List[dict[str, Any]]:
        with self._lock:
            return [payload for message_topic, payload in self.messages if message_topic == topic]
