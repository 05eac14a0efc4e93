"""Best-effort publication of match outcomes."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from ...errors import PublishFailed
from .buses import EventBus

logger = logging.getLogger(__name__)

MATCH_TOPIC = "crs.load.match"


class MatchEventPublisher:
    def __init__(self, bus: EventBus) -> None:
        self.bus = bus

    def publish(self, event_type: str, payload: dict[str, Any]) -> None:
        """Send an event; failures are logged and never raised."""
        try:
            self.bus.publish(event_type, payload)
        except PublishFailed as exc:
            logger.warning(f"Dropping '{event_type}' event: {exc}")

    def close(self) -> None:
        self.bus.close()

    def publish_match(self, company_id: str, match_count: int, load_group_id: str) -> None:
        self.publish(
            MATCH_TOPIC,
            {
                "companyId": company_id,
                "matchCount": match_count,
                "loadGroupId": load_group_id,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        )
