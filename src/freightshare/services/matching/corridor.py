"""Corridor search for pending shipments near a requested route."""

from __future__ import annotations

import logging
from typing import List

from ...models.domain import GeoPoint, ShipmentRecord, ShipmentStatus
from ...persistence.base import ShipmentStore

logger = logging.getLogger(__name__)

CORRIDOR_BUFFER_METERS = 10_000


class GeoCorridorQuery:
    def __init__(self, store: ShipmentStore, buffer_meters: float = CORRIDOR_BUFFER_METERS) -> None:
        self.store = store
        self.buffer_meters = buffer_meters

    def find_candidates(
        self,
        origin: GeoPoint,
        destination: GeoPoint,
        exclude_company_id: str,
        buffer_meters: float | None = None,
    ) -> List[ShipmentRecord]:
        """Pending shipments of other companies within the corridor buffer.

        Storage errors propagate unchanged.
        """
        buffer = self.buffer_meters if buffer_meters is None else buffer_meters
        records = self.store.query_pending_within_corridor(origin, destination, exclude_company_id, buffer)

        candidates = [
            record
            for record in records
            if record.status == ShipmentStatus.PENDING.value
            and record.company_id != exclude_company_id
            and record.weight >= 0
        ]
        if len(candidates) != len(records):
            logger.warning(
                f"Storage returned {len(records) - len(candidates)} non-pending, same-company "
                f"or negative-weight shipments; dropped"
            )
        logger.debug(f"Corridor search found {len(candidates)} candidates within {buffer} m")
        return candidates
