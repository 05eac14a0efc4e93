"""In-process shipment store used for local runs and tests."""

from __future__ import annotations

import logging
import threading
import uuid
from typing import Dict, Iterable, List

from ..errors import ShipmentNotFound
from ..models.domain import (
    CostSplit,
    GeoPoint,
    LoadGroup,
    PersistedCostSplit,
    PersistedGroup,
    ShipmentRecord,
    ShipmentStatus,
)
from ..services.geospatial import distance_meters, within_corridor

logger = logging.getLogger(__name__)


class InMemoryShipmentStore:
    """Dictionary-backed implementation of the ``ShipmentStore`` contract."""

    def __init__(self, shipments: Iterable[ShipmentRecord] = ()) -> None:
        self._lock = threading.Lock()
        self._shipments: Dict[str, ShipmentRecord] = {s.id: s for s in shipments}
        self._groups: Dict[str, PersistedGroup] = {}
        self._splits: Dict[str, PersistedCostSplit] = {}

    def add_shipment(self, shipment: ShipmentRecord) -> None:
        with self._lock:
            self._shipments[shipment.id] = shipment

    def query_pending_within_corridor(
        self,
        origin: GeoPoint,
        destination: GeoPoint,
        exclude_company_id: str,
        buffer_meters: float,
    ) -> List[ShipmentRecord]:
        with self._lock:
            shipments = list(self._shipments.values())

        matches = [
            shipment
            for shipment in shipments
            if shipment.status == ShipmentStatus.PENDING.value
            and shipment.company_id != exclude_company_id
            and shipment.origin is not None
            and shipment.destination is not None
            and within_corridor(origin, destination, shipment.origin, buffer_meters)
            and within_corridor(origin, destination, shipment.destination, buffer_meters)
        ]
        matches.sort(key=lambda shipment: distance_meters(origin, shipment.origin))
        return matches

    def get_shipment(self, shipment_id: str) -> ShipmentRecord:
        with self._lock:
            shipment = self._shipments.get(shipment_id)
        if shipment is None:
            raise ShipmentNotFound(f"Shipment '{shipment_id}' not found.")
        return shipment

    def persist_load_group(self, group: LoadGroup, splits: List[CostSplit]) -> str:
        group_id = str(uuid.uuid4())
        total_cost = round(sum(split.cost for split in splits), 2)
        with self._lock:
            self._groups[group_id] = PersistedGroup(
                id=group_id,
                shipment_ids=list(group.shipment_ids),
                company_ids=list(group.companies),
                total_weight=group.total_weight,
                total_cost=total_cost,
                distance_meters=group.distance_meters,
                route_geometry=group.route_geometry,
            )
            for split in splits:
                self._splits[split.shipment_id] = PersistedCostSplit(
                    shipment_id=split.shipment_id,
                    company_id=split.company_id,
                    cost=split.cost,
                    group_id=group_id,
                )
            for shipment_id in group.shipment_ids:
                shipment = self._shipments.get(shipment_id)
                if shipment is not None:
                    shipment.status = ShipmentStatus.MATCHED.value
        logger.info(f"Stored load group {group_id} with {len(splits)} cost splits")
        return group_id

    def get_cost_split(self, shipment_id: str) -> PersistedCostSplit:
        with self._lock:
            split = self._splits.get(shipment_id)
        if split is None:
            raise ShipmentNotFound(f"No cost split recorded for shipment '{shipment_id}'.")
        return split

    def get_group(self, group_id: str) -> PersistedGroup:
        with self._lock:
            group = self._groups.get(group_id)
        if group is None:
            raise ShipmentNotFound(f"Load group '{group_id}' not found.")
        return group

    def list_group_splits(self, group_id: str) -> List[CostSplit]:
        with self._lock:
            return [
                CostSplit(shipment_id=split.shipment_id, company_id=split.company_id, cost=split.cost)
                for split in self._splits.values()
                if split.group_id == group_id
            ]
