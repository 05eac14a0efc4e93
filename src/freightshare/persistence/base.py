"""Storage contract consumed by the matching engine."""

from __future__ import annotations

from typing import List, Protocol

from ..models.domain import (
    CostSplit,
    GeoPoint,
    LoadGroup,
    PersistedCostSplit,
    PersistedGroup,
    ShipmentRecord,
)


class ShipmentStore(Protocol):
    """Narrow storage interface.

    Implementations raise ``ShipmentNotFound`` for missing rows and
    ``StorageUnavailable`` when the backend cannot answer.
    """

    def query_pending_within_corridor(
        self,
        origin: GeoPoint,
        destination: GeoPoint,
        exclude_company_id: str,
        buffer_meters: float,
    ) -> List[ShipmentRecord]:
        ...

    def get_shipment(self, shipment_id: str) -> ShipmentRecord:
        ...

    def persist_load_group(self, group: LoadGroup, splits: List[CostSplit]) -> str:
        ...

    def get_cost_split(self, shipment_id: str) -> PersistedCostSplit:
        ...

    def get_group(self, group_id: str) -> PersistedGroup:
        ...

    def list_group_splits(self, group_id: str) -> List[CostSplit]:
        ...
