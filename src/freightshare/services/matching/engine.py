"""Load matching orchestration: corridor search through cost split."""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import List, Optional

from ...errors import InvalidShipment, MatchingFailed, StorageUnavailable
from ...models.domain import (
    NEW_REQUEST_ID,
    CostBreakdown,
    CostSplit,
    GeoPoint,
    LoadGroup,
    MatchResult,
    ShipmentRequest,
)
from ...persistence.base import ShipmentStore
from ..cache import MatchResultCache, corridor_key
from ..costing.allocator import CostAllocator
from ..events import MatchEventPublisher
from ..geospatial import corridor_linestring_wkt
from .assembler import LoadGroupAssembler
from .compatibility import CompatibilityFilter
from .corridor import GeoCorridorQuery

logger = logging.getLogger(__name__)


def _validate_point(point: Optional[GeoPoint], label: str) -> None:
    if point is None or point.lat is None or point.lng is None:
        raise InvalidShipment(f"{label} coordinates are required.")
    if not (math.isfinite(point.lat) and math.isfinite(point.lng)):
        raise InvalidShipment(f"{label} coordinates must be finite numbers.")
    if not -90 <= point.lat <= 90 or not -180 <= point.lng <= 180:
        raise InvalidShipment(f"{label} coordinates out of range: ({point.lat}, {point.lng}).")


def validate_request(request: ShipmentRequest) -> None:
    _validate_point(request.origin, "Origin")
    _validate_point(request.destination, "Destination")
    if request.weight is None or not math.isfinite(request.weight) or request.weight <= 0:
        raise InvalidShipment(f"Weight must be a positive number of kg, got {request.weight}.")
    if not request.company_id:
        raise InvalidShipment("Company id is required.")
    if not request.industry_type:
        raise InvalidShipment("Industry type is required.")
    if isinstance(request.revenue_bracket, bool) or request.revenue_bracket not in range(1, 6):
        raise InvalidShipment(f"Revenue bracket must be between 1 and 5, got {request.revenue_bracket}.")
    if request.distance_meters is not None and request.distance_meters < 0:
        raise InvalidShipment(f"Distance cannot be negative, got {request.distance_meters}.")


class LoadMatchingEngine:
    """Public entry point for matching requests and reporting savings.

    Collaborators are injected; the engine keeps no state between calls
    beyond what the cache backend stores.
    """

    def __init__(
        self,
        store: ShipmentStore,
        cache: MatchResultCache,
        publisher: MatchEventPublisher,
        *,
        corridor_query: GeoCorridorQuery | None = None,
        compatibility: CompatibilityFilter | None = None,
        assembler: LoadGroupAssembler | None = None,
        allocator: CostAllocator | None = None,
    ) -> None:
        self.store = store
        self.cache = cache
        self.publisher = publisher
        self.corridor_query = corridor_query or GeoCorridorQuery(store)
        self.compatibility = compatibility or CompatibilityFilter()
        self.assembler = assembler or LoadGroupAssembler()
        self.allocator = allocator or CostAllocator()

    def find_matching_loads(self, request: ShipmentRequest) -> MatchResult:
        validate_request(request)

        key = corridor_key(request.origin, request.destination)
        cached = self.cache.get(key)
        if cached is not None:
            logger.info(f"Serving load matches from cache ({key})")
            return cached

        try:
            candidates = self.corridor_query.find_candidates(
                request.origin, request.destination, request.company_id
            )
        except StorageUnavailable as exc:
            raise MatchingFailed(f"Load matching for company {request.company_id} failed: {exc}") from exc

        matches = self.compatibility.filter(
            candidates, request.industry_type, request.weight, request.revenue_bracket
        )
        load_group = self.assembler.assemble(matches, request)
        participants = self.assembler.participants(matches, request)
        total_cost = self.allocator.base_cost(load_group.distance_meters, load_group.total_weight)
        cost_split = self.allocator.allocate(participants, total_cost, load_group.total_weight)

        result = MatchResult(matches=matches, load_group=load_group, cost_split=cost_split)
        logger.info(
            f"Matched {len(matches)} of {len(candidates)} corridor candidates for company {request.company_id} "
            f"(group {load_group.id}, {load_group.total_weight} kg, ${total_cost:.2f})"
        )

        self.cache.put(key, result)
        self.publisher.publish_match(request.company_id, len(matches), load_group.id)
        return result

    def save_matched_load_group(
        self,
        load_group: LoadGroup,
        cost_split: List[CostSplit],
        new_shipment_id: str | None = None,
        origin: GeoPoint | None = None,
        destination: GeoPoint | None = None,
    ) -> str:
        """Persist a proposed group and its splits, returning the stored group id.

        The new-request placeholder must be resolved to the request's persisted
        shipment id via ``new_shipment_id`` before it can be stored. When the
        group has no route geometry yet and the corridor end points are given,
        the straight corridor is stored as a WKT LINESTRING.
        """
        has_placeholder = any(split.shipment_id == NEW_REQUEST_ID for split in cost_split)
        if has_placeholder and not new_shipment_id:
            raise InvalidShipment("Cost split references the unsaved new request; pass new_shipment_id.")

        shipment_ids = list(load_group.shipment_ids)
        splits = list(cost_split)
        if new_shipment_id:
            splits = [
                replace(split, shipment_id=new_shipment_id) if split.shipment_id == NEW_REQUEST_ID else split
                for split in splits
            ]
            if new_shipment_id not in shipment_ids:
                shipment_ids.append(new_shipment_id)

        route_geometry = load_group.route_geometry
        if route_geometry is None and origin is not None and destination is not None:
            route_geometry = corridor_linestring_wkt(origin, destination)

        group = replace(load_group, shipment_ids=shipment_ids, route_geometry=route_geometry)
        return self.store.persist_load_group(group, splits)

    def get_cost_breakdown(self, shipment_id: str) -> CostBreakdown:
        split = self.store.get_cost_split(shipment_id)
        group = self.store.get_group(split.group_id)
        shipment = self.store.get_shipment(shipment_id)
        group_splits = self.store.list_group_splits(split.group_id)

        individual_cost = self.allocator.individual_cost(shipment.weight, group.distance_meters)
        savings, percentage = self.allocator.savings(individual_cost, split.cost)
        return CostBreakdown(
            shipment_id=shipment_id,
            total_group_cost=group.total_cost,
            company_cost=split.cost,
            individual_cost=individual_cost,
            savings=savings,
            savings_percentage=percentage,
            breakdown=group_splits,
        )
