"""Supabase (Postgres/PostGIS) implementation of the shipment store."""

from __future__ import annotations

import logging
from typing import Any, List

from shapely import wkb, wkt
from shapely.errors import ShapelyError
from shapely.geometry import shape
from supabase import Client

from ..errors import ShipmentNotFound, StorageUnavailable
from ..models.domain import (
    CostSplit,
    GeoPoint,
    LoadGroup,
    PersistedCostSplit,
    PersistedGroup,
    ShipmentRecord,
    ShipmentStatus,
)

logger = logging.getLogger(__name__)

SHIPMENTS_TABLE = "shipments"
GROUPS_TABLE = "crs_groups"
COST_SPLITS_TABLE = "cost_splits"
CORRIDOR_RPC = "within_route_buffer"


def parse_point(value: Any) -> GeoPoint | None:
    """Decode a PostGIS point as returned by PostgREST.

    Accepts GeoJSON dicts, ``{"lat", "lng"}`` dicts, (E)WKT strings and
    hex-encoded (E)WKB. Anything else, including non-point geometries,
    raises ``ValueError``.
    """
    if value is None:
        return None
    if isinstance(value, dict) and "lat" in value and "lng" in value:
        return GeoPoint(lat=float(value["lat"]), lng=float(value["lng"]))
    try:
        if isinstance(value, dict):
            geometry = shape(value)
        elif isinstance(value, str):
            text = value.strip()
            if text.upper().startswith("SRID="):
                text = text.split(";", 1)[1]
            if text.upper().startswith("POINT"):
                geometry = wkt.loads(text)
            else:
                geometry = wkb.loads(text, hex=True)
        else:
            raise ValueError(f"Unsupported point value: {value!r}")
    except (ShapelyError, KeyError, AttributeError, TypeError) as exc:
        raise ValueError(f"Malformed geometry {value!r}: {exc}") from exc
    if geometry.geom_type != "Point" or geometry.is_empty:
        raise ValueError(f"Expected a point, got {geometry.geom_type}.")
    return GeoPoint(lat=float(geometry.y), lng=float(geometry.x))


def _row_point(row: dict, prefix: str) -> GeoPoint | None:
    lat = row.get(f"{prefix}_lat")
    lng = row.get(f"{prefix}_lng")
    if lat is not None and lng is not None:
        return GeoPoint(lat=float(lat), lng=float(lng))
    return parse_point(row.get(prefix))


def row_to_shipment(row: dict) -> ShipmentRecord:
    weight = float(row["weight"])
    if weight < 0:
        raise ValueError(f"negative weight {weight}")
    return ShipmentRecord(
        id=str(row["id"]),
        weight=weight,
        company_id=str(row["company_id"]),
        industry=str(row["industry"]),
        revenue_bracket=int(row["revenue_bracket"]),
        status=str(row.get("status") or ShipmentStatus.PENDING.value),
        origin=_row_point(row, "origin"),
        destination=_row_point(row, "destination"),
    )


def _optional_float(value: Any) -> float | None:
    return float(value) if value is not None else None


class SupabaseShipmentStore:
    """Reads shipments and writes load groups through the Supabase client.

    Corridor search relies on the ``within_route_buffer`` SQL function, which
    returns ``shipments`` rows whose origin and destination lie within
    ``buffer_meters`` of the straight line between the given points.
    """

    def __init__(self, client: Client) -> None:
        self.client = client

    def query_pending_within_corridor(
        self,
        origin: GeoPoint,
        destination: GeoPoint,
        exclude_company_id: str,
        buffer_meters: float,
    ) -> List[ShipmentRecord]:
        params = {
            "o_lat": origin.lat,
            "o_lng": origin.lng,
            "d_lat": destination.lat,
            "d_lng": destination.lng,
            "buffer_meters": buffer_meters,
        }
        try:
            response = (
                self.client.rpc(CORRIDOR_RPC, params)
                .neq("company_id", exclude_company_id)
                .eq("status", ShipmentStatus.PENDING.value)
                .execute()
            )
        except Exception as exc:
            raise StorageUnavailable(f"Corridor query failed: {exc}") from exc

        shipments: list[ShipmentRecord] = []
        for row in response.data or []:
            try:
                shipments.append(row_to_shipment(row))
            except (KeyError, ValueError, TypeError) as e:
                logger.warning(f"Skipping invalid shipment row {row.get('id')}: {e}")
        return shipments

    def get_shipment(self, shipment_id: str) -> ShipmentRecord:
        rows = self._select_one(SHIPMENTS_TABLE, "id", shipment_id)
        if not rows:
            raise ShipmentNotFound(f"Shipment '{shipment_id}' not found.")
        try:
            return row_to_shipment(rows[0])
        except (KeyError, ValueError, TypeError) as exc:
            raise StorageUnavailable(f"Shipment '{shipment_id}' has a malformed row: {exc}") from exc

    def persist_load_group(self, group: LoadGroup, splits: List[CostSplit]) -> str:
        group_row = {
            "shipment_ids": group.shipment_ids,
            "company_ids": group.companies,
            "total_weight": group.total_weight,
            "total_cost": round(sum(split.cost for split in splits), 2),
            "distance_meters": group.distance_meters,
            "route_linestring": group.route_geometry,
        }
        try:
            response = self.client.table(GROUPS_TABLE).insert(group_row).execute()
            if not response.data:
                raise StorageUnavailable("Load group insert returned no rows.")
            group_id = str(response.data[0]["id"])

            if splits:
                split_rows = [
                    {
                        "shipment_id": split.shipment_id,
                        "company_id": split.company_id,
                        "cost": split.cost,
                        "group_id": group_id,
                    }
                    for split in splits
                ]
                self.client.table(COST_SPLITS_TABLE).insert(split_rows).execute()

            if group.shipment_ids:
                (
                    self.client.table(SHIPMENTS_TABLE)
                    .update({"status": ShipmentStatus.MATCHED.value})
                    .in_("id", group.shipment_ids)
                    .execute()
                )
        except StorageUnavailable:
            raise
        except Exception as exc:
            raise StorageUnavailable(f"Failed to persist load group: {exc}") from exc

        logger.info(f"Saved load group {group_id} ({len(splits)} cost splits)")
        return group_id

    def get_cost_split(self, shipment_id: str) -> PersistedCostSplit:
        rows = self._select_one(COST_SPLITS_TABLE, "shipment_id", shipment_id)
        if not rows:
            raise ShipmentNotFound(f"No cost split recorded for shipment '{shipment_id}'.")
        row = rows[0]
        return PersistedCostSplit(
            shipment_id=str(row["shipment_id"]),
            company_id=str(row["company_id"]),
            cost=float(row["cost"]),
            group_id=str(row["group_id"]),
        )

    def get_group(self, group_id: str) -> PersistedGroup:
        rows = self._select_one(GROUPS_TABLE, "id", group_id)
        if not rows:
            raise ShipmentNotFound(f"Load group '{group_id}' not found.")
        row = rows[0]
        return PersistedGroup(
            id=str(row["id"]),
            shipment_ids=[str(item) for item in row.get("shipment_ids") or []],
            company_ids=[str(item) for item in row.get("company_ids") or []],
            total_weight=float(row.get("total_weight") or 0.0),
            total_cost=float(row.get("total_cost") or 0.0),
            distance_meters=_optional_float(row.get("distance_meters")),
            route_geometry=row.get("route_linestring"),
        )

    def list_group_splits(self, group_id: str) -> List[CostSplit]:
        try:
            response = (
                self.client.table(COST_SPLITS_TABLE)
                .select("shipment_id, company_id, cost")
                .eq("group_id", group_id)
                .execute()
            )
        except Exception as exc:
            raise StorageUnavailable(f"Failed to load cost splits for group '{group_id}': {exc}") from exc
        return [
            CostSplit(shipment_id=str(row["shipment_id"]), company_id=str(row["company_id"]), cost=float(row["cost"]))
            for row in response.data or []
        ]

    def _select_one(self, table: str, column: str, value: str) -> list[dict]:
        try:
            response = self.client.table(table).select("*").eq(column, value).limit(1).execute()
        except Exception as exc:
            raise StorageUnavailable(f"Query on '{table}' failed: {exc}") from exc
        return response.data or []
