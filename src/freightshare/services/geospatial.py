"""Geospatial helper functions."""

from __future__ import annotations

import math

from shapely.geometry import LineString, Point

from ..models.domain import GeoPoint

EARTH_RADIUS_KM = 6371.0
EARTH_RADIUS_M = EARTH_RADIUS_KM * 1000.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def distance_meters(a: GeoPoint, b: GeoPoint) -> float:
    return haversine_km(a.lat, a.lng, b.lat, b.lng) * 1000.0


def _project(point: GeoPoint, ref_lat: float, ref_lng: float) -> tuple[float, float]:
    """Equirectangular projection to metres around a reference coordinate."""

    x = math.radians(point.lng - ref_lng) * math.cos(math.radians(ref_lat)) * EARTH_RADIUS_M
    y = math.radians(point.lat - ref_lat) * EARTH_RADIUS_M
    return x, y


def distance_to_corridor_m(origin: GeoPoint, destination: GeoPoint, point: GeoPoint) -> float:
    """Distance in metres from ``point`` to the straight segment origin -> destination."""

    ref_lat = (origin.lat + destination.lat) / 2
    ref_lng = (origin.lng + destination.lng) / 2
    start = _project(origin, ref_lat, ref_lng)
    end = _project(destination, ref_lat, ref_lng)
    target = Point(_project(point, ref_lat, ref_lng))
    if start == end:
        return Point(start).distance(target)
    return LineString([start, end]).distance(target)


def within_corridor(origin: GeoPoint, destination: GeoPoint, point: GeoPoint, buffer_meters: float) -> bool:
    return distance_to_corridor_m(origin, destination, point) <= buffer_meters


def corridor_linestring_wkt(origin: GeoPoint, destination: GeoPoint) -> str:
    """WKT LINESTRING of the corridor in lon/lat order, as PostGIS expects."""

    return LineString([(origin.lng, origin.lat), (destination.lng, destination.lat)]).wkt
