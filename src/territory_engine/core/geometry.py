"""Planar and great-circle helpers shared by the claim pipeline.

Distances are great-circle (haversine). Intersection and containment tests
are planar with longitude as x and latitude as y; the claim thresholds were
tuned against that approximation, which holds at walking-loop scale.
"""
from __future__ import annotations

from math import atan2, cos, radians, sin, sqrt
from typing import Sequence

from territory_engine.core.models import GeoPoint

EARTH_RADIUS_M = 6_371_000.0  # mean Earth radius


# ---------------------------------------------------------------------------
# Great-circle
# ---------------------------------------------------------------------------

def haversine_m(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance in metres between two WGS-84 points."""
    lat1r, lon1r, lat2r, lon2r = map(radians, [a.lat, a.lon, b.lat, b.lon])
    dlat = lat2r - lat1r
    dlon = lon2r - lon1r
    h = sin(dlat / 2) ** 2 + cos(lat1r) * cos(lat2r) * sin(dlon / 2) ** 2
    return EARTH_RADIUS_M * 2 * atan2(sqrt(h), sqrt(1 - h))


def path_length_m(points: Sequence[GeoPoint]) -> float:
    """Sum of consecutive great-circle distances (open path, no wrap)."""
    if len(points) < 2:
        return 0.0
    return sum(haversine_m(points[i], points[i + 1]) for i in range(len(points) - 1))


# ---------------------------------------------------------------------------
# Planar
# ---------------------------------------------------------------------------

def ccw(a: GeoPoint, b: GeoPoint, c: GeoPoint) -> bool:
    """True when a -> b -> c turns counter-clockwise (cross product > 0)."""
    return (c.lat - a.lat) * (b.lon - a.lon) > (b.lat - a.lat) * (c.lon - a.lon)


def segments_intersect(p1: GeoPoint, p2: GeoPoint, p3: GeoPoint, p4: GeoPoint) -> bool:
    """CCW test: segment p1-p2 crosses segment p3-p4.

    Collinear overlaps are not reported.
    """
    return ccw(p1, p3, p4) != ccw(p2, p3, p4) and ccw(p1, p2, p3) != ccw(p1, p2, p4)


def point_in_polygon(point: GeoPoint, polygon: Sequence[GeoPoint]) -> bool:
    """Horizontal ray casting; the ring is closed implicitly."""
    if len(polygon) < 3:
        return False

    inside = False
    x = point.lon
    y = point.lat

    j = len(polygon) - 1
    for i in range(len(polygon)):
        xi, yi = polygon[i].lon, polygon[i].lat
        xj, yj = polygon[j].lon, polygon[j].lat

        # (yi > y) != (yj > y) guarantees yj != yi, so the division is safe
        if ((yi > y) != (yj > y)) and (x < (xj - xi) * (y - yi) / (yj - yi) + xi):
            inside = not inside
        j = i

    return inside


def centroid(points: Sequence[GeoPoint]) -> GeoPoint:
    """Vertex average. Inside any convex polygon, which is all callers need."""
    if not points:
        raise ValueError("centroid of an empty point set")
    n = len(points)
    return GeoPoint(
        lat=sum(p.lat for p in points) / n,
        lon=sum(p.lon for p in points) / n,
    )
