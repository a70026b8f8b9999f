"""Enclosed area of a closed walking loop."""
from __future__ import annotations

from math import radians, sin
from typing import Sequence

from territory_engine.core.geometry import EARTH_RADIUS_M
from territory_engine.core.models import GeoPoint


def enclosed_area(path: Sequence[GeoPoint]) -> float:
    """
    Spherical shoelace approximation in square metres.

    Sums (lon2 - lon1) * (2 + sin(lat1) + sin(lat2)) over every edge,
    wrapping the last vertex back to the first, then scales by R^2 / 2.
    Only meaningful for loops that are small next to the Earth's radius.
    """
    pts = tuple(path)
    if len(pts) < 3:
        return 0.0

    total = 0.0
    n = len(pts)
    for i in range(n):
        a = pts[i]
        b = pts[(i + 1) % n]
        total += radians(b.lon - a.lon) * (2 + sin(radians(a.lat)) + sin(radians(b.lat)))

    return abs(total * EARTH_RADIUS_M * EARTH_RADIUS_M / 2.0)
