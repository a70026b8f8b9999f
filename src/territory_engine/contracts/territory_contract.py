# Row shape expected by the `territories` table. Field names, the WKT ring
# and number formatting must stay byte-compatible with existing rows.

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Sequence, Tuple

from shapely.geometry import MultiPoint

from territory_engine.core.models import GeoPoint

# Placeholder the backend accepts for a degenerate ring
_EMPTY_POLYGON_WKT = "SRID=4326;POLYGON((0 0, 0 0, 0 0, 0 0))"


@dataclass(frozen=True)
class BoundingBox:
    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float


@dataclass(frozen=True)
class TerritoryUpload:
    user_id: str
    path: List[Dict[str, float]]
    polygon: str
    bbox_min_lat: float
    bbox_max_lat: float
    bbox_min_lon: float
    bbox_max_lon: float
    area: float
    point_count: int
    started_at: str
    is_active: bool = True

    def to_row(self) -> Dict[str, Any]:
        return asdict(self)


def _num(x: float) -> str:
    # Shortest round-trip repr, e.g. 116.397 or 1e-05
    return repr(float(x))


def path_to_json(points: Sequence[GeoPoint]) -> List[Dict[str, float]]:
    return [{"lat": p.lat, "lon": p.lon} for p in points]


def path_to_wkt(points: Sequence[GeoPoint]) -> str:
    """``SRID=4326;POLYGON((lon lat, ..., first))`` with the ring closed."""
    if len(points) < 3:
        return _EMPTY_POLYGON_WKT
    ring = [f"{_num(p.lon)} {_num(p.lat)}" for p in points]
    ring.append(ring[0])
    return f"SRID=4326;POLYGON(({', '.join(ring)}))"


def bounding_box(points: Sequence[GeoPoint]) -> BoundingBox:
    if not points:
        return BoundingBox(0.0, 0.0, 0.0, 0.0)
    # shapely bounds are (minx, miny, maxx, maxy) with x = lon
    min_lon, min_lat, max_lon, max_lat = MultiPoint([(p.lon, p.lat) for p in points]).bounds
    return BoundingBox(min_lat=min_lat, max_lat=max_lat, min_lon=min_lon, max_lon=max_lon)


def iso8601_utc(dt: datetime) -> str:
    """Second precision, ``Z`` suffix. Naive datetimes are taken as UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def build_territory_upload(
    points: Sequence[GeoPoint],
    area: float,
    started_at: datetime,
    owner_id: str,
) -> TerritoryUpload:
    pts: Tuple[GeoPoint, ...] = tuple(points)
    bbox = bounding_box(pts)
    return TerritoryUpload(
        user_id=owner_id,
        path=path_to_json(pts),
        polygon=path_to_wkt(pts),
        bbox_min_lat=bbox.min_lat,
        bbox_max_lat=bbox.max_lat,
        bbox_min_lon=bbox.min_lon,
        bbox_max_lon=bbox.max_lon,
        area=area,
        point_count=len(pts),
        started_at=iso8601_utc(started_at),
    )
