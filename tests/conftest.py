"""
Shared pytest fixtures for territory engine tests.

Loops are laid out in metres on a local east/north grid around ORIGIN and
converted to degrees, so tests can reason about distances directly.
"""

from datetime import datetime, timedelta, timezone
from math import cos, degrees, radians
from typing import Iterable, List, Optional, Sequence, Tuple

import pytest

from territory_engine.core.geometry import EARTH_RADIUS_M
from territory_engine.core.models import GeoPoint, Territory, TimedPoint

ORIGIN = GeoPoint(lat=37.3349, lon=-122.0090)
T0 = datetime(2025, 6, 1, 9, 30, 0, tzinfo=timezone.utc)


# =============================================================================
# GEOMETRY HELPERS
# =============================================================================


def local_point(east_m: float, north_m: float, origin: GeoPoint = ORIGIN) -> GeoPoint:
    """Point ``east_m`` / ``north_m`` metres from ``origin``."""
    dlat = degrees(north_m / EARTH_RADIUS_M)
    dlon = degrees(east_m / (EARTH_RADIUS_M * cos(radians(origin.lat))))
    return GeoPoint(lat=origin.lat + dlat, lon=origin.lon + dlon)


def local_path(coords: Iterable[Tuple[float, float]], origin: GeoPoint = ORIGIN) -> List[GeoPoint]:
    return [local_point(e, n, origin) for e, n in coords]


# 40 m square walked counter-clockwise, 10 m between points, 16 points.
# The last point is 10 m short of the start.
SQUARE_COORDS = (
    [(x, 0) for x in (0, 10, 20, 30)]
    + [(40, y) for y in (0, 10, 20, 30)]
    + [(x, 40) for x in (40, 30, 20, 10)]
    + [(0, y) for y in (40, 30, 20, 10)]
)

# Bow-tie: the two diagonals cross at (20, 20), inside a segment of each
FIGURE_EIGHT_COORDS = (
    [(v, v) for v in (0, 8, 16, 24, 32, 40)]
    + [(40, y) for y in (30, 20, 10, 0)]
    + [(32, 8), (24, 16), (16, 24), (8, 32), (0, 40)]
    + [(0, y) for y in (30, 20, 10)]
)


def make_fixes(
    points: Sequence[GeoPoint],
    start: datetime = T0,
    step_s: float = 2.0,
    accuracy_m: Optional[float] = 5.0,
) -> List[TimedPoint]:
    """One fix per point, ``step_s`` seconds apart."""
    return [
        TimedPoint(point=p, timestamp=start + timedelta(seconds=i * step_s), horizontal_accuracy_m=accuracy_m)
        for i, p in enumerate(points)
    ]


def make_fix(point: GeoPoint, at_s: float, accuracy_m: Optional[float] = 5.0) -> TimedPoint:
    return TimedPoint(point=point, timestamp=T0 + timedelta(seconds=at_s), horizontal_accuracy_m=accuracy_m)


def make_territory(
    territory_id: str,
    owner_id: str,
    points: Sequence[GeoPoint],
    is_active: bool = True,
) -> Territory:
    return Territory.model_validate(
        {
            "id": territory_id,
            "user_id": owner_id,
            "path": [{"lat": p.lat, "lon": p.lon} for p in points],
            "area": 0.0,
            "point_count": len(points),
            "is_active": is_active,
        }
    )


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def square_path() -> List[GeoPoint]:
    return local_path(SQUARE_COORDS)


@pytest.fixture
def figure_eight_path() -> List[GeoPoint]:
    return local_path(FIGURE_EIGHT_COORDS)


@pytest.fixture
def square_fixes(square_path) -> List[TimedPoint]:
    return make_fixes(square_path)


@pytest.fixture
def foreign_square() -> Territory:
    """Another player's 40 m square, with its south-west corner at ORIGIN."""
    return make_territory("terr-foreign-0001", "owner-b", local_path([(0, 0), (40, 0), (40, 40), (0, 40)]))


@pytest.fixture
def own_square() -> Territory:
    return make_territory("terr-own-0001", "OWNER-A", local_path([(0, 0), (40, 0), (40, 40), (0, 40)]))
