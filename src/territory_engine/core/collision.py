"""Collision checks between a claim in progress and foreign territories.

All functions are pure over the territory snapshot they are handed; none of
them fetch, cache or mutate anything.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from territory_engine.core.geometry import haversine_m, point_in_polygon, segments_intersect
from territory_engine.core.models import (
    CollisionKind,
    CollisionVerdict,
    GeoPoint,
    Territory,
    WarningLevel,
)

log = logging.getLogger(__name__)

__all__ = [
    "ProximityTiers",
    "check_path_against_territories",
    "check_path_comprehensive",
    "check_start_point",
    "foreign_territories",
    "min_distance_to_territories",
    "point_in_polygon",
    "warning_level_for_distance",
]


@dataclass(frozen=True)
class ProximityTiers:
    """Upper bounds (metres) of each advisory tier; beyond ``caution_m`` is safe."""

    caution_m: float = 100.0
    warning_m: float = 50.0
    danger_m: float = 25.0

    @classmethod
    def from_settings(cls, s) -> "ProximityTiers":
        return cls(
            caution_m=s.caution_distance_m,
            warning_m=s.warning_distance_m,
            danger_m=s.danger_distance_m,
        )


DEFAULT_TIERS = ProximityTiers()


def foreign_territories(territories: Iterable[Territory], actor_id: Optional[str]) -> List[Territory]:
    """Territories not owned by ``actor_id`` (owner ids compared case-insensitively)."""
    return [t for t in territories if not t.is_owned_by(actor_id)]


def _violation(kind: CollisionKind, message: str) -> CollisionVerdict:
    return CollisionVerdict(
        has_collision=True,
        collision_kind=kind,
        message=message,
        nearest_distance_m=0.0,
        warning_level=WarningLevel.VIOLATION,
    )


# ---------------------------------------------------------------------------
# Start point
# ---------------------------------------------------------------------------

def check_start_point(
    point: GeoPoint,
    territories: Iterable[Territory],
    actor_id: Optional[str],
    logger: Optional[logging.Logger] = None,
) -> CollisionVerdict:
    """Block starting a claim inside someone else's territory."""
    logger = logger or log
    for territory in foreign_territories(territories, actor_id):
        polygon = territory.vertices
        if len(polygon) < 3:
            continue
        if point_in_polygon(point, polygon):
            logger.error("Start point inside territory %s", territory.id)
            return _violation(
                CollisionKind.POINT_IN_TERRITORY,
                "Cannot start claiming inside another player's territory",
            )
    return CollisionVerdict.safe()


# ---------------------------------------------------------------------------
# Path in progress
# ---------------------------------------------------------------------------

def check_path_against_territories(
    path: Sequence[GeoPoint],
    foreign: Iterable[Territory],
    logger: Optional[logging.Logger] = None,
) -> CollisionVerdict:
    """
    Hard collision check for a path against already-filtered foreign territories.

    Every path segment is tested against every polygon edge (closing edge
    included); then the latest point is tested for containment.
    """
    logger = logger or log
    snapshot = tuple(path)
    if len(snapshot) < 2:
        return CollisionVerdict.safe()

    polygons = [(t.id, t.vertices) for t in foreign]
    polygons = [(tid, poly) for tid, poly in polygons if len(poly) >= 3]
    if not polygons:
        return CollisionVerdict.safe()

    for i in range(len(snapshot) - 1):
        a = snapshot[i]
        b = snapshot[i + 1]
        for tid, poly in polygons:
            n = len(poly)
            for k in range(n):
                if segments_intersect(a, b, poly[k], poly[(k + 1) % n]):
                    logger.error("Path segment %d-%d crosses boundary of territory %s", i, i + 1, tid)
                    return _violation(
                        CollisionKind.PATH_CROSSES_BOUNDARY,
                        "Your path cannot cross another player's territory",
                    )

    latest = snapshot[-1]
    for tid, poly in polygons:
        if point_in_polygon(latest, poly):
            logger.error("Latest point entered territory %s", tid)
            return _violation(
                CollisionKind.POINT_IN_TERRITORY,
                "Your path cannot enter another player's territory",
            )

    return CollisionVerdict.safe()


# ---------------------------------------------------------------------------
# Proximity
# ---------------------------------------------------------------------------

def min_distance_to_territories(point: GeoPoint, foreign: Iterable[Territory]) -> float:
    """Nearest vertex distance in metres; ``inf`` when there is nothing to compare."""
    best = math.inf
    for territory in foreign:
        for vertex in territory.vertices:
            best = min(best, haversine_m(point, vertex))
    return best


def warning_level_for_distance(distance_m: float, tiers: ProximityTiers = DEFAULT_TIERS) -> WarningLevel:
    if distance_m > tiers.caution_m:
        return WarningLevel.SAFE
    if distance_m > tiers.warning_m:
        return WarningLevel.CAUTION
    if distance_m > tiers.danger_m:
        return WarningLevel.WARNING
    return WarningLevel.DANGER


def _proximity_message(level: WarningLevel, distance_m: float) -> Optional[str]:
    d = int(distance_m)
    if level is WarningLevel.CAUTION:
        return f"Caution: {d}m from another player's territory"
    if level is WarningLevel.WARNING:
        return f"Warning: approaching another player's territory ({d}m)"
    if level is WarningLevel.DANGER:
        return f"Danger: about to enter another player's territory ({d}m)"
    return None


def check_path_comprehensive(
    path: Sequence[GeoPoint],
    territories: Iterable[Territory],
    actor_id: Optional[str],
    tiers: ProximityTiers = DEFAULT_TIERS,
    logger: Optional[logging.Logger] = None,
) -> CollisionVerdict:
    """Per-tick check: hard collision first, otherwise a proximity advisory."""
    logger = logger or log
    snapshot = tuple(path)
    if len(snapshot) < 2:
        return CollisionVerdict.safe()

    foreign = foreign_territories(territories, actor_id)

    hit = check_path_against_territories(snapshot, foreign, logger=logger)
    if hit.has_collision:
        return hit

    distance = min_distance_to_territories(snapshot[-1], foreign)
    level = warning_level_for_distance(distance, tiers)
    if level is not WarningLevel.SAFE:
        logger.warning("Proximity %s, %.0fm from nearest foreign territory", level.value, distance)

    return CollisionVerdict(
        has_collision=False,
        message=_proximity_message(level, distance),
        nearest_distance_m=distance,
        warning_level=level,
    )
