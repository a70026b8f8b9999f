"""Loop closure: has the walker come back near the starting point?"""
from __future__ import annotations

import logging
from typing import Optional, Sequence

from territory_engine.core.geometry import haversine_m
from territory_engine.core.models import ClosureState, GeoPoint

log = logging.getLogger(__name__)

DEFAULT_CLOSURE_THRESHOLD_M = 30.0
# Lower than the validation minimum so closure fires before full validation
DEFAULT_CLOSURE_MIN_POINTS = 8


def distance_to_start(path: Sequence[GeoPoint]) -> Optional[float]:
    """Metres from the last point back to the first, None for an empty path."""
    if not path:
        return None
    return haversine_m(path[0], path[-1])


def check_closure(
    path: Sequence[GeoPoint],
    state: ClosureState,
    *,
    min_points: int = DEFAULT_CLOSURE_MIN_POINTS,
    threshold_m: float = DEFAULT_CLOSURE_THRESHOLD_M,
    logger: Optional[logging.Logger] = None,
) -> ClosureState:
    """Return the next closure state.

    A CLOSED path stays CLOSED without re-measuring; only clearing the path
    reopens it.
    """
    if state is ClosureState.CLOSED:
        return state

    if len(path) < min_points:
        return ClosureState.OPEN

    logger = logger or log
    distance = distance_to_start(path)
    logger.debug("Distance to start %.1fm (need <= %.0fm)", distance, threshold_m)

    if distance is not None and distance <= threshold_m:
        logger.info("Loop closed %.1fm from start after %d points", distance, len(path))
        return ClosureState.CLOSED
    return ClosureState.OPEN
