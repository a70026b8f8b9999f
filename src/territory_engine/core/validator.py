"""Pass/fail verdict for a closed loop."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from territory_engine.core.area import enclosed_area
from territory_engine.core.geometry import path_length_m
from territory_engine.core.intersection import has_self_intersection
from territory_engine.core.models import FailureReason, GeoPoint, ValidationVerdict

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class TerritoryValidator:
    """
    Ordered gate pipeline, stops at the first failing gate:

    1. point count
    2. total walked distance
    3. self-intersection
    4. enclosed area

    The verdict is a pure function of the path contents, so validating the
    same path twice yields equal verdicts.
    """

    min_points: int = 15
    min_total_distance_m: float = 100.0
    min_area_m2: float = 300.0

    @classmethod
    def from_settings(cls, s) -> "TerritoryValidator":
        return cls(
            min_points=s.min_validation_points,
            min_total_distance_m=s.min_total_distance_m,
            min_area_m2=s.min_enclosed_area_m2,
        )

    def validate(
        self,
        path: Sequence[GeoPoint],
        logger: Optional[logging.Logger] = None,
    ) -> ValidationVerdict:
        logger = logger or log
        snapshot = tuple(path)
        area = enclosed_area(snapshot)

        logger.info("Validating territory (%d points)", len(snapshot))

        if len(snapshot) < self.min_points:
            return self._fail(
                logger, FailureReason.INSUFFICIENT_POINTS, area, len(snapshot), self.min_points
            )
        logger.info("Point count ok: %d", len(snapshot))

        distance = path_length_m(snapshot)
        if distance < self.min_total_distance_m:
            return self._fail(
                logger, FailureReason.INSUFFICIENT_DISTANCE, area, distance, self.min_total_distance_m
            )
        logger.info("Distance ok: %.0fm", distance)

        if has_self_intersection(snapshot, logger=logger):
            return self._fail(logger, FailureReason.SELF_INTERSECTING, area, None, None)

        if area < self.min_area_m2:
            return self._fail(logger, FailureReason.INSUFFICIENT_AREA, area, area, self.min_area_m2)
        logger.info("Area ok: %.0fm²", area)

        logger.info("Territory valid, area %.0fm²", area)
        return ValidationVerdict(valid=True, enclosed_area_m2=area)

    @staticmethod
    def _fail(
        logger: logging.Logger,
        reason: FailureReason,
        area: float,
        actual: Optional[float],
        required: Optional[float],
    ) -> ValidationVerdict:
        verdict = ValidationVerdict(
            valid=False,
            failure_reason=reason,
            enclosed_area_m2=area,
            actual=None if actual is None else float(actual),
            required=None if required is None else float(required),
        )
        logger.warning("Validation failed: %s", verdict.message)
        return verdict
