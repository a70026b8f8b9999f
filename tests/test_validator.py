"""Tests for the territory validator gates."""

import math

import pytest

from conftest import local_path
from territory_engine.config import Settings
from territory_engine.core.models import FailureReason
from territory_engine.core.validator import TerritoryValidator


def _small_circle(radius_m: float, n: int):
    return local_path(
        [(radius_m * math.cos(2 * math.pi * k / n), radius_m * math.sin(2 * math.pi * k / n)) for k in range(n)]
    )


# 50 m x 4 m strip: 104 m walked, 200 m² enclosed
THIN_STRIP = (
    [(x, 0) for x in range(0, 55, 5)]
    + [(x, 4) for x in (50, 40, 30, 20, 10, 0)]
)


class TestTerritoryValidator:
    def setup_method(self):
        self.validator = TerritoryValidator()

    def test_square_is_valid(self, square_path):
        verdict = self.validator.validate(square_path)
        assert verdict.valid
        assert verdict.failure_reason is None
        assert verdict.message is None
        assert verdict.enclosed_area_m2 == pytest.approx(1600.0, rel=0.01)

    def test_insufficient_points(self, square_path):
        verdict = self.validator.validate(square_path[:10])
        assert not verdict.valid
        assert verdict.failure_reason is FailureReason.INSUFFICIENT_POINTS
        assert (verdict.actual, verdict.required) == (10.0, 15.0)
        assert verdict.message == "Not enough points: 10 (need >= 15)"

    def test_insufficient_distance(self):
        verdict = self.validator.validate(_small_circle(2.0, 16))
        assert verdict.failure_reason is FailureReason.INSUFFICIENT_DISTANCE
        assert verdict.actual < 100.0

    def test_self_intersecting(self, figure_eight_path):
        verdict = self.validator.validate(figure_eight_path)
        assert verdict.failure_reason is FailureReason.SELF_INTERSECTING
        assert "figure eight" in verdict.message

    def test_insufficient_area(self):
        verdict = self.validator.validate(local_path(THIN_STRIP))
        assert verdict.failure_reason is FailureReason.INSUFFICIENT_AREA
        assert verdict.enclosed_area_m2 == pytest.approx(200.0, rel=0.02)
        assert verdict.required == 300.0

    def test_verdict_always_carries_area(self, square_path):
        verdict = self.validator.validate(square_path[:10])
        assert verdict.enclosed_area_m2 > 0

    def test_idempotent(self, square_path, figure_eight_path):
        for path in (square_path, figure_eight_path):
            assert self.validator.validate(path) == self.validator.validate(path)

    def test_from_settings(self, square_path):
        strict = TerritoryValidator.from_settings(Settings(min_enclosed_area_m2=2000.0))
        verdict = strict.validate(square_path)
        assert verdict.failure_reason is FailureReason.INSUFFICIENT_AREA
