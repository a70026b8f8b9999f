"""Tests for start-point, path and proximity collision checks."""

import math

import pytest

from conftest import local_path, local_point, make_territory
from territory_engine.core.collision import (
    ProximityTiers,
    check_path_against_territories,
    check_path_comprehensive,
    check_start_point,
    foreign_territories,
    min_distance_to_territories,
    warning_level_for_distance,
)
from territory_engine.core.geometry import centroid
from territory_engine.core.models import CollisionKind, WarningLevel


class TestForeignTerritories:
    def test_owner_match_is_case_insensitive(self, own_square, foreign_square):
        assert foreign_territories([own_square, foreign_square], "owner-a") == [foreign_square]

    def test_anonymous_actor_sees_everything_as_foreign(self, own_square, foreign_square):
        assert len(foreign_territories([own_square, foreign_square], None)) == 2


class TestStartPoint:
    def test_centroid_of_foreign_territory_is_violation(self, foreign_square):
        verdict = check_start_point(centroid(foreign_square.vertices), [foreign_square], "owner-a")
        assert verdict.has_collision
        assert verdict.collision_kind is CollisionKind.POINT_IN_TERRITORY
        assert verdict.warning_level is WarningLevel.VIOLATION

    def test_own_territory_is_allowed(self, own_square):
        verdict = check_start_point(centroid(own_square.vertices), [own_square], "owner-a")
        assert not verdict.has_collision

    def test_outside_is_safe(self, foreign_square):
        verdict = check_start_point(local_point(200, 200), [foreign_square], "owner-a")
        assert not verdict.has_collision
        assert verdict.warning_level is WarningLevel.SAFE

    def test_degenerate_territory_ignored(self):
        line = make_territory("terr-line", "owner-b", local_path([(0, 0), (40, 40)]))
        assert not check_start_point(local_point(20, 20), [line], "owner-a").has_collision


class TestPathAgainstTerritories:
    def test_crossing_boundary(self, foreign_square):
        verdict = check_path_against_territories(local_path([(-10, 20), (10, 20)]), [foreign_square])
        assert verdict.collision_kind is CollisionKind.PATH_CROSSES_BOUNDARY
        assert verdict.message == "Your path cannot cross another player's territory"

    def test_latest_point_inside(self, foreign_square):
        verdict = check_path_against_territories(local_path([(10, 10), (20, 20)]), [foreign_square])
        assert verdict.collision_kind is CollisionKind.POINT_IN_TERRITORY

    def test_single_point_path_is_safe(self, foreign_square):
        assert not check_path_against_territories(local_path([(20, 20)]), [foreign_square]).has_collision


class TestProximity:
    @pytest.mark.parametrize(
        "distance,level",
        [
            (math.inf, WarningLevel.SAFE),
            (100.1, WarningLevel.SAFE),
            (100.0, WarningLevel.CAUTION),
            (50.1, WarningLevel.CAUTION),
            (50.0, WarningLevel.WARNING),
            (25.1, WarningLevel.WARNING),
            (25.0, WarningLevel.DANGER),
            (0.0, WarningLevel.DANGER),
        ],
    )
    def test_tiers(self, distance, level):
        assert warning_level_for_distance(distance) is level

    def test_custom_tiers(self):
        tiers = ProximityTiers(caution_m=200.0, warning_m=150.0, danger_m=100.0)
        assert warning_level_for_distance(120.0, tiers) is WarningLevel.DANGER

    def test_min_distance_without_territories(self):
        assert min_distance_to_territories(local_point(0, 0), []) == math.inf

    def test_min_distance_is_to_nearest_vertex(self, foreign_square):
        assert min_distance_to_territories(local_point(60, 0), [foreign_square]) == pytest.approx(20.0, rel=1e-3)

    def test_severity_ordering(self):
        assert WarningLevel.SAFE < WarningLevel.CAUTION < WarningLevel.WARNING
        assert WarningLevel.DANGER < WarningLevel.VIOLATION
        assert max(WarningLevel) is WarningLevel.VIOLATION


class TestComprehensive:
    def test_sixty_metres_away_is_caution(self, foreign_square):
        """(100, 20) is ~63 m from the nearest corner (40, 0)."""
        verdict = check_path_comprehensive(local_path([(120, 20), (100, 20)]), [foreign_square], "owner-a")
        assert not verdict.has_collision
        assert verdict.warning_level is WarningLevel.CAUTION
        assert verdict.nearest_distance_m == pytest.approx(63.25, rel=1e-2)
        assert verdict.message.startswith("Caution")

    def test_danger_close(self, foreign_square):
        verdict = check_path_comprehensive(local_path([(80, 0), (60, 0)]), [foreign_square], "owner-a")
        assert verdict.warning_level is WarningLevel.DANGER
        assert not verdict.has_collision

    def test_far_away_is_safe(self, foreign_square):
        verdict = check_path_comprehensive(local_path([(300, 0), (290, 0)]), [foreign_square], "owner-a")
        assert verdict.warning_level is WarningLevel.SAFE
        assert verdict.message is None

    def test_hard_collision_wins(self, foreign_square):
        verdict = check_path_comprehensive(local_path([(-10, 20), (10, 20)]), [foreign_square], "owner-a")
        assert verdict.warning_level is WarningLevel.VIOLATION

    def test_own_territory_never_collides(self, own_square):
        verdict = check_path_comprehensive(local_path([(-10, 20), (10, 20)]), [own_square], "owner-a")
        assert not verdict.has_collision
        assert verdict.nearest_distance_m == math.inf
