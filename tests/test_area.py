"""Tests for the spherical shoelace area."""

import pytest

from conftest import SQUARE_COORDS, local_path
from territory_engine.core.area import enclosed_area


class TestEnclosedArea:
    def test_forty_metre_square(self, square_path):
        assert enclosed_area(square_path) == pytest.approx(1600.0, rel=0.01)

    def test_rectangle(self):
        rect = local_path([(0, 0), (50, 0), (50, 20), (0, 20)])
        assert enclosed_area(rect) == pytest.approx(1000.0, rel=0.01)

    def test_invariant_under_rotation(self, square_path):
        """Starting the loop at a different vertex gives the same area."""
        base = enclosed_area(square_path)
        for k in (1, 5, 11):
            rotated = square_path[k:] + square_path[:k]
            assert enclosed_area(rotated) == pytest.approx(base, rel=1e-9)

    def test_invariant_under_reversal(self, square_path):
        assert enclosed_area(list(reversed(square_path))) == pytest.approx(enclosed_area(square_path), rel=1e-9)

    @pytest.mark.parametrize("n", [0, 1, 2])
    def test_fewer_than_three_points(self, n):
        assert enclosed_area(local_path(SQUARE_COORDS[:n])) == 0.0

    def test_never_negative(self, square_path):
        assert enclosed_area(list(reversed(square_path))) > 0
