"""Tests for fix filtering and the speed guard."""

from datetime import timedelta

import pytest

from conftest import T0, local_point, make_fix
from territory_engine.config import Settings
from territory_engine.core.sample_filter import SPACING_PROFILES, RejectReason, SampleFilter


@pytest.fixture
def sf():
    return SampleFilter()


class TestAccuracyGate:
    @pytest.mark.parametrize("accuracy", [None, -1.0])
    def test_invalid_accuracy_rejected(self, sf, accuracy):
        path = []
        decision = sf.consider(make_fix(local_point(0, 0), 0, accuracy_m=accuracy), path)
        assert not decision.accepted
        assert decision.reason is RejectReason.INVALID_ACCURACY
        assert path == []

    def test_poor_accuracy_rejected_even_for_first_fix(self, sf):
        path = []
        decision = sf.consider(make_fix(local_point(0, 0), 0, accuracy_m=150.0), path)
        assert decision.reason is RejectReason.LOW_ACCURACY
        assert path == []

    def test_accuracy_at_ceiling_accepted(self, sf):
        path = []
        assert sf.consider(make_fix(local_point(0, 0), 0, accuracy_m=100.0), path).accepted


class TestFirstFix:
    def test_first_fix_bypasses_speed_and_spacing(self, sf):
        path = []
        decision = sf.consider(make_fix(local_point(0, 0), 0), path)
        assert decision.accepted
        assert decision.speed_kmh is None
        assert len(path) == 1
        assert sf.last_accepted_at == T0


class TestSpeedGate:
    def test_short_interval_skips_speed_check(self, sf):
        """20 m in 0.2 s would be 360 km/h, but the interval is too short to judge."""
        path = []
        sf.consider(make_fix(local_point(0, 0), 0), path)
        decision = sf.consider(make_fix(local_point(20, 0), 0.2), path)
        assert decision.accepted
        assert decision.speed_kmh is None
        assert len(path) == 2

    def test_over_speed_rejected_with_transient_warning(self, sf):
        path = []
        sf.consider(make_fix(local_point(0, 0), 0), path)
        decision = sf.consider(make_fix(local_point(40, 0), 1), path)  # 144 km/h

        assert not decision.accepted
        assert decision.reason is RejectReason.OVER_SPEED
        assert decision.speed_kmh == pytest.approx(144.0, rel=1e-2)
        assert len(path) == 1

        at = T0 + timedelta(seconds=1)
        warning = sf.active_warning(at + timedelta(seconds=2.9))
        assert warning is not None and warning.rejected
        assert sf.active_warning(at + timedelta(seconds=3)) is None

    def test_fast_but_plausible_is_kept_with_warning(self, sf):
        path = []
        sf.consider(make_fix(local_point(0, 0), 0), path)
        decision = sf.consider(make_fix(local_point(20, 0), 1), path)  # 72 km/h

        assert decision.accepted
        assert len(path) == 2
        warning = sf.active_warning(T0 + timedelta(seconds=1))
        assert warning is not None and not warning.rejected

    def test_walking_speed_clears_warning(self, sf):
        path = []
        sf.consider(make_fix(local_point(0, 0), 0), path)
        sf.consider(make_fix(local_point(20, 0), 1), path)
        sf.consider(make_fix(local_point(30, 0), 3), path)  # 18 km/h
        assert sf.active_warning(T0 + timedelta(seconds=3)) is None

    def test_rejected_fix_does_not_move_baseline(self, sf):
        path = []
        sf.consider(make_fix(local_point(0, 0), 0), path)
        sf.consider(make_fix(local_point(400, 0), 2), path)
        assert sf.last_accepted_at == T0


class TestSpacing:
    def test_too_close_rejected(self, sf):
        path = []
        sf.consider(make_fix(local_point(0, 0), 0), path)
        decision = sf.consider(make_fix(local_point(2, 0), 2), path)
        assert decision.reason is RejectReason.TOO_CLOSE
        assert len(path) == 1

    def test_forced_after_grace_period(self, sf):
        path = []
        sf.consider(make_fix(local_point(0, 0), 0), path)
        decision = sf.consider(make_fix(local_point(1, 0), 11), path)
        assert decision.accepted
        assert decision.forced
        assert len(path) == 2

    def test_strict_profile(self):
        sf = SampleFilter(min_spacing_m=SPACING_PROFILES["strict"])
        path = []
        sf.consider(make_fix(local_point(0, 0), 0), path)
        assert not sf.consider(make_fix(local_point(8, 0), 4), path).accepted
        assert sf.consider(make_fix(local_point(12, 0), 6), path).accepted


class TestLifecycle:
    def test_reset_clears_baseline_and_warning(self, sf):
        path = []
        sf.consider(make_fix(local_point(0, 0), 0), path)
        sf.consider(make_fix(local_point(40, 0), 1), path)
        sf.reset()
        assert sf.last_accepted_at is None
        assert sf.active_warning(T0) is None

    def test_from_settings_profile(self):
        sf = SampleFilter.from_settings(Settings(spacing_profile="standard"))
        assert sf.min_spacing_m == 5.0

    def test_unknown_profile_rejected(self):
        with pytest.raises(ValueError, match="Unknown spacing profile"):
            SampleFilter.from_settings(Settings(spacing_profile="sprint"))
