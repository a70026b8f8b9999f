"""GPS fix filtering and anti-cheat speed gating.

Every fix from the sampler goes through :meth:`SampleFilter.consider`.
Rejections are never fatal: the fix is dropped and tracking continues.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, List, Optional

from territory_engine.core.geometry import haversine_m
from territory_engine.core.models import GeoPoint, TimedPoint

log = logging.getLogger(__name__)

# Minimum spacing between accepted points (metres) per sampling profile
SPACING_PROFILES: Dict[str, float] = {
    "relaxed": 3.0,
    "standard": 5.0,
    "strict": 10.0,
}


class RejectReason(str, Enum):
    INVALID_ACCURACY = "invalid_accuracy"
    LOW_ACCURACY = "low_accuracy"
    OVER_SPEED = "over_speed"
    TOO_CLOSE = "too_close"


@dataclass(frozen=True)
class FilterDecision:
    accepted: bool
    reason: Optional[RejectReason] = None
    speed_kmh: Optional[float] = None
    distance_m: Optional[float] = None
    # Accepted only because the grace period since the last point ran out
    forced: bool = False


@dataclass(frozen=True)
class SpeedWarning:
    message: str
    speed_kmh: float
    # The fix was dropped (GPS jump) rather than kept
    rejected: bool
    expires_at: datetime

    def is_active(self, now: datetime) -> bool:
        return now < self.expires_at


class SampleFilter:
    """Decides whether a fix extends the path; owns the speed baseline."""

    def __init__(
        self,
        *,
        max_accuracy_m: float = 100.0,
        speed_check_min_interval_s: float = 0.5,
        speed_reject_kmh: float = 100.0,
        speed_warn_kmh: float = 50.0,
        warning_duration_s: float = 3.0,
        min_spacing_m: float = SPACING_PROFILES["relaxed"],
        force_accept_after_s: float = 10.0,
        logger: Optional[logging.Logger] = None,
    ):
        self.max_accuracy_m = max_accuracy_m
        self.speed_check_min_interval_s = speed_check_min_interval_s
        self.speed_reject_kmh = speed_reject_kmh
        self.speed_warn_kmh = speed_warn_kmh
        self.warning_duration_s = warning_duration_s
        self.min_spacing_m = min_spacing_m
        self.force_accept_after_s = force_accept_after_s
        self.log = logger or log

        self.last_accepted_at: Optional[datetime] = None
        self._warning: Optional[SpeedWarning] = None

    @classmethod
    def from_settings(cls, s, logger: Optional[logging.Logger] = None) -> "SampleFilter":
        try:
            spacing = SPACING_PROFILES[s.spacing_profile]
        except KeyError:
            raise ValueError(
                f"Unknown spacing profile {s.spacing_profile!r}, expected one of {sorted(SPACING_PROFILES)}"
            ) from None
        return cls(
            max_accuracy_m=s.max_horizontal_accuracy_m,
            speed_check_min_interval_s=s.speed_check_min_interval_s,
            speed_reject_kmh=s.speed_reject_kmh,
            speed_warn_kmh=s.speed_warn_kmh,
            warning_duration_s=s.speed_warning_duration_s,
            min_spacing_m=spacing,
            force_accept_after_s=s.force_accept_after_s,
            logger=logger,
        )

    # ------------------------------------------------------------------

    def active_warning(self, now: datetime) -> Optional[SpeedWarning]:
        """The current speed warning, or None once it has expired."""
        if self._warning is not None and not self._warning.is_active(now):
            self._warning = None
        return self._warning

    def reset(self) -> None:
        self.last_accepted_at = None
        self._warning = None

    def consider(self, fix: TimedPoint, path: List[GeoPoint]) -> FilterDecision:
        """Run the gates in order; append to ``path`` when the fix is accepted."""
        if not fix.has_valid_accuracy:
            self.log.debug("Invalid accuracy %s, fix skipped", fix.horizontal_accuracy_m)
            return FilterDecision(accepted=False, reason=RejectReason.INVALID_ACCURACY)
        if fix.horizontal_accuracy_m > self.max_accuracy_m:
            self.log.debug("Poor accuracy %.0fm, fix skipped", fix.horizontal_accuracy_m)
            return FilterDecision(accepted=False, reason=RejectReason.LOW_ACCURACY)

        if not path:
            self._accept(fix, path)
            self.log.info("Recorded point 1 (start)")
            return FilterDecision(accepted=True)

        last = path[-1]
        distance = haversine_m(last, fix.point)
        elapsed = self._elapsed_s(fix)

        speed_kmh: Optional[float] = None
        if elapsed is not None and elapsed > self.speed_check_min_interval_s:
            speed_kmh = (distance / elapsed) * 3.6
            if not self._speed_ok(speed_kmh, fix.timestamp):
                return FilterDecision(
                    accepted=False,
                    reason=RejectReason.OVER_SPEED,
                    speed_kmh=speed_kmh,
                    distance_m=distance,
                )

        forced = False
        if distance < self.min_spacing_m:
            if elapsed is not None and elapsed > self.force_accept_after_s:
                forced = True
                self.log.debug("%.0fs since last point, forcing record", elapsed)
            else:
                return FilterDecision(
                    accepted=False,
                    reason=RejectReason.TOO_CLOSE,
                    speed_kmh=speed_kmh,
                    distance_m=distance,
                )

        self._accept(fix, path)
        self.log.info("Recorded point %d, %.1fm from previous", len(path), distance)
        return FilterDecision(accepted=True, speed_kmh=speed_kmh, distance_m=distance, forced=forced)

    # ------------------------------------------------------------------

    def _elapsed_s(self, fix: TimedPoint) -> Optional[float]:
        if self.last_accepted_at is None:
            return None
        return (fix.timestamp - self.last_accepted_at).total_seconds()

    def _accept(self, fix: TimedPoint, path: List[GeoPoint]) -> None:
        path.append(fix.point)
        self.last_accepted_at = fix.timestamp

    def _speed_ok(self, speed_kmh: float, at: datetime) -> bool:
        expires = at + timedelta(seconds=self.warning_duration_s)

        if speed_kmh > self.speed_reject_kmh:
            # Most likely a GPS jump: drop this fix only, keep tracking
            self._warning = SpeedWarning(
                message=f"Abnormal speed ({speed_kmh:.1f} km/h), point skipped",
                speed_kmh=speed_kmh,
                rejected=True,
                expires_at=expires,
            )
            self.log.warning("Abnormal speed %.1f km/h, point skipped", speed_kmh)
            return False

        if speed_kmh > self.speed_warn_kmh:
            self._warning = SpeedWarning(
                message=f"Moving fast ({speed_kmh:.1f} km/h)",
                speed_kmh=speed_kmh,
                rejected=False,
                expires_at=expires,
            )
            self.log.warning("Moving fast %.1f km/h", speed_kmh)
            return True

        self._warning = None
        return True
