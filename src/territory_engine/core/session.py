"""One claim attempt: path ownership and the Idle -> Accumulating -> Closed cycle.

A :class:`ClaimSession` is the only writer of its path. Fixes go through the
sample filter; every accepted fix is followed by a closure check, and the
first closure runs validation exactly once. The verdict lives on the
``Closed`` state, so there is no verdict to read (or to go stale) while the
session is idle or still accumulating.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence, Tuple, Union

from territory_engine.contracts.territory_contract import TerritoryUpload, build_territory_upload
from territory_engine.core.claim_log import ClaimLog, SUCCESS_FLAG, release_session_logger, session_logger
from territory_engine.core.closure import check_closure, distance_to_start
from territory_engine.core.collision import (
    DEFAULT_TIERS,
    ProximityTiers,
    check_path_comprehensive,
    check_start_point,
)
from territory_engine.core.models import (
    ClosureState,
    CollisionVerdict,
    GeoPoint,
    Territory,
    TimedPoint,
    ValidationVerdict,
    WarningLevel,
)
from territory_engine.core.sample_filter import FilterDecision, SampleFilter, SpeedWarning
from territory_engine.core.validator import TerritoryValidator


class ClaimSessionError(RuntimeError):
    """Operation not allowed in the session's current state."""


# ---------------------------------------------------------------------------
# States
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Accumulating:
    started_at: datetime


@dataclass(frozen=True)
class Closed:
    started_at: datetime
    verdict: ValidationVerdict
    distance_to_start_m: float


ClaimState = Union[Idle, Accumulating, Closed]


@dataclass(frozen=True)
class ClosureEvent:
    path: Tuple[GeoPoint, ...]
    area_m2: float
    verdict: ValidationVerdict


@dataclass(frozen=True)
class FixOutcome:
    # None when the fix arrived after closure and was not considered
    decision: Optional[FilterDecision]
    closure: Optional[ClosureEvent] = None


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

class ClaimSession:
    def __init__(
        self,
        owner_id: str,
        *,
        sample_filter: Optional[SampleFilter] = None,
        validator: Optional[TerritoryValidator] = None,
        closure_threshold_m: float = 30.0,
        closure_min_points: int = 8,
        tiers: ProximityTiers = DEFAULT_TIERS,
        session_id: Optional[str] = None,
        claim_log: Optional[ClaimLog] = None,
    ):
        self.owner_id = owner_id
        self.session_id = session_id or uuid.uuid4().hex[:12]
        self.claim_log = claim_log
        self.log = session_logger(self.session_id, claim_log)

        self.filter = sample_filter or SampleFilter(logger=self.log)
        self.filter.log = self.log
        self.validator = validator or TerritoryValidator()
        self.closure_threshold_m = closure_threshold_m
        self.closure_min_points = closure_min_points
        self.tiers = tiers

        self._path: List[GeoPoint] = []
        self._state: ClaimState = Idle()
        self.last_collision: Optional[CollisionVerdict] = None

    @classmethod
    def from_settings(
        cls,
        owner_id: str,
        s=None,
        *,
        session_id: Optional[str] = None,
        claim_log: Optional[ClaimLog] = None,
    ) -> "ClaimSession":
        if s is None:
            from territory_engine.config import settings as s
        return cls(
            owner_id,
            sample_filter=SampleFilter.from_settings(s),
            validator=TerritoryValidator.from_settings(s),
            closure_threshold_m=s.closure_threshold_m,
            closure_min_points=s.closure_min_points,
            tiers=ProximityTiers.from_settings(s),
            session_id=session_id,
            claim_log=claim_log,
        )

    # ---- Read-only views ----

    @property
    def state(self) -> ClaimState:
        return self._state

    @property
    def path(self) -> Tuple[GeoPoint, ...]:
        """Snapshot of the path; safe to iterate while fixes keep arriving."""
        return tuple(self._path)

    @property
    def is_tracking(self) -> bool:
        return not isinstance(self._state, Idle)

    @property
    def closure_state(self) -> ClosureState:
        return ClosureState.CLOSED if isinstance(self._state, Closed) else ClosureState.OPEN

    @property
    def verdict(self) -> Optional[ValidationVerdict]:
        if isinstance(self._state, Closed):
            return self._state.verdict
        return None

    def speed_warning(self, now: datetime) -> Optional[SpeedWarning]:
        return self.filter.active_warning(now)

    # ---- Transitions ----

    def start(self, now: datetime) -> None:
        """Begin a new attempt, discarding anything left from a previous one."""
        self.reset()
        self._state = Accumulating(started_at=now)
        self.log.info("Claim tracking started")

    def stop(self) -> None:
        if self.is_tracking:
            self.log.info("Tracking stopped with %d points", len(self._path))
        self.reset()

    def reset(self) -> None:
        """Clear path, closure, verdict, speed warning and collision state together."""
        self._state = Idle()
        self._path = []
        self.filter.reset()
        self.last_collision = None

    def close(self) -> None:
        self.reset()
        release_session_logger(self.log, self.claim_log)

    def offer(self, fix: TimedPoint) -> FixOutcome:
        state = self._state
        if isinstance(state, Idle):
            raise ClaimSessionError("Session is not tracking; call start() first")
        if isinstance(state, Closed):
            # Loop already closed: the path is frozen until the session is reset
            return FixOutcome(decision=None)

        decision = self.filter.consider(fix, self._path)
        if not decision.accepted:
            return FixOutcome(decision=decision)

        closure = check_closure(
            self._path,
            ClosureState.OPEN,
            min_points=self.closure_min_points,
            threshold_m=self.closure_threshold_m,
            logger=self.log,
        )
        if closure is ClosureState.OPEN:
            return FixOutcome(decision=decision)

        snapshot = self.path
        verdict = self.validator.validate(snapshot, logger=self.log)
        self._state = Closed(
            started_at=state.started_at,
            verdict=verdict,
            distance_to_start_m=distance_to_start(snapshot) or 0.0,
        )
        if verdict.valid:
            self.log.info(
                "Territory validated, area %.0fm²", verdict.enclosed_area_m2, extra={SUCCESS_FLAG: True}
            )
        return FixOutcome(
            decision=decision,
            closure=ClosureEvent(path=snapshot, area_m2=verdict.enclosed_area_m2, verdict=verdict),
        )

    # ---- Collision ----

    def check_start(self, point: GeoPoint, territories: Sequence[Territory]) -> CollisionVerdict:
        return check_start_point(point, territories, self.owner_id, logger=self.log)

    def check_collision(self, territories: Sequence[Territory]) -> CollisionVerdict:
        """Run the per-tick collision check; a violation stops the session."""
        if not self.is_tracking:
            return CollisionVerdict.safe()

        verdict = check_path_comprehensive(
            self.path, territories, self.owner_id, tiers=self.tiers, logger=self.log
        )
        if verdict.warning_level is WarningLevel.VIOLATION:
            self.log.error("Collision violation, claim stopped: %s", verdict.message)
            self.stop()
        self.last_collision = verdict
        return verdict

    # ---- Hand-off ----

    def upload_payload(self) -> TerritoryUpload:
        state = self._state
        if not isinstance(state, Closed):
            raise ClaimSessionError("Loop is not closed yet")
        if not state.verdict.valid:
            raise ClaimSessionError(f"Territory failed validation: {state.verdict.message}")
        return build_territory_upload(
            self.path,
            area=state.verdict.enclosed_area_m2,
            started_at=state.started_at,
            owner_id=self.owner_id,
        )
