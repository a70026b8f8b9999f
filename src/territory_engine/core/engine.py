from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from territory_engine.core.models import CollisionVerdict, Territory, TimedPoint
from territory_engine.core.session import ClaimSession, ClosureEvent, FixOutcome


@dataclass
class ReplayStep:
    fix: TimedPoint
    outcome: FixOutcome
    path_len: int
    collision: Optional[CollisionVerdict] = None


@dataclass
class ReplayResult:
    steps: List[ReplayStep] = field(default_factory=list)
    start_check: Optional[CollisionVerdict] = None
    closure: Optional[ClosureEvent] = None
    # Set when a collision violation force-stopped the claim
    stopped_by: Optional[CollisionVerdict] = None


def replay_fixes(
    session: ClaimSession,
    fixes: Iterable[TimedPoint],
    territories: Sequence[Territory] = (),
    collision_every: int = 5,
) -> ReplayResult:
    """
    Drive a session over a recorded fix stream, the way the live tracker does.

    The start point is checked against ``territories`` first; a blocked start
    returns without tracking. Otherwise a collision check runs every
    ``collision_every`` fixes while the claim is open.
    """
    result = ReplayResult()
    fixes = sorted(fixes, key=lambda f: f.timestamp)
    if not fixes:
        return result

    result.start_check = session.check_start(fixes[0].point, territories)
    if result.start_check.has_collision:
        return result

    started: datetime = fixes[0].timestamp
    session.start(started)

    for n, fix in enumerate(fixes, start=1):
        outcome = session.offer(fix)
        step = ReplayStep(fix=fix, outcome=outcome, path_len=len(session.path))
        if outcome.closure is not None:
            result.closure = outcome.closure

        if territories and collision_every > 0 and n % collision_every == 0 and result.closure is None:
            step.collision = session.check_collision(territories)
            if step.collision.has_collision:
                result.steps.append(step)
                result.stopped_by = step.collision
                break

        result.steps.append(step)

    return result
