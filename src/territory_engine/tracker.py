"""Live claim tracking.

:class:`ClaimTracker` owns one :class:`ClaimSession` and is the only code
that touches it. Two timer tasks feed it through a single queue:

  - the sampler posts the latest fix every ``sample_interval_s``
  - the poller fetches a territory snapshot every ``collision_poll_interval_s``
    and posts it as a collision tick

One consumer task drains the queue, so the path is never read while it is
being appended to.
"""
from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, List, Optional, Union

from territory_engine.core.models import CollisionVerdict, Territory, TimedPoint
from territory_engine.core.session import Accumulating, ClaimSession, ClosureEvent
from territory_engine.store.base import TerritorySource, TerritoryStoreError

log = logging.getLogger(__name__)


class FixSource(ABC):
    """Latest position reported by the device."""

    @abstractmethod
    def latest_fix(self) -> Optional[TimedPoint]:
        raise NotImplementedError


@dataclass(frozen=True)
class FixMessage:
    fix: TimedPoint


@dataclass(frozen=True)
class CollisionTick:
    territories: List[Territory]


@dataclass(frozen=True)
class StopMessage:
    reason: str = "stopped"


TrackerMessage = Union[FixMessage, CollisionTick, StopMessage]


class ClaimTracker:
    def __init__(
        self,
        session: ClaimSession,
        fix_source: FixSource,
        store: TerritorySource,
        *,
        sample_interval_s: Optional[float] = None,
        collision_poll_interval_s: Optional[float] = None,
        on_closure: Optional[Callable[[ClosureEvent], None]] = None,
        on_collision: Optional[Callable[[CollisionVerdict], None]] = None,
    ):
        if sample_interval_s is None or collision_poll_interval_s is None:
            from territory_engine.config import settings

            sample_interval_s = sample_interval_s or settings.sample_interval_s
            collision_poll_interval_s = collision_poll_interval_s or settings.collision_poll_interval_s

        self.session = session
        self.fix_source = fix_source
        self.store = store
        self.sample_interval_s = sample_interval_s
        self.collision_poll_interval_s = collision_poll_interval_s
        self.on_closure = on_closure
        self.on_collision = on_collision

        self._queue: "asyncio.Queue[TrackerMessage]" = asyncio.Queue()
        self._tasks: List[asyncio.Task] = []
        self._consumer: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._consumer is not None and not self._consumer.done()

    # ------------------------------------------------------------------

    async def start(self) -> CollisionVerdict:
        """Check the start point, then begin tracking unless it is blocked.

        If the territory store cannot be reached the claim is allowed to
        start; the periodic collision checks still apply once it recovers.
        """
        if self.running:
            raise RuntimeError("Tracker already running")

        fix = self.fix_source.latest_fix()
        if fix is None:
            raise RuntimeError("No position available yet")

        try:
            territories = await asyncio.to_thread(self.store.fetch_active_territories)
            verdict = self.session.check_start(fix.point, territories)
        except TerritoryStoreError as exc:
            log.error("Start point check failed, starting anyway: %s", exc)
            verdict = CollisionVerdict.safe()

        if verdict.has_collision:
            self.session.log.error("Start blocked: %s", verdict.message)
            self._emit_collision(verdict)
            return verdict

        self.session.log.info("Start point is clear")
        self.session.start(fix.timestamp)
        self._queue = asyncio.Queue()
        # The start fix is the first path point; the sampler takes over after one interval
        self._queue.put_nowait(FixMessage(fix))
        self._consumer = asyncio.create_task(self._consume(), name="claim-consumer")
        self._tasks = [
            asyncio.create_task(self._sample_loop(), name="claim-sampler"),
            asyncio.create_task(self._poll_loop(), name="claim-collision-poller"),
        ]
        return verdict

    async def stop(self, reason: str = "stopped") -> None:
        if not self.running:
            self.session.stop()
            return
        await self._queue.put(StopMessage(reason))
        await self.wait()

    async def wait(self) -> None:
        """Block until the consumer finishes (stop, violation or cancellation)."""
        if self._consumer is not None:
            await self._consumer

    # ------------------------------------------------------------------

    async def _sample_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sample_interval_s)
            fix = self.fix_source.latest_fix()
            if fix is None:
                log.debug("No current position, sample skipped")
                continue
            await self._queue.put(FixMessage(fix))

    async def _poll_loop(self) -> None:
        while True:
            await asyncio.sleep(self.collision_poll_interval_s)
            try:
                territories = await asyncio.to_thread(self.store.fetch_active_territories)
            except TerritoryStoreError as exc:
                log.error("Collision poll failed: %s", exc)
                continue
            await self._queue.put(CollisionTick(territories))

    async def _consume(self) -> None:
        try:
            while True:
                msg = await self._queue.get()
                if isinstance(msg, StopMessage):
                    self.session.stop()
                    log.info("Tracker stopped (%s)", msg.reason)
                    return
                if isinstance(msg, FixMessage):
                    self._handle_fix(msg.fix)
                elif isinstance(msg, CollisionTick):
                    if self._handle_tick(msg.territories):
                        return
        finally:
            for task in self._tasks:
                task.cancel()
            await asyncio.gather(*self._tasks, return_exceptions=True)
            self._tasks = []

    def _handle_fix(self, fix: TimedPoint) -> None:
        if not self.session.is_tracking:
            return
        outcome = self.session.offer(fix)
        if outcome.closure is not None and self.on_closure is not None:
            self.on_closure(outcome.closure)

    def _handle_tick(self, territories: List[Territory]) -> bool:
        """Returns True when the tick force-stopped the claim."""
        if not isinstance(self.session.state, Accumulating):
            return False
        verdict = self.session.check_collision(territories)
        self._emit_collision(verdict)
        return verdict.has_collision

    def _emit_collision(self, verdict: CollisionVerdict) -> None:
        if self.on_collision is not None:
            self.on_collision(verdict)


class ListFixSource(FixSource):
    """Plays back recorded fixes, one per sample, holding the last one."""

    def __init__(self, fixes: List[TimedPoint]):
        self._fixes = sorted(fixes, key=lambda f: f.timestamp)
        self._i = 0

    def latest_fix(self) -> Optional[TimedPoint]:
        if not self._fixes:
            return None
        fix = self._fixes[min(self._i, len(self._fixes) - 1)]
        self._i += 1
        return fix

    @property
    def exhausted(self) -> bool:
        return self._i >= len(self._fixes)


async def _run(args) -> int:
    from pathlib import Path

    from territory_engine.cli import load_fixes, load_territories
    from territory_engine.config import settings
    from territory_engine.store.base import StaticTerritorySource

    source = ListFixSource(load_fixes(Path(args.fixes)))
    if args.territories:
        store: TerritorySource = StaticTerritorySource(load_territories(Path(args.territories)))
    else:
        from territory_engine.store.territories import SupabaseTerritoryStore

        store = SupabaseTerritoryStore()

    session = ClaimSession.from_settings(args.owner, settings)
    closed = asyncio.Event()

    def on_closure(event: ClosureEvent) -> None:
        if event.verdict.valid:
            log.info("Loop closed: valid territory of %.0f m²", event.area_m2)
        else:
            log.warning("Loop closed but rejected: %s", event.verdict.message)
        closed.set()

    def on_collision(verdict: CollisionVerdict) -> None:
        if verdict.message:
            log.warning("%s", verdict.message)

    tracker = ClaimTracker(
        session,
        source,
        store,
        sample_interval_s=args.interval,
        collision_poll_interval_s=args.interval * 5,
        on_closure=on_closure,
        on_collision=on_collision,
    )
    verdict = await tracker.start()
    if verdict.has_collision:
        return 1

    while tracker.running and not closed.is_set() and not source.exhausted:
        await asyncio.sleep(args.interval)
    await tracker.stop("replay finished")
    session.close()
    return 0 if closed.is_set() else 2


def main() -> None:
    import argparse
    import sys

    ap = argparse.ArgumentParser(description="Run the live claim tracker over recorded fixes")
    ap.add_argument("fixes", help="Path to a JSON list of fixes")
    ap.add_argument("--territories", help="JSON list of territory rows (default: Supabase)")
    ap.add_argument("--owner", default="local-player")
    ap.add_argument("--interval", type=float, default=None, help="Sample interval in seconds")
    args = ap.parse_args()

    from territory_engine.config import settings

    if args.interval is None:
        args.interval = settings.sample_interval_s

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    sys.exit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
