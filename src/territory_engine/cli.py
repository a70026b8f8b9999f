"""Replay a recorded walk through the claim engine and print what happened.

Fixes file: a JSON list of ``{"lat", "lon", "timestamp", "accuracy"}``
objects (``timestamp`` ISO-8601). Territories file: a JSON list of
territory rows as stored in the ``territories`` table.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.table import Table

from territory_engine.config import settings
from territory_engine.core.claim_log import ClaimLog
from territory_engine.core.engine import ReplayResult, replay_fixes
from territory_engine.core.models import CollisionVerdict, GeoPoint, Territory, TimedPoint, WarningLevel
from territory_engine.core.sample_filter import SPACING_PROFILES
from territory_engine.core.session import ClaimSession, ClaimSessionError
from territory_engine.store.base import StaticTerritorySource, TerritoryStoreError

_LEVEL_STYLE = {
    WarningLevel.SAFE: "green",
    WarningLevel.CAUTION: "yellow",
    WarningLevel.WARNING: "dark_orange",
    WarningLevel.DANGER: "red",
    WarningLevel.VIOLATION: "bold red",
}


def _fix_from_json(obj: Dict[str, Any]) -> TimedPoint:
    if "point" in obj:
        return TimedPoint.model_validate(obj)
    return TimedPoint(
        point=GeoPoint(lat=obj["lat"], lon=obj["lon"]),
        timestamp=obj["timestamp"],
        horizontal_accuracy_m=obj.get("accuracy", obj.get("horizontal_accuracy_m")),
    )


def load_fixes(path: Path) -> List[TimedPoint]:
    data = json.loads(path.read_text(encoding="utf-8"))
    return [_fix_from_json(obj) for obj in data]


def load_territories(path: Optional[Path]) -> List[Territory]:
    if path is None:
        return []
    data = json.loads(path.read_text(encoding="utf-8"))
    return [Territory.model_validate(row) for row in data]


def _collision_text(v: Optional[CollisionVerdict]) -> str:
    if v is None:
        return ""
    style = _LEVEL_STYLE[v.warning_level]
    return f"[{style}]{v.warning_level.value}[/{style}]"


def _print_steps(console: Console, result: ReplayResult, title: str) -> None:
    table = Table(title=title)
    table.add_column("#", justify="right")
    table.add_column("Time")
    table.add_column("Lat")
    table.add_column("Lon")
    table.add_column("Acc m", justify="right")
    table.add_column("Result")
    table.add_column("Km/h", justify="right")
    table.add_column("Step m", justify="right")
    table.add_column("Path", justify="right")
    table.add_column("Proximity")

    for n, step in enumerate(result.steps, start=1):
        d = step.outcome.decision
        if d is None:
            verdict = "[dim]ignored (closed)[/dim]"
        elif d.accepted:
            verdict = "[green]forced[/green]" if d.forced else "[green]accepted[/green]"
        else:
            verdict = f"[red]{d.reason.value}[/red]"
        acc = step.fix.horizontal_accuracy_m
        table.add_row(
            str(n),
            step.fix.timestamp.strftime("%H:%M:%S"),
            f"{step.fix.point.lat:.6f}",
            f"{step.fix.point.lon:.6f}",
            "" if acc is None else f"{acc:.0f}",
            verdict,
            "" if d is None or d.speed_kmh is None else f"{d.speed_kmh:.1f}",
            "" if d is None or d.distance_m is None else f"{d.distance_m:.1f}",
            str(step.path_len),
            _collision_text(step.collision),
        )
    console.print(table)


def _print_summary(console: Console, result: ReplayResult) -> None:
    if result.start_check is not None and result.start_check.has_collision:
        console.print(f"[bold red]Start blocked:[/bold red] {result.start_check.message}")
        return
    if result.stopped_by is not None:
        console.print(f"[bold red]Claim stopped:[/bold red] {result.stopped_by.message}")
        return
    if result.closure is None:
        console.print("[yellow]Loop never closed[/yellow]")
        return

    v = result.closure.verdict
    if v.valid:
        console.print(
            f"[bold green]Territory valid[/bold green]: {len(result.closure.path)} points, "
            f"{v.enclosed_area_m2:.0f} m²"
        )
    else:
        console.print(f"[bold red]Territory rejected[/bold red]: {v.message}")


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Replay recorded GPS fixes through the claim engine")
    ap.add_argument("fixes", help="Path to a JSON list of fixes")
    ap.add_argument("--territories", help="Path to a JSON list of existing territory rows")
    ap.add_argument("--owner", default="local-player", help="Id of the claiming player")
    ap.add_argument("--profile", choices=sorted(SPACING_PROFILES), default=settings.spacing_profile)
    ap.add_argument("--collision-every", type=int, default=5, help="Run a collision check every N fixes")
    ap.add_argument("--export-log", help="Write the claim log export to this file")
    ap.add_argument("--upload", action="store_true", help="Upload the territory to Supabase if valid")
    ap.add_argument("--debug", action="store_true")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    fixes_path = Path(args.fixes)
    fixes = load_fixes(fixes_path)
    territories = StaticTerritorySource(
        load_territories(Path(args.territories) if args.territories else None)
    ).fetch_active_territories()

    claim_log = ClaimLog(max_entries=settings.claim_log_max_entries)
    session = ClaimSession.from_settings(
        args.owner,
        settings.model_copy(update={"spacing_profile": args.profile}),
        claim_log=claim_log,
    )

    console = Console()
    try:
        result = replay_fixes(session, fixes, territories, collision_every=args.collision_every)
        _print_steps(console, result, title=f"Claim replay: {fixes_path.name}")
        _print_summary(console, result)

        if args.upload and result.closure is not None and result.closure.verdict.valid:
            from territory_engine.store.territories import SupabaseTerritoryStore

            try:
                payload = session.upload_payload()
                SupabaseTerritoryStore().upload(payload)
            except (ClaimSessionError, TerritoryStoreError) as exc:
                console.print(f"[bold red]Upload failed:[/bold red] {exc}")
                return 1
            console.print(f"Uploaded territory for {payload.user_id} ({payload.point_count} points)")

        if args.export_log:
            out = Path(args.export_log)
            out.parent.mkdir(parents=True, exist_ok=True)
            out.write_text(claim_log.export(), encoding="utf-8")
            console.print(f"Saved: {out.resolve()}")
    finally:
        session.close()

    if result.closure is not None and result.closure.verdict.valid:
        return 0
    return 2


if __name__ == "__main__":
    sys.exit(main())
