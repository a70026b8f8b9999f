"""Claim checks: POST /claims/validate, /claims/start-check, /claims/collision.

Stateless versions of the checks a client runs while walking a loop. The
validate endpoint is public; the collision endpoints need the caller's id
so their own territories are ignored.
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from territory_engine.auth import get_current_user, get_optional_user
from territory_engine.config import settings
from territory_engine.core.collision import ProximityTiers, check_path_comprehensive, check_start_point
from territory_engine.core.models import GeoPoint
from territory_engine.core.validator import TerritoryValidator
from territory_engine.routers.schemas import CollisionOut, PathIn, ValidationOut
from territory_engine.store.base import TerritorySource, TerritoryStoreError
from territory_engine.store.territories import get_territory_store

log = logging.getLogger(__name__)

router = APIRouter(prefix="/claims", tags=["claims"])


def _active_territories(store: TerritorySource):
    try:
        return store.fetch_active_territories()
    except TerritoryStoreError as exc:
        log.error("Territory snapshot unavailable: %s", exc)
        raise HTTPException(status_code=503, detail="Territory store unavailable")


@router.post("/validate", response_model=ValidationOut)
def validate_claim(body: PathIn, user_id: Optional[str] = Depends(get_optional_user)):
    verdict = TerritoryValidator.from_settings(settings).validate(body.points)
    log.info("Validated %d points for %s: %s", len(body.points), user_id or "anonymous", verdict.valid)
    return ValidationOut.from_verdict(verdict)


@router.post("/start-check", response_model=CollisionOut)
def start_check(
    body: GeoPoint,
    user_id: str = Depends(get_current_user),
    store: TerritorySource = Depends(get_territory_store),
):
    verdict = check_start_point(body, _active_territories(store), user_id)
    return CollisionOut.from_verdict(verdict)


@router.post("/collision", response_model=CollisionOut)
def collision_check(
    body: PathIn,
    user_id: str = Depends(get_current_user),
    store: TerritorySource = Depends(get_territory_store),
):
    verdict = check_path_comprehensive(
        body.points,
        _active_territories(store),
        user_id,
        tiers=ProximityTiers.from_settings(settings),
    )
    return CollisionOut.from_verdict(verdict)
