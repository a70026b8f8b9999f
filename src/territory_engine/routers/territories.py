"""Territory endpoints: GET /territories/active, GET /territories/mine,
POST /territories, DELETE /territories/{territory_id}."""
from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from territory_engine.auth import get_current_user
from territory_engine.config import settings
from territory_engine.core.models import Territory
from territory_engine.core.validator import TerritoryValidator
from territory_engine.routers.schemas import ClaimUploadIn, TerritoryUploadOut
from territory_engine.store.base import TerritoryStoreError
from territory_engine.store.territories import SupabaseTerritoryStore, get_territory_store

log = logging.getLogger(__name__)

router = APIRouter(prefix="/territories", tags=["territories"])


@router.get("/active", response_model=List[Territory])
def list_active(store: SupabaseTerritoryStore = Depends(get_territory_store)):
    try:
        return store.fetch_active_territories()
    except TerritoryStoreError as exc:
        raise HTTPException(status_code=503, detail=str(exc))


@router.get("/mine", response_model=List[Territory])
def list_mine(
    user_id: str = Depends(get_current_user),
    store: SupabaseTerritoryStore = Depends(get_territory_store),
):
    try:
        return store.load_my_territories(user_id)
    except TerritoryStoreError as exc:
        raise HTTPException(status_code=503, detail=str(exc))


@router.post("", response_model=TerritoryUploadOut, status_code=201)
def upload_territory(
    body: ClaimUploadIn,
    user_id: str = Depends(get_current_user),
    store: SupabaseTerritoryStore = Depends(get_territory_store),
):
    # Never trust the client's verdict: the loop is validated again here
    verdict = TerritoryValidator.from_settings(settings).validate(body.points)
    if not verdict.valid:
        raise HTTPException(status_code=422, detail=verdict.message)

    try:
        payload = store.upload_territory(
            body.points,
            area=verdict.enclosed_area_m2,
            started_at=body.started_at,
            owner_id=user_id,
        )
    except TerritoryStoreError as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    return payload.to_row()


@router.delete("/{territory_id}")
def delete_territory(
    territory_id: str,
    user_id: str = Depends(get_current_user),
    store: SupabaseTerritoryStore = Depends(get_territory_store),
):
    try:
        deleted = store.delete_territory(territory_id, owner_id=user_id)
    except TerritoryStoreError as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    if not deleted:
        raise HTTPException(status_code=404, detail="Territory not found")
    return {"deleted": territory_id}
