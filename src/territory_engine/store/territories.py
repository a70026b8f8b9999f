"""Supabase-backed territory store.

Tables used:
  - ``territories``: one row per claim (see ``contracts/territory_contract``),
    soft-deleted by flipping ``is_active``.
  - ``profiles``: one row per player, created on first upload.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from territory_engine.cache import keys
from territory_engine.cache.redis_client import drop_snapshot, load_snapshot, save_snapshot
from territory_engine.contracts.territory_contract import TerritoryUpload, build_territory_upload
from territory_engine.core.models import GeoPoint, Territory
from territory_engine.store.base import TerritorySource, TerritoryStoreError

log = logging.getLogger(__name__)


class SupabaseTerritoryStore(TerritorySource):
    def __init__(self, client=None, snapshot_ttl_s: Optional[int] = None):
        if client is None:
            from territory_engine.db import get_supabase

            client = get_supabase()
        if snapshot_ttl_s is None:
            from territory_engine.config import settings

            snapshot_ttl_s = settings.ttl_territory_snapshot
        self.sb = client
        self.snapshot_ttl_s = snapshot_ttl_s

    def _client(self):
        if self.sb is None:
            raise TerritoryStoreError("Territory store unavailable (Supabase not configured)")
        return self.sb

    @staticmethod
    def _parse(rows: Optional[List[Dict[str, Any]]]) -> List[Territory]:
        out: List[Territory] = []
        for row in rows or []:
            try:
                out.append(Territory.model_validate(row))
            except ValueError as exc:
                log.warning("Skipping malformed territory row %s: %s", row.get("id"), exc)
        return out

    # ---- Read ----

    def fetch_active_territories(self) -> List[Territory]:
        cached = load_snapshot(keys.active_territories())
        if cached is not None:
            return self._parse(cached)

        sb = self._client()
        try:
            resp = sb.table("territories").select("*").eq("is_active", True).execute()
        except Exception as exc:
            raise TerritoryStoreError(f"Loading territories failed: {exc}") from exc

        rows = resp.data or []
        save_snapshot(keys.active_territories(), rows, self.snapshot_ttl_s)
        log.info("Loaded %d active territories", len(rows))
        return self._parse(rows)

    def load_my_territories(self, owner_id: str) -> List[Territory]:
        sb = self._client()
        try:
            resp = (
                sb.table("territories")
                .select("*")
                .eq("user_id", owner_id)
                .eq("is_active", True)
                .order("created_at", desc=True)
                .execute()
            )
        except Exception as exc:
            raise TerritoryStoreError(f"Loading territories of {owner_id} failed: {exc}") from exc

        territories = self._parse(resp.data)
        log.info("Loaded %d territories of %s", len(territories), owner_id)
        return territories

    # ---- Write ----

    def ensure_profile(self, owner_id: str) -> None:
        """Create the player's profile row on first use."""
        sb = self._client()
        try:
            resp = sb.table("profiles").select("id").eq("id", owner_id).execute()
            if resp.data:
                return
            username = f"Player_{owner_id[:6]}"
            sb.table("profiles").insert({"id": owner_id, "username": username}).execute()
        except Exception as exc:
            raise TerritoryStoreError(f"Creating profile for {owner_id} failed: {exc}") from exc
        log.info("Created profile %s for %s", username, owner_id)

    def upload(self, payload: TerritoryUpload) -> None:
        self.ensure_profile(payload.user_id)
        sb = self._client()
        try:
            sb.table("territories").insert(payload.to_row()).execute()
        except Exception as exc:
            log.error("Territory upload failed: %s", exc)
            raise TerritoryStoreError(f"Territory upload failed: {exc}") from exc

        drop_snapshot(keys.active_territories())
        log.info("Territory uploaded, area %.0fm², %d points", payload.area, payload.point_count)

    def upload_territory(
        self,
        path: Sequence[GeoPoint],
        area: float,
        started_at: datetime,
        owner_id: str,
    ) -> TerritoryUpload:
        payload = build_territory_upload(path, area=area, started_at=started_at, owner_id=owner_id)
        self.upload(payload)
        return payload

    def delete_territory(self, territory_id: str, owner_id: Optional[str] = None) -> bool:
        """Soft delete. Returns False when no matching active row was updated."""
        sb = self._client()
        try:
            q = sb.table("territories").update({"is_active": False}).eq("id", territory_id)
            if owner_id is not None:
                q = q.eq("user_id", owner_id)
            resp = q.execute()
        except Exception as exc:
            log.error("Deleting territory %s failed: %s", territory_id, exc)
            raise TerritoryStoreError(f"Deleting territory {territory_id} failed: {exc}") from exc

        drop_snapshot(keys.active_territories())
        deleted = bool(resp.data)
        if deleted:
            log.info("Territory %s deleted", territory_id)
        return deleted


_store: Optional[SupabaseTerritoryStore] = None


def get_territory_store() -> SupabaseTerritoryStore:
    """FastAPI dependency: process-wide store over the shared Supabase client."""
    global _store
    if _store is None:
        _store = SupabaseTerritoryStore()
    return _store
