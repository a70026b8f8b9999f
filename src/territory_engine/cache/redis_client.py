"""Redis access for the territory snapshot cache.

Redis is optional. With no URL configured, or with the server down, every
helper behaves like a cache miss and callers go straight to Supabase.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

log = logging.getLogger(__name__)

_client = None
_resolved = False


def get_redis():
    """Lazy singleton. Returns ``redis.Redis`` or ``None`` when caching is off."""
    global _client, _resolved
    if _resolved:
        return _client
    _resolved = True

    from territory_engine.config import settings

    if not settings.redis_url:
        log.debug("No Redis URL configured, snapshot cache disabled")
        return None
    try:
        import redis

        client = redis.Redis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_connect_timeout=3,
            socket_timeout=3,
        )
        client.ping()
    except Exception as exc:
        log.warning("Redis unavailable at %s (%s), snapshot cache disabled", settings.redis_url, exc)
        return None

    _client = client
    log.info("Snapshot cache on %s", settings.redis_url)
    return _client


def load_snapshot(key: str) -> Optional[List[Dict[str, Any]]]:
    """Cached territory rows under ``key``, or None on a miss of any kind."""
    r = get_redis()
    if r is None:
        return None
    try:
        raw = r.get(key)
    except Exception as exc:
        log.debug("Snapshot read failed for %s: %s", key, exc)
        return None
    if raw is None:
        return None

    try:
        rows = json.loads(raw)
    except ValueError:
        log.warning("Discarding unreadable snapshot at %s", key)
        return None
    return rows if isinstance(rows, list) else None


def save_snapshot(key: str, rows: List[Dict[str, Any]], ttl_s: int) -> None:
    r = get_redis()
    if r is None:
        return
    try:
        r.set(key, json.dumps(rows), ex=ttl_s)
    except Exception as exc:
        log.debug("Snapshot write failed for %s: %s", key, exc)


def drop_snapshot(key: str) -> None:
    """Invalidate after a write so the next poll sees the change."""
    r = get_redis()
    if r is None:
        return
    try:
        r.delete(key)
    except Exception as exc:
        log.debug("Snapshot delete failed for %s: %s", key, exc)
