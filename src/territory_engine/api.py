"""FastAPI REST backend for the territory claim engine."""
from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from territory_engine.db import get_supabase
from territory_engine.routers import claims, territories

log = logging.getLogger(__name__)

app = FastAPI(title="Territory Engine", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(claims.router)
app.include_router(territories.router)


@app.get("/health")
def health():
    redis_ok = False
    try:
        from territory_engine.cache.redis_client import get_redis

        r = get_redis()
        if r is not None:
            r.ping()
            redis_ok = True
    except Exception as exc:
        log.debug("Redis health check failed: %s", exc)

    supabase_ok = get_supabase() is not None

    return {"status": "ok", "redis": redis_ok, "supabase": supabase_ok}
