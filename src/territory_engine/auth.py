"""Supabase Auth for the HTTP layer.

Players are identified by the ``sub`` claim of their Supabase session JWT
(HS256, audience ``authenticated``).
"""
from __future__ import annotations

import logging
from typing import Optional

import jwt
from fastapi import HTTPException, Request

from territory_engine.config import settings

log = logging.getLogger(__name__)


def bearer_token(request: Request) -> Optional[str]:
    scheme, _, token = request.headers.get("authorization", "").partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        return None
    return token


def decode_token(token: str) -> dict:
    if not settings.supabase_jwt_secret:
        raise jwt.InvalidTokenError("JWT secret not configured")
    return jwt.decode(
        token,
        settings.supabase_jwt_secret,
        algorithms=["HS256"],
        audience="authenticated",
    )


def _player_id(token: str) -> str:
    try:
        claims = decode_token(token)
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError as e:
        raise HTTPException(status_code=401, detail=f"Invalid token: {e}")

    player_id = claims.get("sub")
    if not player_id:
        raise HTTPException(status_code=401, detail="Invalid token: no sub claim")
    return player_id


async def get_current_user(request: Request) -> str:
    """FastAPI dependency: the calling player's id, or 401."""
    token = bearer_token(request)
    if token is None:
        raise HTTPException(status_code=401, detail="Missing bearer token")
    return _player_id(token)


async def get_optional_user(request: Request) -> Optional[str]:
    """FastAPI dependency for public endpoints: the player's id or None."""
    token = bearer_token(request)
    if token is None:
        return None
    try:
        return _player_id(token)
    except HTTPException as e:
        log.debug("Ignoring bad token on public endpoint: %s", e.detail)
        return None
