"""Redis key naming conventions for the territory cache layer."""
from __future__ import annotations

_PREFIX = "te"


def active_territories() -> str:
    """Key for the snapshot of every active territory (all owners)."""
    return f"{_PREFIX}:territories:active"
