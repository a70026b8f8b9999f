"""Centralized settings for the territory engine."""
from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_prefix": "TERRITORY_"}

    # Redis: empty string means disabled (graceful fallback)
    redis_url: str = ""

    # Supabase: empty strings mean disabled (graceful fallback)
    supabase_url: str = ""
    supabase_service_key: str = ""
    supabase_jwt_secret: str = ""

    # Sample filter
    max_horizontal_accuracy_m: float = 100.0
    speed_check_min_interval_s: float = 0.5
    speed_reject_kmh: float = 100.0   # above: drop the fix (GPS jump)
    speed_warn_kmh: float = 50.0      # above: keep the fix, warn
    speed_warning_duration_s: float = 3.0
    spacing_profile: str = "relaxed"  # relaxed (3 m) | standard (5 m) | strict (10 m)
    force_accept_after_s: float = 10.0

    # Closure
    closure_threshold_m: float = 30.0
    closure_min_points: int = 8

    # Validation
    min_validation_points: int = 15
    min_total_distance_m: float = 100.0
    min_enclosed_area_m2: float = 300.0

    # Proximity tiers (metres to the nearest foreign vertex)
    caution_distance_m: float = 100.0
    warning_distance_m: float = 50.0
    danger_distance_m: float = 25.0

    # Tracker cadence
    sample_interval_s: float = 2.0
    collision_poll_interval_s: float = 10.0

    # TTL values in seconds for cached data
    ttl_territory_snapshot: int = 10  # matches the collision poll cadence

    # Claim log ring buffer
    claim_log_max_entries: int = 200


settings = Settings()
