"""Request / response models shared by the claim and territory routers."""
from __future__ import annotations

import math
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from territory_engine.core.models import (
    CollisionKind,
    CollisionVerdict,
    FailureReason,
    GeoPoint,
    ValidationVerdict,
    WarningLevel,
)


class PathIn(BaseModel):
    points: List[GeoPoint] = Field(default_factory=list)


class ClaimUploadIn(PathIn):
    started_at: datetime


class ValidationOut(BaseModel):
    valid: bool
    failure_reason: Optional[FailureReason] = None
    message: Optional[str] = None
    enclosed_area_m2: float

    @classmethod
    def from_verdict(cls, v: ValidationVerdict) -> "ValidationOut":
        return cls(
            valid=v.valid,
            failure_reason=v.failure_reason,
            message=v.message,
            enclosed_area_m2=v.enclosed_area_m2,
        )


class CollisionOut(BaseModel):
    has_collision: bool
    collision_kind: Optional[CollisionKind] = None
    message: Optional[str] = None
    # null when there is no foreign territory at all
    nearest_distance_m: Optional[float] = None
    warning_level: WarningLevel

    @classmethod
    def from_verdict(cls, v: CollisionVerdict) -> "CollisionOut":
        return cls(
            has_collision=v.has_collision,
            collision_kind=v.collision_kind,
            message=v.message,
            nearest_distance_m=None if math.isinf(v.nearest_distance_m) else v.nearest_distance_m,
            warning_level=v.warning_level,
        )


class TerritoryUploadOut(BaseModel):
    user_id: str
    polygon: str
    area: float
    point_count: int
    started_at: str
    bbox_min_lat: float
    bbox_max_lat: float
    bbox_min_lon: float
    bbox_max_lon: float
