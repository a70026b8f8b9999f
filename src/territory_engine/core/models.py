from __future__ import annotations

import math
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class GeoPoint(BaseModel):
    """WGS-84 coordinate in decimal degrees."""

    model_config = ConfigDict(frozen=True)

    lat: float
    lon: float


class TimedPoint(BaseModel):
    """A raw fix from the positioning sensor."""

    model_config = ConfigDict(frozen=True)

    point: GeoPoint
    timestamp: datetime
    # None or negative means the sensor could not estimate it
    horizontal_accuracy_m: Optional[float] = None

    @property
    def has_valid_accuracy(self) -> bool:
        return self.horizontal_accuracy_m is not None and self.horizontal_accuracy_m >= 0


class ClosureState(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


class FailureReason(str, Enum):
    INSUFFICIENT_POINTS = "insufficient_points"
    INSUFFICIENT_DISTANCE = "insufficient_distance"
    SELF_INTERSECTING = "self_intersecting"
    INSUFFICIENT_AREA = "insufficient_area"


class ValidationVerdict(BaseModel):
    model_config = ConfigDict(frozen=True)

    valid: bool
    failure_reason: Optional[FailureReason] = None
    enclosed_area_m2: float = 0.0

    # What the failed gate measured vs. what it needed
    actual: Optional[float] = None
    required: Optional[float] = None

    @property
    def message(self) -> Optional[str]:
        if self.failure_reason is None:
            return None
        if self.failure_reason is FailureReason.INSUFFICIENT_POINTS:
            return f"Not enough points: {self.actual:.0f} (need >= {self.required:.0f})"
        if self.failure_reason is FailureReason.INSUFFICIENT_DISTANCE:
            return f"Walked distance too short: {self.actual:.0f}m (need >= {self.required:.0f}m)"
        if self.failure_reason is FailureReason.SELF_INTERSECTING:
            return "Path crosses itself, do not walk a figure eight"
        return f"Enclosed area too small: {self.actual:.0f}m² (need >= {self.required:.0f}m²)"


class CollisionKind(str, Enum):
    POINT_IN_TERRITORY = "point_in_territory"
    PATH_CROSSES_BOUNDARY = "path_crosses_boundary"


class WarningLevel(str, Enum):
    SAFE = "safe"
    CAUTION = "caution"
    WARNING = "warning"
    DANGER = "danger"
    VIOLATION = "violation"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]

    # Order by severity, not by the string value
    def __lt__(self, other):  # type: ignore[override]
        if not isinstance(other, WarningLevel):
            return NotImplemented
        return self.severity < other.severity

    def __le__(self, other):  # type: ignore[override]
        if not isinstance(other, WarningLevel):
            return NotImplemented
        return self.severity <= other.severity

    def __gt__(self, other):  # type: ignore[override]
        if not isinstance(other, WarningLevel):
            return NotImplemented
        return self.severity > other.severity

    def __ge__(self, other):  # type: ignore[override]
        if not isinstance(other, WarningLevel):
            return NotImplemented
        return self.severity >= other.severity


_SEVERITY: Dict[WarningLevel, int] = {
    WarningLevel.SAFE: 0,
    WarningLevel.CAUTION: 1,
    WarningLevel.WARNING: 2,
    WarningLevel.DANGER: 3,
    WarningLevel.VIOLATION: 4,
}


class CollisionVerdict(BaseModel):
    model_config = ConfigDict(frozen=True)

    has_collision: bool = False
    collision_kind: Optional[CollisionKind] = None
    message: Optional[str] = None
    nearest_distance_m: float = math.inf
    warning_level: WarningLevel = WarningLevel.SAFE

    @classmethod
    def safe(cls) -> "CollisionVerdict":
        return cls()


class Territory(BaseModel):
    """A claimed polygon as persisted by the territory store.

    ``path`` keeps the wire shape (``[{"lat": .., "lon": ..}, ...]``); the
    ring is implicitly closed, the last vertex connects back to the first.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    owner_id: str = Field(alias="user_id")
    name: Optional[str] = None
    path: List[Dict[str, float]] = Field(default_factory=list)
    area: float = 0.0
    point_count: Optional[int] = None
    is_active: Optional[bool] = None
    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    created_at: Optional[str] = None

    @property
    def vertices(self) -> List[GeoPoint]:
        return [
            GeoPoint(lat=p["lat"], lon=p["lon"])
            for p in self.path
            if p.get("lat") is not None and p.get("lon") is not None
        ]

    @property
    def display_name(self) -> str:
        if self.name:
            return self.name
        return f"Territory #{self.id[:6]}"

    def is_owned_by(self, actor_id: Optional[str]) -> bool:
        # Stored UUIDs and in-memory ones may differ in letter case
        if actor_id is None:
            return False
        return self.owner_id.lower() == actor_id.lower()
