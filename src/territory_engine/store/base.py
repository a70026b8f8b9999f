from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, List

from territory_engine.core.collision import foreign_territories
from territory_engine.core.models import Territory


class TerritoryStoreError(RuntimeError):
    """The territory store is unavailable or a request to it failed."""


class TerritorySource(ABC):
    """Read side of the territory store: snapshots of active territories."""

    @abstractmethod
    def fetch_active_territories(self) -> List[Territory]:
        raise NotImplementedError

    def fetch_foreign_territories(self, excluding_owner_id: str) -> List[Territory]:
        return foreign_territories(self.fetch_active_territories(), excluding_owner_id)


class StaticTerritorySource(TerritorySource):
    """Fixed snapshot, e.g. loaded from a JSON export for offline replay."""

    def __init__(self, territories: Iterable[Territory]):
        self._territories = list(territories)

    def fetch_active_territories(self) -> List[Territory]:
        return [t for t in self._territories if t.is_active is not False]
