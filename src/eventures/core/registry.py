from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Optional

from eventures.core.models import AggregatedPoint, MarkerId, PointList


class MarkerRegistry:
    """
    Maps marker ids handed to the renderer back to aggregated points.

    Ids are dense positions in the PointList of the latest pass. Each
    ``assign_ids`` swaps in a brand new mapping, so readers see either the
    old or the new one, never a half-built table.
    """

    def __init__(self) -> None:
        self._by_id: Mapping[MarkerId, AggregatedPoint] = MappingProxyType({})
        self.generation = 0

    def assign_ids(self, points: PointList) -> Mapping[MarkerId, AggregatedPoint]:
        self._by_id = MappingProxyType({i: p for i, p in enumerate(points)})
        self.generation += 1
        return self._by_id

    def resolve(self, marker_id: MarkerId) -> Optional[AggregatedPoint]:
        """Point for ``marker_id``, or None when the id is not in the current pass."""
        if isinstance(marker_id, bool) or not isinstance(marker_id, int):
            return None
        return self._by_id.get(marker_id)

    def position_of(self, marker_id: MarkerId) -> Optional[int]:
        return marker_id if self.resolve(marker_id) is not None else None

    def __len__(self) -> int:
        return len(self._by_id)
