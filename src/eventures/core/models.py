from __future__ import annotations

from enum import Enum
from typing import List, Mapping, Optional

from pydantic import BaseModel, Field

# One event as handed over by an EventSource. Only "lat" and "lng"
# (decimal-degree strings) are read by the core.
RawEventRecord = Mapping[str, str]

# Dense index of an AggregatedPoint within one aggregation pass.
MarkerId = int


class GeoPoint(BaseModel):
    """WGS84 position, stored x/y order like the map toolkit expects."""

    model_config = {"frozen": True}

    lon: float
    lat: float


class AggregatedPoint(BaseModel):
    model_config = {"frozen": True}

    point: GeoPoint
    occurrences: int = Field(..., ge=1)

    # Raw coordinate text the point was keyed on (dedup is by exact text)
    lat_text: str
    lng_text: str

    @property
    def key(self) -> tuple[str, str]:
        return (self.lat_text, self.lng_text)


PointList = List[AggregatedPoint]


class SessionState(str, Enum):
    IDLE = "idle"
    LOADED = "loaded"
    SEARCHING = "searching"
    PAGING = "paging"


class MapUpdate(BaseModel):
    """What the rendering layer receives on every session state change."""

    points: List[AggregatedPoint] = Field(default_factory=list)
    focus_index: Optional[int] = None

    @property
    def focus(self) -> Optional[AggregatedPoint]:
        if self.focus_index is None or not self.points:
            return None
        return self.points[self.focus_index]
