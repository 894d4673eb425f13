from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Tuple

from eventures.core.models import AggregatedPoint, GeoPoint, PointList, RawEventRecord
from eventures.errors import MalformedCoordinate

log = logging.getLogger(__name__)

# Plain decimal degrees: "-41.29", "174", ".5", "1e-3". Rejects "nan",
# "inf" and the "1_000" spelling float() would otherwise accept.
_DECIMAL_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")


def parse_coordinate(field_name: str, text: Optional[str]) -> float:
    """Parse one lat/lng string, raising MalformedCoordinate on bad input."""
    if not isinstance(text, str):
        raise MalformedCoordinate(field_name, text)
    t = text.strip()
    if not _DECIMAL_RE.match(t):
        raise MalformedCoordinate(field_name, text)
    v = float(t)
    if not math.isfinite(v):
        raise MalformedCoordinate(field_name, text)
    return v


@dataclass(frozen=True)
class AggregationResult:
    points: PointList
    total: int
    dropped: int = 0
    # (lat_text, lng_text) of dropped records, for diagnostics
    dropped_keys: Tuple[Tuple[Optional[str], Optional[str]], ...] = field(default_factory=tuple)

    @property
    def accepted(self) -> int:
        return self.total - self.dropped


class PointAggregator:
    """
    Collapse raw event records into unique map points.

    Records are keyed on their exact (lat, lng) text, so "10.0" and "10.00"
    are different points. Output is sorted ascending on that string pair,
    which makes marker ids reproducible for the same multiset of records.
    Records whose coordinates do not parse are dropped and counted.
    """

    def __init__(self) -> None:
        # Running total across every pass made by this aggregator
        self.dropped = 0

    def run(self, records: Iterable[RawEventRecord]) -> AggregationResult:
        counts: Dict[Tuple[str, str], int] = {}
        parsed: Dict[Tuple[str, str], GeoPoint] = {}
        bad: list[Tuple[Optional[str], Optional[str]]] = []
        total = 0

        for rec in records:
            total += 1
            lat_text = rec.get("lat")
            lng_text = rec.get("lng")
            key = (lat_text, lng_text)

            if key not in parsed:
                try:
                    lat = parse_coordinate("lat", lat_text)
                    lng = parse_coordinate("lng", lng_text)
                except MalformedCoordinate as e:
                    log.debug("Dropping event record: %s", e)
                    bad.append(key)
                    continue
                parsed[key] = GeoPoint(lon=lng, lat=lat)

            counts[key] = counts.get(key, 0) + 1

        points = [
            AggregatedPoint(
                point=parsed[key],
                occurrences=n,
                lat_text=key[0],
                lng_text=key[1],
            )
            for key, n in sorted(counts.items())
        ]

        if bad:
            self.dropped += len(bad)
            log.info("Dropped %d of %d event records with malformed coordinates", len(bad), total)

        return AggregationResult(points=points, total=total, dropped=len(bad), dropped_keys=tuple(bad))

    def aggregate(self, records: Iterable[RawEventRecord]) -> PointList:
        return self.run(records).points


def aggregate(records: Iterable[RawEventRecord]) -> PointList:
    """One-shot aggregation with a throwaway PointAggregator."""
    return PointAggregator().aggregate(records)
