from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence

from eventures.core.models import RawEventRecord
from eventures.errors import SourceUnavailable
from eventures.providers.base import EventSource

# (name, location_summary, lat, lng)
_VENUES = [
    ("Jazz at the Opera House", "Wellington", "-41.2923", "174.7787"),
    ("Harbour Night Market", "Wellington", "-41.2923", "174.7787"),
    ("Cuba Street Carnival", "Wellington", "-41.2950", "174.7750"),
    ("Symphony in the Domain", "Auckland", "-36.8600", "174.7760"),
    ("Comedy Festival Gala", "Auckland", "-36.8485", "174.7633"),
    ("Jazz in the Park", "Auckland", "-36.8600", "174.7760"),
    ("Garden Festival", "Christchurch", "-43.5321", "172.6362"),
    ("Lantern Festival", "Christchurch", "-43.5321", "172.6362"),
    ("Highland Games", "Dunedin", "-45.8788", "170.5028"),
    ("Wine and Food Festival", "Nelson", "-41.2706", "173.2840"),
    ("Summer Jazz Series", "Nelson", "-41.2706", "173.2840"),
    ("Queenstown Winter Festival", "Queenstown", "-45.0312", "168.6626"),
]


def _seed_records() -> List[Dict[str, str]]:
    return [
        {
            "id": str(i + 1),
            "name": name,
            "location_summary": where,
            "lat": lat,
            "lng": lng,
        }
        for i, (name, where, lat, lng) in enumerate(_VENUES)
    ]


class MockEventSource(EventSource):
    """
    Deterministic in-memory events so the map pipeline runs without the API.

    Queries match case-insensitively against ``name``; every non-empty
    filter must equal the record field of the same name.
    """

    def __init__(self, records: Optional[Sequence[Mapping[str, str]]] = None, fail: bool = False):
        self.records: List[Mapping[str, str]] = list(records) if records is not None else _seed_records()
        self.fail = fail
        # (query, limit, offset) of every call, newest last
        self.calls: List[tuple[str, int, int]] = []

    @classmethod
    def from_json(cls, path: Path) -> "MockEventSource":
        """
        Load records from a JSON list of flat records, or from a saved
        EventFinda response (``{"events": [...]}`` with nested ``point``).

        Numbers are kept as their source text so coordinates dedup the same
        way they would coming off the wire.
        """
        from eventures.providers.eventfinda import flatten_event

        data = json.loads(Path(path).read_text(encoding="utf-8"), parse_float=str, parse_int=str)
        if isinstance(data, dict):
            data = data.get("events", [])

        records: List[Dict[str, str]] = []
        for rec in data:
            if "point" in rec:
                records.append(flatten_event(rec))
            else:
                records.append({k: str(v) for k, v in rec.items()})
        return cls(records=records)

    def _matches(self, rec: Mapping[str, str], query: str, filters: Mapping[str, str]) -> bool:
        if query and query.lower() not in rec.get("name", "").lower():
            return False
        return all(rec.get(k) == v for k, v in filters.items() if v)

    def fetch(
        self,
        query: str,
        filters: Optional[Mapping[str, str]],
        limit: int,
        offset: int,
        exact_page: bool = False,
    ) -> List[RawEventRecord]:
        self.calls.append((query, limit, offset))
        if self.fail:
            raise SourceUnavailable("mock source set to fail")

        hits = [r for r in self.records if self._matches(r, query, filters or {})]
        # Slicing already honours limit, so exact_page needs no extra work here
        return [dict(r) for r in hits[offset : offset + limit]]
