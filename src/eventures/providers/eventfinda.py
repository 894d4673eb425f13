from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from eventures.config import settings
from eventures.core.models import RawEventRecord
from eventures.errors import SourceUnavailable
from eventures.providers.base import EventSource
from eventures.providers.http import HTTPClient

log = logging.getLogger(__name__)

# Event fields copied into the flat record besides lat/lng
_PASSTHROUGH = ("id", "name", "url", "location_summary", "datetime_start")


def _text(v: Any) -> str:
    if v is None:
        return ""
    if isinstance(v, bool):
        return "true" if v else "false"
    return str(v)


def flatten_event(event: Mapping[str, Any]) -> Dict[str, str]:
    """
    Turn one EventFinda event object into a flat string record.

    The API nests coordinates as ``{"point": {"lat": .., "lng": ..}}``;
    missing coordinates become empty strings and are dropped later by the
    aggregator.
    """
    point = event.get("point") or {}
    rec = {k: _text(event.get(k)) for k in _PASSTHROUGH if k in event}
    rec["lat"] = _text(point.get("lat"))
    rec["lng"] = _text(point.get("lng"))
    return rec


class EventFindaSource(EventSource):
    """
    EventFinda REST API:
      GET {base}/events.json?q=<query>&rows=<limit>&offset=<offset>&<filters>
    """

    def __init__(self, client: Optional[HTTPClient] = None, base_url: Optional[str] = None):
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.client = client or HTTPClient(
            user_agent=settings.user_agent,
            timeout_s=settings.timeout_s,
            tries=settings.tries,
            backoff_s=settings.backoff_s,
            username=settings.api_username,
            password=settings.api_password,
        )

    def build_params(
        self,
        query: str,
        filters: Optional[Mapping[str, str]],
        limit: int,
        offset: int,
    ) -> Dict[str, str]:
        params: Dict[str, str] = {}
        for k, v in (filters or {}).items():
            if v:
                params[k] = v
        if query:
            params["q"] = query
        params["rows"] = str(limit)
        params["offset"] = str(offset)
        return params

    def fetch(
        self,
        query: str,
        filters: Optional[Mapping[str, str]],
        limit: int,
        offset: int,
        exact_page: bool = False,
    ) -> List[RawEventRecord]:
        url = f"{self.base_url}/events.json"
        data = self.client.get_json(url, params=self.build_params(query, filters, limit, offset))

        events = data.get("events") if isinstance(data, dict) else None
        if not isinstance(events, list):
            raise SourceUnavailable(f"Unexpected response from {url}: no 'events' list")

        records = [flatten_event(e) for e in events if isinstance(e, dict)]
        if exact_page:
            records = records[:limit]
        log.debug("EventFinda q=%r offset=%d -> %d records", query, offset, len(records))
        return records
