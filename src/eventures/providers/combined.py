from __future__ import annotations

from pathlib import Path
from typing import Optional

from eventures.providers.base import EventSource


def build_source(name: str, records_path: Optional[Path] = None) -> EventSource:
    """
    Build an EventSource from a CLI/config name:
      "eventfinda"  live EventFinda API
      "mock"        built-in sample events (or ``records_path`` JSON)
    """
    token = (name or "").strip().lower() or "eventfinda"

    # Local imports keep requests out of mock-only runs
    if token == "eventfinda":
        from eventures.providers.eventfinda import EventFindaSource

        return EventFindaSource()
    if token == "mock":
        from eventures.providers.mock import MockEventSource

        if records_path is not None:
            return MockEventSource.from_json(records_path)
        return MockEventSource()

    raise ValueError(f"Unknown event source: '{name}' (supported: eventfinda, mock)")
