"""Error kinds raised by the eventures data layer.

"Not found" conditions (stale marker id, absent page) are not exceptions:
they are reported as ``None`` / ``NO_PAGE`` return values.
"""
from __future__ import annotations

from typing import Optional


class EventuresError(Exception):
    """Base class for eventures errors."""


class MalformedCoordinate(EventuresError, ValueError):
    """A raw event record carries a lat/lng that is not a decimal number."""

    def __init__(self, field: str, value: Optional[str]):
        self.field = field
        self.value = value
        super().__init__(f"malformed {field}: {value!r}")


class SourceUnavailable(EventuresError):
    """The event source failed or timed out."""
