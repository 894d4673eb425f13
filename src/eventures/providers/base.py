from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Mapping, Optional

from eventures.core.models import RawEventRecord


class EventSource(ABC):
    """Fetch one page of raw event records for a search."""

    @abstractmethod
    def fetch(
        self,
        query: str,
        filters: Optional[Mapping[str, str]],
        limit: int,
        offset: int,
        exact_page: bool = False,
    ) -> List[RawEventRecord]:
        """
        Return at most ``limit`` records starting at row ``offset``.

        With ``exact_page`` the result is cut to ``limit`` rows even if the
        backend returns more. Failures are raised as SourceUnavailable.
        """
        raise NotImplementedError
