from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, List, Mapping, Optional

from eventures.config import settings
from eventures.core.aggregate import PointAggregator
from eventures.core.models import AggregatedPoint, MapUpdate, MarkerId, PointList, SessionState
from eventures.core.navigation import NavigationCursor
from eventures.core.paging import NO_PAGE, PageCursor
from eventures.core.registry import MarkerRegistry
from eventures.errors import SourceUnavailable
from eventures.providers.base import EventSource

log = logging.getLogger(__name__)

Listener = Callable[[MapUpdate], None]


class MapSession:
    """
    Owns the map state for one user: the active PointList, its marker ids,
    the view cursor and the paging context of the current query.

    State machine: idle -> loaded -> (searching | paging) -> loaded.

    Every fetch is tagged with a generation number; a result that arrives
    after a newer search has started is discarded instead of overwriting
    the newer PointList. Mutations happen under one lock so a step or click
    sees either the previous or the new PointList, never a mix.
    """

    def __init__(self, source: EventSource, page_size: Optional[int] = None):
        self.source = source
        self.pages = PageCursor(settings.page_size if page_size is None else page_size)
        self.aggregator = PointAggregator()
        self.navigation = NavigationCursor()
        self.registry = MarkerRegistry()

        self.points: PointList = []
        self.state = SessionState.IDLE
        self.query = ""
        self.filters: Dict[str, str] = {}
        self.last_page_count = 0

        self._generation = 0
        self._lock = threading.RLock()
        self._listeners: List[Listener] = []

    # ---- rendering boundary ----

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for MapUpdates; returns an unsubscribe callable."""
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def _emit(self, update: MapUpdate) -> None:
        # Called with _lock held so listeners see updates in mutation order
        for listener in list(self._listeners):
            try:
                listener(update)
            except Exception:
                log.exception("Map listener %r failed", listener)

    def snapshot(self) -> MapUpdate:
        with self._lock:
            return MapUpdate(points=list(self.points), focus_index=self.navigation.current_index)

    @property
    def focus(self) -> Optional[AggregatedPoint]:
        return self.snapshot().focus

    @property
    def page(self) -> int:
        return self.pages.page

    def _settled_state(self) -> SessionState:
        return SessionState.LOADED if self.points else SessionState.IDLE

    # ---- search / paging ----

    def search(self, query: str, page: int = 0, filters: Optional[Mapping[str, str]] = None) -> bool:
        """
        Fetch ``page`` of ``query`` and rebuild the map points.

        Returns False when the source failed or the result was superseded by
        a newer search; the previous points stay in place in both cases.
        """
        if page < 0:
            raise ValueError(f"page must be >= 0, got {page}")
        filters = dict(filters or {})

        with self._lock:
            self._generation += 1
            gen = self._generation
            self.state = SessionState.SEARCHING if page == 0 else SessionState.PAGING
            size = self.pages.page_size

        try:
            records = self.source.fetch(query, filters, limit=size, offset=page * size, exact_page=True)
        except SourceUnavailable as e:
            log.warning("Search %r page %d failed, keeping current markers: %s", query, page, e)
            with self._lock:
                if gen == self._generation:
                    self.state = self._settled_state()
            return False

        with self._lock:
            if gen != self._generation:
                log.info("Discarding superseded result for %r page %d", query, page)
                return False

            self.pages.begin_page(page)
            self.pages.record_results_seen(len(records))
            self.query = query
            self.filters = filters
            self.last_page_count = len(records)

            result = self.aggregator.run(records)
            if not result.points:
                log.info("Search %r page %d produced no markers", query, page)
                self.state = self._settled_state()
                return True

            self.points = result.points
            self.registry.assign_ids(self.points)
            self.navigation.reset(self.points)
            self.state = SessionState.LOADED
            update = self.snapshot()
            log.debug("Loaded %d points from %d records", len(update.points), len(records))
            self._emit(update)
        return True

    def next_page(self) -> int:
        """Index of the page after the current one, or NO_PAGE."""
        with self._lock:
            gen = self._generation
            count = self.last_page_count
            query, filters = self.query, dict(self.filters)
            offset = self.pages.probe_offset()

        def probe() -> int:
            return len(self.source.fetch(query, filters, limit=1, offset=offset, exact_page=True))

        try:
            nxt = self.pages.next_page(count, probe)
        except SourceUnavailable as e:
            log.warning("Next-page probe for %r failed: %s", query, e)
            return NO_PAGE

        with self._lock:
            if gen != self._generation:
                log.info("Discarding superseded next-page probe for %r", query)
                return NO_PAGE
        return nxt

    def previous_page(self) -> int:
        with self._lock:
            return self.pages.previous_page()

    def go_next_page(self) -> bool:
        nxt = self.next_page()
        if nxt == NO_PAGE:
            return False
        return self.search(self.query, nxt, self.filters)

    def go_previous_page(self) -> bool:
        prev = self.previous_page()
        if prev == NO_PAGE:
            return False
        return self.search(self.query, prev, self.filters)

    # ---- navigation ----

    def step_next(self) -> Optional[int]:
        return self._step(self.navigation.step_next)

    def step_previous(self) -> Optional[int]:
        return self._step(self.navigation.step_previous)

    def _step(self, move: Callable[[PointList], Optional[int]]) -> Optional[int]:
        with self._lock:
            if not self.points:
                return None
            idx = move(self.points)
            self._emit(self.snapshot())
        return idx

    def resolve_click(self, marker_id: MarkerId) -> bool:
        """Focus the clicked marker; stale ids from an earlier pass are ignored."""
        with self._lock:
            if self.registry.resolve(marker_id) is None:
                log.debug("Ignoring click on unknown marker id %r", marker_id)
                return False
            self.navigation.move_to(marker_id, self.points)
            self._emit(self.snapshot())
        return True
