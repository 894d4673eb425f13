from __future__ import annotations

import logging
from typing import Callable, Optional

log = logging.getLogger(__name__)

PAGE_SIZE = 20

# Returned by next_page / previous_page when the neighbouring page does not exist
NO_PAGE = -1


class PageCursor:
    """
    Pagination bookkeeping for one search context.

    ``results_seen`` accumulates result counts across the pages of the
    current query and resets whenever a fresh search (page 0) begins.
    """

    def __init__(self, page_size: int = PAGE_SIZE):
        if page_size <= 0:
            raise ValueError(f"page_size must be positive, got {page_size}")
        self.page_size = page_size
        self.page = 0
        self.results_seen = 0

    @staticmethod
    def should_reset_on_page(page: int) -> bool:
        return page == 0

    def begin_page(self, page: int) -> None:
        if page < 0:
            raise ValueError(f"page must be >= 0, got {page}")
        if self.should_reset_on_page(page):
            self.results_seen = 0
        self.page = page

    def record_results_seen(self, count: int) -> None:
        self.results_seen += count

    def probe_offset(self, page: Optional[int] = None, page_size: Optional[int] = None) -> int:
        """Row offset of the first record on the page after ``page``."""
        p = self.page if page is None else page
        size = self.page_size if page_size is None else page_size
        return (p + 1) * size

    def next_page(
        self,
        current_page_result_count: int,
        probe: Callable[[], int],
        page_size: Optional[int] = None,
    ) -> int:
        """
        Return ``page + 1`` if a following page exists, else NO_PAGE.

        A short page proves there is nothing after it, so ``probe`` is only
        called when the current page came back exactly full. The probe is a
        1-row fetch at ``probe_offset()`` returning how many rows it got.
        """
        size = self.page_size if page_size is None else page_size
        if size <= 0:
            raise ValueError(f"page_size must be positive, got {size}")

        if current_page_result_count < size or current_page_result_count % size != 0:
            return NO_PAGE

        found = probe()
        log.debug("Next-page probe at offset %d returned %d", self.probe_offset(page_size=size), found)
        return self.page + 1 if found >= 1 else NO_PAGE

    def has_next_page(
        self,
        current_page_result_count: int,
        page_size: int,
        probe: Callable[[], int],
    ) -> bool:
        return self.next_page(current_page_result_count, probe, page_size=page_size) != NO_PAGE

    def previous_page(self, current_page: Optional[int] = None) -> int:
        p = self.page if current_page is None else current_page
        return p - 1 if p > 0 else NO_PAGE

    def has_previous_page(self, current_page: Optional[int] = None) -> bool:
        return self.previous_page(current_page) != NO_PAGE
