"""
URL Frontier implementation for managing URLs to crawl.
Implements deduplication, depth and page-count limits with BFS ordering.
"""

import logging
import threading
import time
from typing import Dict, Set, Optional
from dataclasses import dataclass, field
from collections import deque


@dataclass(frozen=True)
class FrontierEntry:
    """A claimed URL waiting to be fetched."""
    url: str
    depth: int
    parent_url: Optional[str] = None
    discovered_time: float = field(default_factory=time.time, compare=False)


class URLFrontier:
    """
    Owns the visited set and the FIFO queue of pending URLs.

    Every mutation happens under a single lock that is only held for
    in-memory bookkeeping, never while a fetch is in progress. A URL is
    added to the visited set in the same critical section that queues it,
    so two workers racing on the same link cannot both claim it.
    """

    def __init__(self, max_pages: int, max_depth: int):
        if max_pages < 1:
            raise ValueError("max_pages must be at least 1")
        if max_depth < 0:
            raise ValueError("max_depth must be non-negative")

        self.max_pages = max_pages
        self.max_depth = max_depth
        self.logger = logging.getLogger(__name__)

        self._lock = threading.Lock()
        self._visited: Set[str] = set()
        self._queue: deque = deque()
        self._enqueued_count = 0
        self._dispatched_count = 0
        self._in_flight = 0
        self._rejected = {
            'duplicate': 0,
            'too_deep': 0,
            'page_limit': 0
        }

    def try_enqueue(self, url: str, depth: int, parent_url: Optional[str] = None) -> bool:
        """
        Claim a URL for crawling.
        Returns True if the URL was queued, False if it was rejected.
        """
        with self._lock:
            if url in self._visited:
                self._rejected['duplicate'] += 1
                return False
            if depth > self.max_depth:
                self._rejected['too_deep'] += 1
                return False
            if self._enqueued_count >= self.max_pages:
                self._rejected['page_limit'] += 1
                return False

            self._visited.add(url)
            self._queue.append(FrontierEntry(url=url, depth=depth, parent_url=parent_url))
            self._enqueued_count += 1

        self.logger.debug(f"Added URL to frontier: {url} (depth {depth})")
        return True

    def dequeue(self) -> Optional[FrontierEntry]:
        """Pop the oldest queued entry and mark it as in flight."""
        with self._lock:
            if not self._queue:
                return None
            entry = self._queue.popleft()
            self._in_flight += 1
            self._dispatched_count += 1

        self.logger.debug(f"Retrieved URL from frontier: {entry.url}")
        return entry

    def task_done(self, entry: FrontierEntry):
        """Release the in-flight slot held by a dequeued entry."""
        with self._lock:
            if self._in_flight <= 0:
                raise RuntimeError(f"task_done() called more times than dequeue(): {entry.url}")
            self._in_flight -= 1

    def is_exhausted(self) -> bool:
        """True when nothing is queued and no worker holds an entry."""
        with self._lock:
            return not self._queue and self._in_flight == 0

    def is_closed(self) -> bool:
        """True when the page budget is spent and every claimed URL was dispatched."""
        with self._lock:
            return not self._queue and self._enqueued_count >= self.max_pages

    def is_visited(self, url: str) -> bool:
        """Check if a URL has already been claimed."""
        with self._lock:
            return url in self._visited

    @property
    def enqueued_count(self) -> int:
        with self._lock:
            return self._enqueued_count

    def get_stats(self) -> Dict[str, int]:
        """Get frontier statistics."""
        with self._lock:
            return {
                'total_queued': len(self._queue),
                'in_flight': self._in_flight,
                'total_enqueued': self._enqueued_count,
                'total_dispatched': self._dispatched_count,
                'total_visited': len(self._visited),
                'rejected_duplicate': self._rejected['duplicate'],
                'rejected_too_deep': self._rejected['too_deep'],
                'rejected_page_limit': self._rejected['page_limit']
            }
