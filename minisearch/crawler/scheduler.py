"""
Crawler scheduler that coordinates crawling tasks and manages the overall crawl process.
"""

import asyncio
import logging
import time
from collections import Counter
from enum import Enum
from typing import Dict, List, Optional
from dataclasses import dataclass, field

from .url_frontier import URLFrontier, FrontierEntry
from .fetcher import WebFetcher, FailureKind, FetchFailure, FetchOutcome, FetchSuccess
from .url_resolver import LinkResolutionError, normalize, resolve, same_site
from ..utils.config import CrawlerConfig
from ..utils.logger import get_crawler_logger
from ..utils.monitoring import CrawlerMonitor, get_monitor


class CrawlError(Exception):
    """Raised when a crawl cannot run at all."""
    pass


class InvalidStartURLError(CrawlError):
    """The start URL is not a valid absolute http(s) URL."""
    pass


class CrawlState(Enum):
    """Lifecycle of a crawl run."""
    IDLE = "idle"
    RUNNING = "running"
    DRAINING = "draining"
    DONE = "done"


@dataclass(frozen=True)
class CrawledPage:
    """A page that was fetched successfully."""
    url: str
    title: str
    body_text: str
    depth: int


@dataclass
class CrawlStats:
    """Statistics for crawl operations."""
    start_time: float
    pages_crawled: int = 0
    links_queued: int = 0
    links_skipped: int = 0
    failures: Counter = field(default_factory=Counter)
    total_fetch_time: float = 0.0
    peak_in_flight: int = 0

    @property
    def elapsed_time(self) -> float:
        return time.time() - self.start_time

    @property
    def errors(self) -> int:
        return sum(self.failures.values())

    @property
    def pages_per_minute(self) -> float:
        elapsed_minutes = self.elapsed_time / 60
        return self.pages_crawled / elapsed_minutes if elapsed_minutes > 0 else 0

    @property
    def average_response_time(self) -> float:
        fetches = self.pages_crawled + self.errors
        return self.total_fetch_time / fetches if fetches else 0.0


class CrawlerScheduler:
    """
    Crawls one site breadth-first with a fixed pool of worker tasks.

    The frontier is the only shared mutable state; workers touch it only
    through its synchronized methods. Idle workers wait on a condition that
    is notified whenever a sibling finishes a page, so they wake up when new
    links were queued or when the crawl has run out of work.
    """

    def __init__(self, config: CrawlerConfig, fetcher: Optional[WebFetcher] = None,
                 monitor: Optional[CrawlerMonitor] = None):
        self.config = config
        self.logger = logging.getLogger(__name__)
        self.monitor = monitor or get_monitor()

        # Components
        self.fetcher = fetcher
        self._owns_fetcher = fetcher is None
        self.url_frontier: Optional[URLFrontier] = None

        # Crawl state
        self.state = CrawlState.IDLE
        self.stats = CrawlStats(start_time=time.time())
        self.pages: List[CrawledPage] = []
        self.failures: Dict[str, FetchFailure] = {}
        self.workers: List[asyncio.Task] = []
        self.start_url: Optional[str] = None
        self._work_changed: Optional[asyncio.Condition] = None
        self._stopping = False

    async def crawl(self, start_url: str) -> List[CrawledPage]:
        """
        Crawl the site of start_url.

        Args:
            start_url: Absolute http(s) URL to start from (depth 0)

        Returns:
            Crawled pages ordered by depth, then URL

        Raises:
            InvalidStartURLError: If start_url cannot be normalized
        """
        if self.state is not CrawlState.IDLE:
            raise CrawlError(f"Crawler already used (state: {self.state.value})")

        try:
            self.start_url = normalize(start_url)
        except LinkResolutionError as e:
            raise InvalidStartURLError(f"Invalid start URL {start_url!r}: {e}") from e

        self.url_frontier = URLFrontier(self.config.max_pages, self.config.max_depth)
        self.url_frontier.try_enqueue(self.start_url, 0)
        self._work_changed = asyncio.Condition()
        self.stats = CrawlStats(start_time=time.time())

        if self.fetcher is None:
            self.fetcher = WebFetcher(
                user_agent=self.config.user_agent,
                request_timeout=self.config.request_timeout,
                max_connections=self.config.concurrency,
                max_content_bytes=self.config.max_content_bytes
            )

        self.logger.info(f"Starting crawl of {self.start_url} "
                         f"(max_pages={self.config.max_pages}, max_depth={self.config.max_depth}, "
                         f"concurrency={self.config.concurrency})")

        self.state = CrawlState.RUNNING
        stats_task = asyncio.create_task(self._stats_reporter())

        try:
            if self._owns_fetcher:
                await self.fetcher.start()

            self.workers = [
                asyncio.create_task(self._worker(f"worker-{i}"))
                for i in range(self.config.concurrency)
            ]

            # Wait for workers to complete
            await asyncio.gather(*self.workers)

        finally:
            stats_task.cancel()
            await asyncio.gather(stats_task, return_exceptions=True)
            await self._cleanup_workers()
            if self._owns_fetcher:
                await self.fetcher.close()
            self.state = CrawlState.DONE

        self._log_final_stats()
        return sorted(self.pages, key=lambda page: (page.depth, page.url))

    async def _worker(self, worker_id: str):
        """
        Worker coroutine that processes URLs from the frontier.
        """
        logger = get_crawler_logger(__name__, worker=worker_id)
        logger.debug("Worker started")

        while True:
            entry = await self._next_entry()
            if entry is None:
                break

            try:
                await self._process_entry(entry, logger)
            except Exception as e:
                self.stats.failures['unexpected_error'] += 1
                logger.error(f"Error processing {entry.url}: {e}", exc_info=True)
            finally:
                self.url_frontier.task_done(entry)
                async with self._work_changed:
                    self._work_changed.notify_all()

        logger.debug("Worker finished")

    async def _next_entry(self) -> Optional[FrontierEntry]:
        """Wait for the next entry; None once no more work can appear."""
        frontier = self.url_frontier

        async with self._work_changed:
            while True:
                if self._stopping:
                    self._enter_draining()
                    return None

                entry = frontier.dequeue()
                if entry is not None:
                    in_flight = frontier.get_stats()['in_flight']
                    self.stats.peak_in_flight = max(self.stats.peak_in_flight, in_flight)
                    return entry

                if frontier.is_exhausted() or frontier.is_closed():
                    self._enter_draining()
                    return None

                await self._work_changed.wait()

    def _enter_draining(self):
        if self.state is CrawlState.RUNNING:
            self.state = CrawlState.DRAINING
            self.logger.info("Dispatch finished, draining in-flight fetches")

    async def _process_entry(self, entry: FrontierEntry, logger):
        """Fetch one entry and queue the same-site links it contains."""
        outcome: FetchOutcome = await self.fetcher.fetch(entry.url)
        self.stats.total_fetch_time += outcome.fetch_time

        if isinstance(outcome, FetchSuccess) and not same_site(outcome.final_url, self.start_url):
            outcome = FetchFailure(
                url=entry.url,
                kind=FailureKind.HTTP_ERROR,
                status_code=outcome.status_code,
                error=f"Redirected off site to {outcome.final_url}",
                fetch_time=outcome.fetch_time
            )

        if isinstance(outcome, FetchFailure):
            self.failures[entry.url] = outcome
            self.stats.failures[outcome.kind.value] += 1
            self.monitor.record_fetch_failure(entry.url, outcome.kind.value, outcome.fetch_time)
            logger.log_url_event(logging.WARNING, entry.url,
                                 f"Fetch failed ({outcome.kind.value}: {outcome.error})")
            return

        self.pages.append(CrawledPage(
            url=entry.url,
            title=outcome.title,
            body_text=outcome.body_text,
            depth=entry.depth
        ))
        self.stats.pages_crawled += 1
        self.monitor.record_page_crawled(entry.url, outcome.fetch_time)

        queued = self._queue_links(entry, outcome.final_url, outcome.links)
        self.monitor.record_links_queued(queued)
        self.monitor.update_queue_size(self.url_frontier.get_stats()['total_queued'])
        logger.debug(f"Processed {entry.url} (depth {entry.depth}): "
                     f"{len(outcome.links)} links, {queued} queued")

    def _queue_links(self, entry: FrontierEntry, base_url: str, links: List[str]) -> int:
        """Resolve links against the page's final URL, filter and enqueue them. Returns count queued."""
        queued = 0
        for href in links:
            try:
                link = resolve(base_url, href)
            except LinkResolutionError as e:
                self.stats.links_skipped += 1
                self.logger.debug(f"Skipping link on {entry.url}: {e}")
                continue

            if not same_site(link, self.start_url):
                self.stats.links_skipped += 1
                continue

            if self.url_frontier.try_enqueue(link, entry.depth + 1, parent_url=entry.url):
                queued += 1

        self.stats.links_queued += queued
        return queued

    async def _stats_reporter(self):
        """Periodically log crawl statistics."""
        while True:
            await asyncio.sleep(self.config.progress_interval)
            self._log_current_stats()

    def _log_current_stats(self):
        """Log current crawl statistics."""
        frontier_stats = self.url_frontier.get_stats()

        self.logger.info(
            f"Crawl Progress: "
            f"Crawled={self.stats.pages_crawled}, "
            f"Queued={frontier_stats['total_queued']}, "
            f"InFlight={frontier_stats['in_flight']}, "
            f"Errors={self.stats.errors}, "
            f"Rate={self.stats.pages_per_minute:.1f} pages/min, "
            f"AvgTime={self.stats.average_response_time:.2f}s"
        )

    def _log_final_stats(self):
        """Log final crawl statistics."""
        frontier_stats = self.url_frontier.get_stats()

        self.logger.info("=== CRAWL COMPLETED ===")
        self.logger.info(f"Pages crawled: {self.stats.pages_crawled}")
        self.logger.info(f"Failed fetches: {self.stats.errors} {dict(self.stats.failures)}")
        self.logger.info(f"Links queued: {self.stats.links_queued}, skipped: {self.stats.links_skipped}")
        self.logger.info(f"URLs claimed: {frontier_stats['total_enqueued']}")
        self.logger.info(f"Total time: {self.stats.elapsed_time:.2f} seconds")
        self.logger.info(f"Average rate: {self.stats.pages_per_minute:.1f} pages/min")
        if hasattr(self.fetcher, 'get_stats'):
            self.logger.info(f"Fetcher stats: {self.fetcher.get_stats()}")

    async def stop(self):
        """Stop dispatching new URLs; fetches already running are allowed to finish."""
        self.logger.info("Stopping crawler...")
        self._stopping = True
        if self._work_changed is not None:
            async with self._work_changed:
                self._work_changed.notify_all()

    async def _cleanup_workers(self):
        """Cancel and cleanup worker tasks."""
        if self.workers:
            for worker in self.workers:
                if not worker.done():
                    worker.cancel()

            # Wait for workers to finish
            await asyncio.gather(*self.workers, return_exceptions=True)
            self.workers.clear()

    def get_stats(self) -> Dict:
        """Get current crawl statistics."""
        return {
            'state': self.state.value,
            'pages_crawled': self.stats.pages_crawled,
            'errors': self.stats.errors,
            'failures': dict(self.stats.failures),
            'links_queued': self.stats.links_queued,
            'links_skipped': self.stats.links_skipped,
            'elapsed_time': self.stats.elapsed_time,
            'pages_per_minute': self.stats.pages_per_minute,
            'average_response_time': self.stats.average_response_time,
            'peak_in_flight': self.stats.peak_in_flight
        }


async def crawl(start_url: str, config: Optional[CrawlerConfig] = None,
                fetcher: Optional[WebFetcher] = None) -> List[CrawledPage]:
    """Convenience wrapper: crawl one site with a fresh scheduler."""
    scheduler = CrawlerScheduler(config or CrawlerConfig(), fetcher=fetcher)
    return await scheduler.crawl(start_url)
