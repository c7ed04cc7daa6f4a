"""
Monitoring and metrics collection for crawling and search.
"""

import logging
from typing import Dict, Optional

from prometheus_client import Counter, Histogram, Gauge, CollectorRegistry, generate_latest
from prometheus_client import CONTENT_TYPE_LATEST


class MetricsCollector:
    """Owns a private Prometheus registry and the metrics defined on it."""

    def __init__(self, enabled: bool = True):
        self.logger = logging.getLogger(__name__)
        self.enabled = enabled
        self.registry = CollectorRegistry()

        self.metrics = {
            'pages_crawled_total': Counter(
                'minisearch_pages_crawled_total',
                'Total number of pages fetched and extracted',
                registry=self.registry
            ),
            'fetch_failures_total': Counter(
                'minisearch_fetch_failures_total',
                'Total number of failed fetches',
                ['kind'],
                registry=self.registry
            ),
            'links_discovered_total': Counter(
                'minisearch_links_discovered_total',
                'Total number of links queued for crawling',
                registry=self.registry
            ),
            'fetch_seconds': Histogram(
                'minisearch_fetch_seconds',
                'Time spent fetching a page',
                registry=self.registry
            ),
            'queue_size': Gauge(
                'minisearch_queue_size',
                'Number of URLs waiting in the frontier',
                registry=self.registry
            ),
            'indexed_documents': Gauge(
                'minisearch_indexed_documents',
                'Number of documents in the served index',
                registry=self.registry
            ),
            'indexed_terms': Gauge(
                'minisearch_indexed_terms',
                'Number of distinct terms in the served index',
                registry=self.registry
            ),
            'searches_total': Counter(
                'minisearch_searches_total',
                'Total number of search queries answered',
                registry=self.registry
            ),
            'search_seconds': Histogram(
                'minisearch_search_seconds',
                'Time spent ranking a query',
                registry=self.registry
            ),
        }

    def increment_counter(self, name: str, labels: Optional[Dict[str, str]] = None, amount: float = 1):
        """Increment a counter metric."""
        if not self.enabled:
            return
        metric = self.metrics[name]
        if labels:
            metric = metric.labels(**labels)
        metric.inc(amount)

    def set_gauge(self, name: str, value: float):
        """Set a gauge metric value."""
        if self.enabled:
            self.metrics[name].set(value)

    def observe_histogram(self, name: str, value: float):
        """Record a histogram observation."""
        if self.enabled:
            self.metrics[name].observe(value)

    def get_sample_value(self, name: str, labels: Optional[Dict[str, str]] = None) -> Optional[float]:
        """Read back a single sample, e.g. 'minisearch_searches_total'."""
        return self.registry.get_sample_value(name, labels or {})

    def export_text(self) -> bytes:
        """Render all metrics in the Prometheus text format."""
        return generate_latest(self.registry)

    @property
    def content_type(self) -> str:
        return CONTENT_TYPE_LATEST


class CrawlerMonitor:
    """High-level monitoring interface used by the crawler and the API."""

    def __init__(self, metrics_collector: MetricsCollector):
        self.metrics = metrics_collector
        self.logger = logging.getLogger(__name__)

    def record_page_crawled(self, url: str, fetch_time: float):
        """Record a successfully fetched page."""
        self.metrics.increment_counter('pages_crawled_total')
        self.metrics.observe_histogram('fetch_seconds', fetch_time)

    def record_fetch_failure(self, url: str, kind: str, fetch_time: float = 0.0):
        """Record a failed fetch by failure kind."""
        self.metrics.increment_counter('fetch_failures_total', {'kind': kind})
        self.metrics.observe_histogram('fetch_seconds', fetch_time)

    def record_links_queued(self, count: int):
        """Record newly queued links."""
        if count:
            self.metrics.increment_counter('links_discovered_total', amount=count)

    def update_queue_size(self, size: int):
        """Update the queue size metric."""
        self.metrics.set_gauge('queue_size', size)

    def update_index_size(self, documents: int, terms: int):
        """Update gauges describing the served index."""
        self.metrics.set_gauge('indexed_documents', documents)
        self.metrics.set_gauge('indexed_terms', terms)

    def record_search(self, duration: float, result_count: int):
        """Record one answered query."""
        self.metrics.increment_counter('searches_total')
        self.metrics.observe_histogram('search_seconds', duration)


# Global monitoring instance
_global_monitor: Optional[CrawlerMonitor] = None


def initialize_monitoring(enabled: bool = True) -> CrawlerMonitor:
    """Initialize global monitoring."""
    global _global_monitor

    metrics_collector = MetricsCollector(enabled)
    _global_monitor = CrawlerMonitor(metrics_collector)

    return _global_monitor


def get_monitor() -> CrawlerMonitor:
    """Get the global monitor instance, creating it on first use."""
    global _global_monitor
    if _global_monitor is None:
        _global_monitor = CrawlerMonitor(MetricsCollector())
    return _global_monitor
