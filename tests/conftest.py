import asyncio
from typing import Dict, Iterable, Optional, Tuple

import pytest

from minisearch.crawler.fetcher import FailureKind, FetchFailure, FetchSuccess
from minisearch.index.inverted_index import build_index
from minisearch.crawler.scheduler import CrawledPage
from minisearch.utils.monitoring import CrawlerMonitor, MetricsCollector


SITE = "http://site.test"


class FakeFetcher:
    """In-memory stand-in for WebFetcher: url -> (title, body, links), plus url -> redirect target."""

    def __init__(self, pages: Dict[str, Tuple[str, str, Iterable[str]]],
                 failures: Optional[Dict[str, FailureKind]] = None, delay: float = 0.0,
                 redirects: Optional[Dict[str, str]] = None):
        self.pages = pages
        self.failures = failures or {}
        self.redirects = redirects or {}
        self.delay = delay
        self.calls = []
        self.active = 0
        self.max_active = 0

    async def fetch(self, url):
        self.calls.append(url)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delay)
            if url in self.failures:
                return FetchFailure(url=url, kind=self.failures[url], error="injected")
            final_url = self.redirects.get(url, url)
            if final_url not in self.pages:
                return FetchFailure(url=url, kind=FailureKind.HTTP_ERROR, status_code=404,
                                    error="HTTP status 404")
            title, body, links = self.pages[final_url]
            return FetchSuccess(url=url, title=title, body_text=body, links=list(links),
                                final_url=final_url)
        finally:
            self.active -= 1


@pytest.fixture
def monitor():
    return CrawlerMonitor(MetricsCollector())


@pytest.fixture
def sample_pages():
    return [
        CrawledPage(url="http://a.test/a", title="Page A", body_text="rust is great rust", depth=0),
        CrawledPage(url="http://a.test/b", title="Page B", body_text="go is great", depth=1),
        CrawledPage(url="http://a.test/c", title="Page C", body_text="rust go python rust rust", depth=1),
    ]


@pytest.fixture
def sample_index(sample_pages):
    return build_index(sample_pages)
