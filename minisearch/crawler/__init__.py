"""
Web crawler core components.
"""

from .url_frontier import URLFrontier, FrontierEntry
from .url_resolver import LinkResolutionError, resolve, normalize, same_site
from .fetcher import WebFetcher, FetchSuccess, FetchFailure, FailureKind
from .parser import ContentParser, ParsedContent, ContentParseError
from .scheduler import CrawlerScheduler, CrawledPage, CrawlState, CrawlError, InvalidStartURLError, crawl

__all__ = [
    'URLFrontier', 'FrontierEntry',
    'LinkResolutionError', 'resolve', 'normalize', 'same_site',
    'WebFetcher', 'FetchSuccess', 'FetchFailure', 'FailureKind',
    'ContentParser', 'ParsedContent', 'ContentParseError',
    'CrawlerScheduler', 'CrawledPage', 'CrawlState', 'CrawlError', 'InvalidStartURLError', 'crawl'
]
