"""
Web page fetcher. Turns every per-URL problem into a FetchFailure value.
"""

import asyncio
import aiohttp
import logging
import time
from enum import Enum
from typing import Optional, Dict, List, Union
from dataclasses import dataclass, field
from aiohttp import ClientSession, ClientTimeout, ClientError

from .parser import ContentParser, ContentParseError
from ..utils.config import DEFAULT_USER_AGENT


class FailureKind(Enum):
    """Why a fetch produced no document."""
    TIMEOUT = "timeout"
    HTTP_ERROR = "http_error"
    CONNECTION_ERROR = "connection_error"
    PARSE_ERROR = "parse_error"


@dataclass
class FetchSuccess:
    """A fetched and extracted page."""
    url: str
    title: str
    body_text: str
    links: List[str] = field(default_factory=list)
    status_code: int = 200
    fetch_time: float = 0.0
    final_url: Optional[str] = None

    def __post_init__(self):
        # URL the page was served from once redirects were followed
        if self.final_url is None:
            self.final_url = self.url


@dataclass
class FetchFailure:
    """A fetch that did not produce a page."""
    url: str
    kind: FailureKind
    status_code: Optional[int] = None
    error: Optional[str] = None
    fetch_time: float = 0.0


FetchOutcome = Union[FetchSuccess, FetchFailure]


class WebFetcher:
    """
    Fetches web pages through one shared aiohttp session.
    HTML-to-text and link extraction is delegated to a ContentParser.
    """

    def __init__(self, user_agent: str = DEFAULT_USER_AGENT, request_timeout: float = 10,
                 max_connections: int = 10, max_content_bytes: int = 10 * 1024 * 1024,
                 parser: Optional[ContentParser] = None):
        self.user_agent = user_agent
        self.request_timeout = request_timeout
        self.max_connections = max_connections
        self.max_content_bytes = max_content_bytes
        self.parser = parser or ContentParser()

        self.logger = logging.getLogger(__name__)

        # Session management
        self.session: Optional[ClientSession] = None

        # Statistics
        self.stats = {
            'total_requests': 0,
            'successful_requests': 0,
            'failed_requests': 0,
            'total_bytes_downloaded': 0
        }

    async def __aenter__(self):
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def start(self):
        """Initialize the fetcher session."""
        if self.session is None:
            timeout = ClientTimeout(total=self.request_timeout)
            headers = {'User-Agent': self.user_agent}

            self.session = aiohttp.ClientSession(
                timeout=timeout,
                headers=headers,
                connector=aiohttp.TCPConnector(
                    limit=self.max_connections,
                    ttl_dns_cache=300,
                    use_dns_cache=True
                )
            )
            self.logger.info("WebFetcher session started")

    async def close(self):
        """Close the fetcher session."""
        if self.session:
            await self.session.close()
            self.session = None
            self.logger.info("WebFetcher session closed")

    async def fetch(self, url: str) -> FetchOutcome:
        """
        Fetch a single URL and extract its text and links.

        Args:
            url: The URL to fetch

        Returns:
            FetchSuccess with the extracted page, or FetchFailure describing what went wrong
        """
        if self.session is None:
            await self.start()

        start_time = time.time()
        self.stats['total_requests'] += 1

        try:
            async with self.session.get(url) as response:
                if not 200 <= response.status < 300:
                    self.logger.warning(f"HTTP {response.status} fetching {url}")
                    return self._failure(url, FailureKind.HTTP_ERROR, start_time,
                                         status_code=response.status,
                                         error=f"HTTP status {response.status}")

                content_type = response.headers.get('content-type', '').lower()
                if not self._is_text_content(content_type):
                    self.logger.debug(f"Skipping non-text content: {url} ({content_type})")
                    return self._failure(url, FailureKind.PARSE_ERROR, start_time,
                                         status_code=response.status,
                                         error=f"Non-text content type: {content_type}")

                content = await self._read_content_safely(response)
                status_code = response.status
                final_url = str(response.url)

        except asyncio.TimeoutError:
            self.logger.warning(f"Timeout fetching {url}")
            return self._failure(url, FailureKind.TIMEOUT, start_time, error="Request timeout")

        except ClientError as e:
            self.logger.warning(f"Client error fetching {url}: {e}")
            return self._failure(url, FailureKind.CONNECTION_ERROR, start_time,
                                 error=f"Client error: {e}")

        if content is None:
            return self._failure(url, FailureKind.PARSE_ERROR, start_time, status_code=status_code,
                                 error="Content too large")

        try:
            parsed = self.parser.parse(url, content)
        except ContentParseError as e:
            self.logger.warning(str(e))
            return self._failure(url, FailureKind.PARSE_ERROR, start_time, status_code=status_code,
                                 error=str(e))

        self.stats['successful_requests'] += 1
        self.stats['total_bytes_downloaded'] += len(content)
        fetch_time = time.time() - start_time
        self.logger.debug(f"Fetched {url}: {status_code} ({len(content)} chars) in {fetch_time:.2f}s")

        return FetchSuccess(
            url=url,
            title=parsed.title,
            body_text=parsed.content,
            links=parsed.links,
            status_code=status_code,
            fetch_time=fetch_time,
            final_url=final_url
        )

    def _failure(self, url: str, kind: FailureKind, start_time: float,
                 status_code: Optional[int] = None, error: Optional[str] = None) -> FetchFailure:
        self.stats['failed_requests'] += 1
        return FetchFailure(
            url=url,
            kind=kind,
            status_code=status_code,
            error=error,
            fetch_time=time.time() - start_time
        )

    def _is_text_content(self, content_type: str) -> bool:
        """Check if content type is HTML or plain text. A missing header is accepted."""
        if not content_type:
            return True

        text_types = [
            'text/html',
            'text/plain',
            'application/xhtml+xml'
        ]

        return any(text_type in content_type for text_type in text_types)

    async def _read_content_safely(self, response) -> Optional[str]:
        """
        Read response content with a size limit.

        Returns:
            Content string or None if it is larger than max_content_bytes
        """
        content_length = response.headers.get('content-length')
        if content_length and content_length.isdigit() and int(content_length) > self.max_content_bytes:
            self.logger.warning(f"Content too large ({content_length} bytes): {response.url}")
            return None

        # Read content in chunks to respect size limit
        content_bytes = b''
        async for chunk in response.content.iter_chunked(8192):
            content_bytes += chunk
            if len(content_bytes) > self.max_content_bytes:
                self.logger.warning(f"Content exceeded size limit during reading: {response.url}")
                return None

        # Decode content
        encoding = response.charset or 'utf-8'
        try:
            return content_bytes.decode(encoding)
        except (UnicodeDecodeError, LookupError):
            # Try common encodings
            for fallback_encoding in ['utf-8', 'cp1252']:
                try:
                    return content_bytes.decode(fallback_encoding)
                except UnicodeDecodeError:
                    continue

            # latin-1 maps every byte
            return content_bytes.decode('latin-1')

    def get_stats(self) -> Dict[str, int]:
        """Get fetcher statistics."""
        return self.stats.copy()
