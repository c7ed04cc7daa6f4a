"""
Web page parser for extracting title, visible text and links.
"""

import re
import logging
from typing import List, Optional
from dataclasses import dataclass, field
from bs4 import BeautifulSoup, Comment


class ContentParseError(Exception):
    """Raised when a document cannot be parsed as HTML."""
    pass


@dataclass
class ParsedContent:
    """Container for parsed web page content."""
    url: str
    title: str = ""
    content: str = ""
    links: List[str] = field(default_factory=list)
    word_count: int = 0


class ContentParser:
    """
    Extracts the page title, the visible body text and the raw href values
    of all anchors. Links are returned exactly as written in the document;
    resolving them is left to the crawler.
    """

    def __init__(self, features: str = 'lxml'):
        self.features = features
        self.logger = logging.getLogger(__name__)

        # Patterns for cleaning content
        self.whitespace_pattern = re.compile(r'\s+')

    def parse(self, url: str, html_content: str) -> ParsedContent:
        """
        Parse HTML content and extract structured data.

        Args:
            url: The URL of the page
            html_content: Raw HTML content

        Returns:
            ParsedContent object with extracted data

        Raises:
            ContentParseError: If the markup cannot be processed
        """
        if html_content is None:
            raise ContentParseError(f"No content to parse for {url}")

        try:
            soup = BeautifulSoup(html_content, self.features)

            parsed_content = ParsedContent(url=url)

            # Extract links before removing elements
            parsed_content.links = self._extract_links(soup)

            # Remove script and style elements
            for script in soup(["script", "style", "noscript", "template"]):
                script.decompose()

            # Remove comments
            for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
                comment.extract()

            parsed_content.title = self._extract_title(soup)
            parsed_content.content = self._extract_body_text(soup)
            parsed_content.word_count = len(parsed_content.content.split())

        except Exception as e:
            raise ContentParseError(f"Error parsing content from {url}: {e}") from e

        self.logger.debug(f"Parsed content from {url}: {parsed_content.word_count} words, "
                          f"{len(parsed_content.links)} links")
        return parsed_content

    def _extract_title(self, soup: BeautifulSoup) -> str:
        """Extract page title."""
        title_tag = soup.find('title')
        if title_tag:
            return self._clean_text(title_tag.get_text())
        return ""

    def _extract_body_text(self, soup: BeautifulSoup) -> str:
        """Extract visible text of the body (whole document if there is none)."""
        content_element: Optional[BeautifulSoup] = soup.find('body') or soup

        # The title belongs to the head; drop it when falling back to the whole document
        if content_element is soup:
            for title_tag in soup.find_all('title'):
                title_tag.decompose()

        text_content = content_element.get_text(separator=' ', strip=True)
        return self._clean_text(text_content)

    def _extract_links(self, soup: BeautifulSoup) -> List[str]:
        """Collect raw href values in document order."""
        links = []
        for link in soup.find_all('a', href=True):
            href = link['href'].strip()
            if not href or href.startswith('#'):
                continue
            links.append(href)
        return links

    def _clean_text(self, text: str) -> str:
        """Collapse runs of whitespace."""
        if not text:
            return ""
        return self.whitespace_pattern.sub(' ', text.strip())
