"""
Inverted index with per-document term frequencies.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional, Protocol

from .tokenizer import tokenize


logger = logging.getLogger(__name__)


class DocumentSource(Protocol):
    """Anything with a url, a title and body text, e.g. a CrawledPage."""
    url: str
    title: str
    body_text: str


@dataclass(frozen=True)
class Document:
    """An indexed document."""
    url: str
    title: str
    term_freqs: Mapping[str, int] = field(default_factory=dict)
    length: int = 0

    @classmethod
    def from_text(cls, url: str, title: str, body_text: str) -> 'Document':
        terms = tokenize(body_text)
        return cls(url=url, title=title or "", term_freqs=dict(Counter(terms)), length=len(terms))


@dataclass(frozen=True)
class DocumentInfo:
    """Per-document data kept by the index."""
    title: str
    length: int


class InvertedIndex:
    """
    Immutable term -> {url: tf} mapping plus document table.

    Document frequency is not stored; df(t) is the size of t's postings.
    Build with build_index() or IndexBuilder, never mutate afterwards.
    """

    def __init__(self, postings: Dict[str, Dict[str, int]], documents: Dict[str, DocumentInfo],
                 doc_count: Optional[int] = None):
        self._postings = {term: MappingProxyType(dict(entries)) for term, entries in postings.items()}
        self._documents = dict(documents)
        self.doc_count = len(self._documents) if doc_count is None else doc_count

        if self.doc_count < len(self._documents):
            raise ValueError(f"doc_count {self.doc_count} is smaller than the "
                             f"number of documents ({len(self._documents)})")
        for term, entries in self._postings.items():
            for url, tf in entries.items():
                if tf < 1:
                    raise ValueError(f"Posting for {term!r} in {url} has frequency {tf}")

    @property
    def postings(self) -> Mapping[str, Mapping[str, int]]:
        return MappingProxyType(self._postings)

    @property
    def documents(self) -> Mapping[str, DocumentInfo]:
        return MappingProxyType(self._documents)

    def get_postings(self, term: str) -> Mapping[str, int]:
        """Postings of a term; empty if the term is unknown."""
        return self._postings.get(term, MappingProxyType({}))

    def document_frequency(self, term: str) -> int:
        """df(t): number of documents containing the term."""
        return len(self._postings.get(term, ()))

    def term_frequency(self, term: str, url: str) -> int:
        """tf(t, d): occurrences of the term in the document."""
        return self._postings.get(term, {}).get(url, 0)

    def title(self, url: str) -> str:
        info = self._documents.get(url)
        return info.title if info else ""

    @property
    def term_count(self) -> int:
        return len(self._postings)

    def __contains__(self, term: str) -> bool:
        return term in self._postings

    def __len__(self) -> int:
        return self.doc_count

    def __eq__(self, other) -> bool:
        if not isinstance(other, InvertedIndex):
            return NotImplemented
        return (self.doc_count == other.doc_count
                and self._documents == other._documents
                and {t: dict(p) for t, p in self._postings.items()}
                == {t: dict(p) for t, p in other._postings.items()})

    def __repr__(self) -> str:
        return f"InvertedIndex(documents={self.doc_count}, terms={self.term_count})"


class IndexBuilder:
    """Accumulates documents in one batch pass, then produces an InvertedIndex."""

    def __init__(self):
        self._postings: Dict[str, Dict[str, int]] = {}
        self._documents: Dict[str, DocumentInfo] = {}

    def add_document(self, document: Document) -> bool:
        """Add a document. Returns False if its URL was already added."""
        if document.url in self._documents:
            logger.warning(f"Duplicate document ignored: {document.url}")
            return False

        self._documents[document.url] = DocumentInfo(title=document.title, length=document.length)
        for term, tf in document.term_freqs.items():
            self._postings.setdefault(term, {})[document.url] = tf
        return True

    def add(self, url: str, title: str, body_text: str) -> bool:
        return self.add_document(Document.from_text(url, title, body_text))

    def build(self) -> InvertedIndex:
        index = InvertedIndex(self._postings, self._documents)
        logger.info(f"Built index: {index.doc_count} documents, {index.term_count} terms")
        return index


def build_index(sources: Iterable[DocumentSource]) -> InvertedIndex:
    """Build an inverted index from crawled pages (or any url/title/body_text objects)."""
    builder = IndexBuilder()
    for source in sources:
        builder.add(source.url, source.title, source.body_text)
    return builder.build()
