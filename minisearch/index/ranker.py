"""
TF-IDF ranking over an InvertedIndex.
"""

import math
from dataclasses import dataclass, asdict
from typing import Dict, List, Optional

from .inverted_index import InvertedIndex
from .tokenizer import tokenize


@dataclass(frozen=True)
class SearchResult:
    """One ranked hit."""
    url: str
    title: str
    score: float

    def to_dict(self) -> dict:
        return asdict(self)


def query_terms(query: str) -> List[str]:
    """Distinct query terms in first-seen order."""
    return list(dict.fromkeys(tokenize(query or "")))


def idf(index: InvertedIndex, term: str) -> float:
    """ln(N / df(t)); 0.0 for a term the index does not contain."""
    df = index.document_frequency(term)
    if df == 0:
        return 0.0
    return math.log(index.doc_count / df)


def score_documents(index: InvertedIndex, query: str) -> Dict[str, float]:
    """Sum tf * idf over distinct query terms for every document matching at least one."""
    scores: Dict[str, float] = {}
    for term in query_terms(query):
        postings = index.get_postings(term)
        if not postings:
            continue
        term_idf = idf(index, term)
        for url, tf in postings.items():
            scores[url] = scores.get(url, 0.0) + tf * term_idf
    return scores


def search(index: InvertedIndex, query: str, limit: Optional[int] = None) -> List[SearchResult]:
    """
    Rank documents for a keyword query.

    Results are ordered by descending score, ties by ascending URL.
    Documents scoring 0.0 are left out, including those whose only matching
    terms occur in every document; an empty query or one
    made only of unknown terms returns an empty list.
    """
    scores = score_documents(index, query)
    ranked = sorted(((url, score) for url, score in scores.items() if score > 0),
                    key=lambda item: (-item[1], item[0]))
    if limit is not None:
        ranked = ranked[:max(limit, 0)]
    return [SearchResult(url=url, title=index.title(url), score=score) for url, score in ranked]


class IndexHolder:
    """
    Holds the index being served.

    swap() replaces the reference in a single assignment; a reader that
    grabbed `current` keeps a complete snapshot for the whole query.
    """

    def __init__(self, index: InvertedIndex):
        self._index = index

    @property
    def current(self) -> InvertedIndex:
        return self._index

    def swap(self, index: InvertedIndex) -> InvertedIndex:
        """Install a new index and return the previous one."""
        previous, self._index = self._index, index
        return previous

    def search(self, query: str, limit: Optional[int] = None) -> List[SearchResult]:
        return search(self._index, query, limit)
