"""
Inverted index construction and TF-IDF ranking.
"""

from .tokenizer import tokenize
from .inverted_index import Document, DocumentInfo, InvertedIndex, IndexBuilder, build_index
from .ranker import SearchResult, IndexHolder, search

__all__ = [
    'tokenize',
    'Document', 'DocumentInfo', 'InvertedIndex', 'IndexBuilder', 'build_index',
    'SearchResult', 'IndexHolder', 'search'
]
