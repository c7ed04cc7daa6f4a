"""
MiniSearch

Crawls a website, builds a TF-IDF inverted index and serves ranked search.
"""

__version__ = "1.0.0"
__description__ = "Single-site crawler, inverted index and TF-IDF search server"
