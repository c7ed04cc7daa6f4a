"""
Text to term tokenization shared by indexing and querying.
"""

from typing import Iterator, List


def _strip_non_alphanumeric(token: str) -> str:
    start = 0
    end = len(token)
    while start < end and not token[start].isalnum():
        start += 1
    while end > start and not token[end - 1].isalnum():
        end -= 1
    return token[start:end]


def iter_terms(text: str) -> Iterator[str]:
    """Yield terms of text in order; see tokenize()."""
    for token in text.split():
        term = _strip_non_alphanumeric(token)
        if term:
            yield term.lower()


def tokenize(text: str) -> List[str]:
    """
    Split text into terms.

    Splits on whitespace, trims leading and trailing characters that are
    not alphanumeric, drops tokens that become empty and lowercases the
    rest. Inner punctuation is kept, so "don't" stays one term.
    """
    if not text:
        return []
    return list(iter_terms(text))
