"""
JSON persistence for the inverted index.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Union

from ..index.inverted_index import DocumentInfo, InvertedIndex


FORMAT_VERSION = 1

logger = logging.getLogger(__name__)


class IndexLoadError(Exception):
    """The index file is missing, unreadable or inconsistent."""
    pass


def index_to_dict(index: InvertedIndex) -> Dict[str, Any]:
    """Serializable form of an index."""
    return {
        'format_version': FORMAT_VERSION,
        'doc_count': index.doc_count,
        'documents': {
            url: {'title': info.title, 'length': info.length}
            for url, info in sorted(index.documents.items())
        },
        'term_tf': {
            term: dict(sorted(postings.items()))
            for term, postings in sorted(index.postings.items())
        }
    }


def index_from_dict(data: Any) -> InvertedIndex:
    """Rebuild an index from index_to_dict() output, validating it on the way."""
    if not isinstance(data, dict):
        raise IndexLoadError("Index data must be a JSON object")

    version = data.get('format_version')
    if version != FORMAT_VERSION:
        raise IndexLoadError(f"Unsupported index format version: {version!r}")

    doc_count = data.get('doc_count')
    documents_data = data.get('documents')
    term_tf = data.get('term_tf')

    if not isinstance(doc_count, int) or isinstance(doc_count, bool) or doc_count < 0:
        raise IndexLoadError("doc_count must be a non-negative integer")
    if not isinstance(documents_data, dict) or not isinstance(term_tf, dict):
        raise IndexLoadError("Index must contain 'documents' and 'term_tf' objects")

    documents = {}
    for url, info in documents_data.items():
        if (not isinstance(info, dict) or not isinstance(info.get('title'), str)
                or not isinstance(info.get('length'), int)):
            raise IndexLoadError(f"Malformed document entry for {url}")
        documents[url] = DocumentInfo(title=info['title'], length=info['length'])

    postings = {}
    for term, entries in term_tf.items():
        if not isinstance(entries, dict) or not entries:
            raise IndexLoadError(f"Malformed postings for term {term!r}")
        for url, tf in entries.items():
            if not isinstance(tf, int) or isinstance(tf, bool) or tf < 1:
                raise IndexLoadError(f"Invalid term frequency for {term!r} in {url}: {tf!r}")
            if url not in documents:
                raise IndexLoadError(f"Postings for {term!r} reference unknown document {url}")
        postings[term] = entries

    try:
        return InvertedIndex(postings, documents, doc_count=doc_count)
    except ValueError as e:
        raise IndexLoadError(str(e)) from e


def save_index(index: InvertedIndex, path: Union[str, Path]):
    """Write the index as JSON. The file is replaced atomically."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            json.dump(index_to_dict(index), f, ensure_ascii=False)
        os.replace(tmp_name, path)
    except BaseException:
        os.unlink(tmp_name)
        raise

    logger.info(f"Saved index with {index.doc_count} documents to {path}")


def load_index(path: Union[str, Path]) -> InvertedIndex:
    """
    Load an index written by save_index().

    Raises:
        IndexLoadError: If the file is missing, is not valid JSON or is inconsistent
    """
    path = Path(path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except FileNotFoundError:
        raise IndexLoadError(f"Index file not found: {path}")
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise IndexLoadError(f"Could not read index file {path}: {e}")

    index = index_from_dict(data)
    logger.info(f"Loaded index from {path}: {index.doc_count} documents, {index.term_count} terms")
    return index
