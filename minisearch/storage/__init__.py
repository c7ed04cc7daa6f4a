"""
Storage layer for built indexes.
"""

from .index_store import IndexLoadError, save_index, load_index

__all__ = ['IndexLoadError', 'save_index', 'load_index']
