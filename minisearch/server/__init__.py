"""
Search HTTP API.
"""

from .api import create_app, run_server, swap_index

__all__ = ['create_app', 'run_server', 'swap_index']
