"""
Utility modules for the search engine.
"""

from .config import Config, ConfigManager, ConfigurationError, load_config

__all__ = ['Config', 'ConfigManager', 'ConfigurationError', 'load_config']
