"""
Configuration management for the search engine.
"""

import yaml
import logging
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Dict, Any, Optional


DEFAULT_CONFIG_PATH = "config.yaml"
DEFAULT_USER_AGENT = "MiniSearchBot/1.0"


class ConfigurationError(ValueError):
    """Raised for missing, malformed or invalid configuration."""
    pass


@dataclass
class CrawlerConfig:
    """Configuration for crawler behavior."""
    max_pages: int = 50
    max_depth: int = 3
    concurrency: int = 5
    request_timeout: float = 10.0
    user_agent: str = DEFAULT_USER_AGENT
    max_content_bytes: int = 10 * 1024 * 1024
    progress_interval: float = 30.0


@dataclass
class IndexConfig:
    """Configuration for index persistence."""
    path: str = "index.json"


@dataclass
class ServerConfig:
    """Configuration for the search API."""
    host: str = "127.0.0.1"
    port: int = 3000
    default_limit: Optional[int] = None


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    level: str = "INFO"
    file: Optional[str] = "logs/minisearch.log"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    json: bool = False


@dataclass
class MonitoringConfig:
    """Configuration for monitoring."""
    metrics_enabled: bool = True


@dataclass
class Config:
    """Main configuration class."""
    crawler: CrawlerConfig = field(default_factory=CrawlerConfig)
    index: IndexConfig = field(default_factory=IndexConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)


_SECTIONS = {
    'crawler': CrawlerConfig,
    'index': IndexConfig,
    'server': ServerConfig,
    'logging': LoggingConfig,
    'monitoring': MonitoringConfig,
}


def _build_section(name: str, section_cls, data: Any):
    """Create a config section dataclass, rejecting unknown keys."""
    if data is None:
        return section_cls()
    if not isinstance(data, dict):
        raise ConfigurationError(f"Section '{name}' must be a mapping")

    known = {f.name for f in fields(section_cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigurationError(f"Unknown option(s) in section '{name}': {', '.join(unknown)}")

    return section_cls(**data)


class ConfigManager:
    """Manages configuration loading and validation."""

    def __init__(self, config_path: Optional[str] = None):
        self.explicit = config_path is not None
        self.config_path = Path(config_path or DEFAULT_CONFIG_PATH)
        self._config: Optional[Config] = None

    def load_config(self, overrides: Optional[Dict[str, Dict[str, Any]]] = None) -> Config:
        """
        Load configuration from YAML file and apply overrides.

        A missing file is an error only when its path was given explicitly;
        otherwise built-in defaults are used.
        """
        config_data: Dict[str, Any] = {}

        if self.config_path.exists():
            try:
                with open(self.config_path, 'r') as file:
                    config_data = yaml.safe_load(file) or {}
            except (OSError, yaml.YAMLError) as e:
                raise ConfigurationError(f"Could not read configuration file {self.config_path}: {e}")
            if not isinstance(config_data, dict):
                raise ConfigurationError(f"Configuration file {self.config_path} must contain a mapping")
        elif self.explicit:
            raise ConfigurationError(f"Configuration file not found: {self.config_path}")

        unknown = sorted(set(config_data) - set(_SECTIONS))
        if unknown:
            raise ConfigurationError(f"Unknown configuration section(s): {', '.join(unknown)}")

        # Parse configuration sections
        sections = {
            name: _build_section(name, section_cls, config_data.get(name))
            for name, section_cls in _SECTIONS.items()
        }

        for name, values in (overrides or {}).items():
            changes = {key: value for key, value in values.items() if value is not None}
            if changes:
                sections[name] = replace(sections[name], **changes)

        self._config = Config(**sections)
        self._validate_config()
        return self._config

    def _validate_config(self):
        """Validate configuration values."""
        if not self._config:
            raise ConfigurationError("Configuration not loaded")

        crawler = self._config.crawler

        # Validate numeric values
        if not isinstance(crawler.max_pages, int) or crawler.max_pages < 1:
            raise ConfigurationError("max_pages must be a positive integer")

        if not isinstance(crawler.max_depth, int) or crawler.max_depth < 0:
            raise ConfigurationError("max_depth must be a non-negative integer")

        if not isinstance(crawler.concurrency, int) or crawler.concurrency < 1:
            raise ConfigurationError("concurrency must be at least 1")

        if not isinstance(crawler.request_timeout, (int, float)) or crawler.request_timeout <= 0:
            raise ConfigurationError("request_timeout must be a positive number")

        if not isinstance(crawler.max_content_bytes, int) or crawler.max_content_bytes < 1:
            raise ConfigurationError("max_content_bytes must be a positive integer")

        interval = crawler.progress_interval
        if isinstance(interval, bool) or not isinstance(interval, (int, float)) or interval <= 0:
            raise ConfigurationError("progress_interval must be a positive number of seconds")

        port = self._config.server.port
        if not isinstance(port, int) or not 0 < port < 65536:
            raise ConfigurationError("port must be between 1 and 65535")

        limit = self._config.server.default_limit
        if limit is not None and (not isinstance(limit, int) or limit < 1):
            raise ConfigurationError("default_limit must be a positive integer")

        if not self._config.index.path:
            raise ConfigurationError("index path must not be empty")

        if not isinstance(logging.getLevelName(str(self._config.logging.level).upper()), int):
            raise ConfigurationError(f"Unknown log level: {self._config.logging.level}")

        logging.debug("Configuration validation passed")

    @property
    def config(self) -> Config:
        """Get the loaded configuration."""
        if not self._config:
            raise ConfigurationError("Configuration not loaded. Call load_config() first.")
        return self._config


# Global config manager instance
config_manager = ConfigManager()


def load_config(config_path: Optional[str] = None,
                overrides: Optional[Dict[str, Dict[str, Any]]] = None) -> Config:
    """Load configuration from file."""
    global config_manager
    config_manager = ConfigManager(config_path)
    return config_manager.load_config(overrides)
