"""
Configuration management with YAML and validation
"""

import yaml
import logging
from typing import Dict, Any, Optional
from pathlib import Path

from .exceptions import ConfigError
from .config_types import QueryConfig, ConcurrencyConfig, LoggingConfig

logger = logging.getLogger(__name__)

LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']

class ConfigManager:
    """Configuration manager with validation and defaults"""

    def __init__(self, config_path: Optional[str] = "config.yaml"):
        self.config_path = Path(config_path) if config_path else None
        self.raw_config = self._load_config()

        self.query = self._parse_section('query', QueryConfig)
        self.concurrency = self._parse_section('concurrency', ConcurrencyConfig)
        self.logging = self._parse_section('logging', LoggingConfig)

        self._validate_config()
        logger.info(f"Configuration loaded from {self.config_path or 'defaults'}")

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file"""
        if self.config_path is None:
            return {}

        if not self.config_path.exists():
            logger.warning(f"Config file {self.config_path} not found, creating default")
            self._create_default_config()

        try:
            with open(self.config_path, 'r') as f:
                raw = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to load config: {e}") from e

        if not isinstance(raw, dict):
            raise ConfigError(f"Config file {self.config_path} must contain a mapping")
        return raw

    def _create_default_config(self) -> None:
        """Create default configuration file"""
        default_config = {
            'query': vars(QueryConfig()),
            'concurrency': vars(ConcurrencyConfig()),
            'logging': vars(LoggingConfig())
        }

        with open(self.config_path, 'w') as f:
            yaml.dump(default_config, f, default_flow_style=False, indent=2)

    def _parse_section(self, name: str, config_type):
        section = self.raw_config.get(name) or {}
        if not isinstance(section, dict):
            raise ConfigError(f"Config section '{name}' must be a mapping")
        try:
            return config_type(**section)
        except TypeError as e:
            raise ConfigError(f"Invalid key in config section '{name}': {e}") from e

    def _validate_config(self) -> None:
        """Validate configuration values"""
        if self.query.timeout <= 0:
            raise ConfigError("Query timeout must be positive")
        if not 0 <= self.query.protocol_version < 2 ** 31:
            raise ConfigError(f"Invalid protocol version: {self.query.protocol_version}")
        if not 1 <= self.query.default_port <= 65535:
            raise ConfigError(f"Invalid default port: {self.query.default_port}")
        if self.query.max_packet_size <= 0:
            raise ConfigError("Max packet size must be positive")

        if self.concurrency.max_concurrent <= 0:
            raise ConfigError("Max concurrent queries must be positive")

        if self.logging.level.upper() not in LOG_LEVELS:
            raise ConfigError(f"Invalid log level: {self.logging.level}")
        if self.logging.max_size_mb <= 0:
            raise ConfigError("Log file size must be positive")

        logger.debug("Configuration validation passed")
