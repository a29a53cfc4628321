"""
Logging setup for applications embedding SLPCrafty
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from core.config_types import LoggingConfig

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

def setup_logging(config: Optional[LoggingConfig] = None, verbose: bool = False) -> None:
    """Setup logging configuration"""
    config = config or LoggingConfig()
    level = logging.DEBUG if verbose else getattr(logging, config.level.upper())

    handlers = []
    if config.file:
        log_path = Path(config.file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(RotatingFileHandler(
            log_path,
            maxBytes=config.max_size_mb * 1024 * 1024,
            backupCount=config.backup_count
        ))
    handlers.append(logging.StreamHandler(sys.stdout) if verbose else logging.NullHandler())

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True
    )
