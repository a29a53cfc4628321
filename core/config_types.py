"""
Shared configuration types for SLPCrafty
"""

from dataclasses import dataclass

@dataclass
class QueryConfig:
    timeout: float = 5.0
    protocol_version: int = 770  # 1.21.5
    default_port: int = 25565
    strict_length: bool = True
    max_packet_size: int = 2097151  # largest 3-byte VarInt

@dataclass
class ConcurrencyConfig:
    max_concurrent: int = 100

@dataclass
class LoggingConfig:
    level: str = "INFO"
    file: str = "slpcrafty.log"
    max_size_mb: int = 100
    backup_count: int = 5
