"""
SLPCrafty Core Package

Server List Ping client for querying Minecraft server status.
"""

from .varint import encode_varint, decode_varint, read_varint, encode_string, decode_string
from .status import ServerStatus
from .protocol import MinecraftProtocol, ProtocolConfig, QueryStage, QuerySession
from .server import MinecraftServer, query
from .config import ConfigManager
from .exceptions import *

__version__ = "0.1.0"
__author__ = "SLPCrafty Team"

__all__ = [
    'encode_varint',
    'decode_varint',
    'read_varint',
    'encode_string',
    'decode_string',
    'ServerStatus',
    'MinecraftProtocol',
    'ProtocolConfig',
    'QueryStage',
    'QuerySession',
    'MinecraftServer',
    'query',
    'ConfigManager',
    'SLPCraftyError',
    'ServerConnectionError',
    'QueryTimeoutError',
    'ProtocolError',
    'ProtocolDecodeError',
    'UnexpectedPacketIdError',
    'MalformedPayloadError',
    'ConfigError',
    'ParsingError'
]
