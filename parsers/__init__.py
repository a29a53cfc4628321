"""
SLPCrafty Parsers Package
"""

from .server_parser import StatusParser, ParsedStatus, MOTDParser

__all__ = [
    'StatusParser',
    'ParsedStatus',
    'MOTDParser'
]
