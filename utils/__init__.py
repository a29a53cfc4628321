"""
SLPCrafty Utils Package
"""

from .network import NetworkUtils
from .concurrency import QueryPool
from .logging_setup import setup_logging

__all__ = [
    'NetworkUtils',
    'QueryPool',
    'setup_logging'
]
