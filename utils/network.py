"""
Network utilities and helpers
"""

import ipaddress
import logging
from typing import Tuple

logger = logging.getLogger(__name__)

class NetworkUtils:
    """Network utility functions"""

    @staticmethod
    def is_valid_ip(ip: str) -> bool:
        """Check if IP address is valid"""
        try:
            ipaddress.ip_address(ip)
            return True
        except ValueError:
            return False

    @staticmethod
    def is_valid_port(port: int) -> bool:
        """Check if port number is valid"""
        return isinstance(port, int) and not isinstance(port, bool) and 1 <= port <= 65535

    @staticmethod
    def parse_address(target: str, default_port: int = 25565) -> Tuple[str, int]:
        """Split ``host[:port]`` into host and port.

        IPv6 literals must be bracketed when a port is given
        (``[::1]:25565``). A bare IPv6 literal uses the default port.
        """
        target = target.strip()
        if not target:
            raise ValueError("Empty server address")

        if target.startswith('['):
            host, sep, rest = target[1:].partition(']')
            if not sep or not host:
                raise ValueError(f"Invalid bracketed address: {target}")
            if rest and not rest.startswith(':'):
                raise ValueError(f"Invalid address: {target}")
            port_str = rest[1:] if rest else ''
        elif target.count(':') > 1:
            # Bare IPv6 literal
            if not NetworkUtils.is_valid_ip(target):
                raise ValueError(f"Invalid address: {target}")
            return target, default_port
        else:
            host, _, port_str = target.partition(':')

        if not port_str:
            return host, default_port

        try:
            port = int(port_str)
        except ValueError:
            raise ValueError(f"Invalid port in address: {target}") from None

        if not NetworkUtils.is_valid_port(port):
            raise ValueError(f"Port {port} is out of range 1-65535")

        return host, port
