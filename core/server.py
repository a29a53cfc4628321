"""
Caller-facing entry points for querying a server's status
"""

import asyncio
import logging
from typing import Optional

from .protocol import MinecraftProtocol, ProtocolConfig
from .status import ServerStatus

from utils.network import NetworkUtils

logger = logging.getLogger(__name__)

class MinecraftServer:
    """A Minecraft server identified by address and port.

    Without an explicit port the server uses ``config.default_port``.
    """

    def __init__(self, address: str, port: Optional[int] = None,
                 config: Optional[ProtocolConfig] = None):
        self.protocol = MinecraftProtocol(config)
        if port is None:
            port = self.protocol.config.default_port
        if not NetworkUtils.is_valid_port(port):
            raise ValueError(f"Port {port} is out of range 1-65535")
        self.address = address
        self.port = port

    def __repr__(self):
        return f"MinecraftServer({self.address!r}, {self.port})"

    @classmethod
    def lookup(cls, target: str, config: Optional[ProtocolConfig] = None) -> 'MinecraftServer':
        """Create a server from a ``host[:port]`` string"""
        config = config or ProtocolConfig()
        address, port = NetworkUtils.parse_address(target, config.default_port)
        return cls(address, port, config)

    async def status(self, timeout: Optional[float] = None) -> ServerStatus:
        """Query the server's status"""
        return await self.protocol.query(self.address, self.port, timeout)

    def status_sync(self, timeout: Optional[float] = None) -> ServerStatus:
        """Blocking variant of :meth:`status` for code without an event loop"""
        return asyncio.run(self.status(timeout))

async def query(address: str, port: Optional[int] = None, timeout: Optional[float] = None,
                protocol_version: Optional[int] = None,
                config: Optional[ProtocolConfig] = None) -> ServerStatus:
    """Query ``address:port`` once and return its status"""
    protocol = MinecraftProtocol(config)
    if port is None:
        port = protocol.config.default_port
    return await protocol.query(address, port, timeout, protocol_version)
