"""
Server List Ping protocol handler
"""

import asyncio
import struct
import json
import logging
from enum import Enum
from typing import Optional
from dataclasses import dataclass

from .exceptions import (
    SLPCraftyError, ServerConnectionError, QueryTimeoutError,
    ProtocolDecodeError, UnexpectedPacketIdError, MalformedPayloadError
)
from .config_types import QueryConfig
from .status import ServerStatus
from .varint import encode_varint, decode_varint, read_varint, encode_string, decode_string

logger = logging.getLogger(__name__)

@dataclass
class ProtocolConfig:
    timeout: float = 5.0
    protocol_version: int = 770
    strict_length: bool = True
    max_packet_size: int = 2097151
    default_port: int = 25565

    @classmethod
    def from_query_config(cls, query_config: QueryConfig) -> 'ProtocolConfig':
        """Create ProtocolConfig from QueryConfig"""
        return cls(
            timeout=query_config.timeout,
            protocol_version=query_config.protocol_version,
            strict_length=query_config.strict_length,
            max_packet_size=query_config.max_packet_size,
            default_port=query_config.default_port
        )

class QueryStage(Enum):
    """Progress of a single status query"""
    CONNECTING = "connecting"
    HANDSHAKE_SENT = "handshake_sent"
    STATUS_REQUESTED = "status_requested"
    RESPONSE_PENDING = "response_pending"
    PARSED = "parsed"
    FAILED = "failed"

@dataclass
class QuerySession:
    """State of one query against one server"""
    address: str
    port: int
    protocol_version: int = 770
    stage: QueryStage = QueryStage.CONNECTING
    failed_stage: Optional[QueryStage] = None
    error: Optional[SLPCraftyError] = None

    def advance(self, stage: QueryStage) -> None:
        logger.debug(f"{self.address}:{self.port} {self.stage.value} -> {stage.value}")
        self.stage = stage

    def fail(self, error: SLPCraftyError) -> None:
        # Terminal: keep the first failure
        if self.stage in (QueryStage.PARSED, QueryStage.FAILED):
            return
        self.failed_stage = self.stage
        self.stage = QueryStage.FAILED
        self.error = error
        if error.stage is None:
            error.stage = self.failed_stage

class MinecraftProtocol:
    """Server List Ping protocol handler"""

    # Packet constants
    HANDSHAKE_PACKET = 0x00
    STATUS_REQUEST_PACKET = 0x00
    STATUS_RESPONSE_PACKET = 0x00

    # States
    STATE_STATUS = 1

    def __init__(self, config: Optional[ProtocolConfig] = None):
        self.config = config or ProtocolConfig()

    def build_handshake(self, address: str, port: int,
                        protocol_version: Optional[int] = None,
                        next_state: int = STATE_STATUS) -> bytes:
        """Create a framed handshake packet"""
        if not 1 <= port <= 65535:
            raise ValueError(f"Port {port} is out of range 1-65535")
        if protocol_version is None:
            protocol_version = self.config.protocol_version

        data = (
            encode_varint(protocol_version) +
            encode_string(address) +
            struct.pack('>H', port) +
            encode_varint(next_state)
        )
        return self._create_packet(self.HANDSHAKE_PACKET, data)

    def build_status_request(self) -> bytes:
        """Create a framed status request packet"""
        return self._create_packet(self.STATUS_REQUEST_PACKET, b'')

    def _create_packet(self, packet_id: int, data: bytes) -> bytes:
        """Create a packet with length prefix, ID and data"""
        packet_data = encode_varint(packet_id) + data
        return encode_varint(len(packet_data)) + packet_data

    async def read_status_response(self, reader: asyncio.StreamReader,
                                   session: Optional[QuerySession] = None) -> ServerStatus:
        """Read one status response packet from the stream and parse it"""
        length = await read_varint(reader)
        if session:
            session.advance(QueryStage.RESPONSE_PENDING)

        if length <= 0 or length > self.config.max_packet_size:
            raise ProtocolDecodeError(f"Invalid response packet length {length}")

        try:
            data = await reader.readexactly(length)
        except asyncio.IncompleteReadError as e:
            raise ServerConnectionError(
                f"Connection closed after {len(e.partial)} of {length} response bytes"
            ) from e

        return self.parse_status_packet(data)

    def parse_status_packet(self, data: bytes) -> ServerStatus:
        """Parse the body of a status response (packet id + JSON string)"""
        packet_id, offset = decode_varint(data)
        if packet_id != self.STATUS_RESPONSE_PACKET:
            raise UnexpectedPacketIdError(packet_id, self.STATUS_RESPONSE_PACKET)

        json_str, offset = decode_string(data, offset)

        if offset != len(data):
            if self.config.strict_length:
                raise ProtocolDecodeError(
                    f"Response declared {len(data)} bytes but payload ended at {offset}"
                )
            logger.debug(f"Ignoring {len(data) - offset} trailing bytes in status response")

        return ServerStatus(self._parse_json(json_str))

    def _parse_json(self, json_str: str) -> dict:
        try:
            result = json.loads(json_str)
        except (json.JSONDecodeError, RecursionError) as e:
            raise MalformedPayloadError(f"Status payload is not valid JSON: {e}") from e

        if not isinstance(result, dict):
            raise MalformedPayloadError(
                f"Status payload is a JSON {type(result).__name__}, expected an object"
            )
        return result

    async def exchange(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter,
                       session: QuerySession) -> ServerStatus:
        """Run the status exchange over an already connected stream"""
        writer.write(self.build_handshake(session.address, session.port, session.protocol_version))
        session.advance(QueryStage.HANDSHAKE_SENT)

        writer.write(self.build_status_request())
        await writer.drain()
        session.advance(QueryStage.STATUS_REQUESTED)

        status = await self.read_status_response(reader, session)
        status.protocol_version = session.protocol_version
        session.advance(QueryStage.PARSED)
        return status

    async def query(self, address: str, port: int, timeout: Optional[float] = None,
                    protocol_version: Optional[int] = None) -> ServerStatus:
        """Query a server's status over a new connection.

        The whole query, connect included, must finish within ``timeout``
        seconds. The connection is closed on every exit path.
        """
        if not 1 <= port <= 65535:
            raise ValueError(f"Port {port} is out of range 1-65535")
        if timeout is None:
            timeout = self.config.timeout
        if protocol_version is None:
            protocol_version = self.config.protocol_version

        session = QuerySession(address, port, protocol_version)
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        start_time = loop.time()
        writer = None

        try:
            try:
                reader, writer = await asyncio.wait_for(
                    asyncio.open_connection(address, port),
                    timeout=timeout
                )
            except asyncio.TimeoutError as e:
                raise QueryTimeoutError(
                    f"Timed out connecting to {address}:{port} after {timeout}s"
                ) from e
            except UnicodeError as e:
                # IDNA encoding of the host name failed before any lookup
                raise ServerConnectionError(f"Could not resolve {address}:{port}: {e}") from e
            except OSError as e:
                raise ServerConnectionError(f"Could not connect to {address}:{port}: {e}") from e

            try:
                status = await asyncio.wait_for(
                    self.exchange(reader, writer, session),
                    timeout=max(deadline - loop.time(), 0)
                )
            except asyncio.TimeoutError as e:
                raise QueryTimeoutError(
                    f"No status from {address}:{port} within {timeout}s"
                ) from e
            except SLPCraftyError:
                raise
            except OSError as e:
                raise ServerConnectionError(f"Connection to {address}:{port} failed: {e}") from e

            status.latency = (loop.time() - start_time) * 1000  # ms
            return status

        except SLPCraftyError as e:
            session.fail(e)
            logger.debug(f"Status query failed for {address}:{port}: {e}")
            raise

        finally:
            if writer is not None:
                writer.close()
                try:
                    await writer.wait_closed()
                except OSError as e:
                    logger.debug(f"Error closing connection to {address}:{port}: {e}")
