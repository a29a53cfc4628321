import asyncio
import json
from unittest import mock

import pytest

from core.protocol import MinecraftProtocol, ProtocolConfig, QuerySession, QueryStage
from core.status import ServerStatus
from core.varint import encode_varint, decode_varint, decode_string
from core.exceptions import (
    ProtocolDecodeError, UnexpectedPacketIdError, MalformedPayloadError,
    ServerConnectionError
)

PLAYERS_JSON = b'{"players":{"online":3,"max":20}}'

def make_response(payload: bytes, packet_id: int = 0, trailing: bytes = b'') -> bytes:
    body = encode_varint(packet_id) + encode_varint(len(payload)) + payload + trailing
    return encode_varint(len(body)) + body

def make_reader(data: bytes, eof: bool = True) -> asyncio.StreamReader:
    reader = asyncio.StreamReader()
    reader.feed_data(data)
    if eof:
        reader.feed_eof()
    return reader

class FakeWriter:
    def __init__(self):
        self.buffer = bytearray()
        self.closed = False

    def write(self, data: bytes) -> None:
        self.buffer += data

    async def drain(self) -> None:
        pass

    def close(self) -> None:
        self.closed = True

    async def wait_closed(self) -> None:
        pass

def test_handshake_bytes():
    protocol = MinecraftProtocol()
    packet = protocol.build_handshake("localhost", 25565, 770)
    assert packet == b'\x10\x00\x82\x06\x09localhost\x63\xdd\x01'

def test_handshake_fields():
    protocol = MinecraftProtocol(ProtocolConfig(protocol_version=47))
    packet = protocol.build_handshake("mc.example.org", 19132)

    length, offset = decode_varint(packet)
    assert length == len(packet) - offset
    packet_id, offset = decode_varint(packet, offset)
    assert packet_id == 0
    version, offset = decode_varint(packet, offset)
    assert version == 47
    address, offset = decode_string(packet, offset)
    assert address == "mc.example.org"
    assert int.from_bytes(packet[offset:offset + 2], 'big') == 19132
    next_state, offset = decode_varint(packet, offset + 2)
    assert next_state == MinecraftProtocol.STATE_STATUS
    assert offset == len(packet)

def test_handshake_rejects_bad_port():
    protocol = MinecraftProtocol()
    with pytest.raises(ValueError):
        protocol.build_handshake("localhost", 0)
    with pytest.raises(ValueError):
        protocol.build_handshake("localhost", 65536)

def test_status_request_bytes():
    assert MinecraftProtocol().build_status_request() == b'\x01\x00'

@pytest.mark.asyncio
async def test_read_status_response():
    protocol = MinecraftProtocol()
    status = await protocol.read_status_response(make_reader(make_response(PLAYERS_JSON)))

    assert isinstance(status, ServerStatus)
    assert status['players']['online'] == 3
    assert status['players']['max'] == 20
    assert status.players_online == 3
    assert status.players_max == 20

@pytest.mark.asyncio
async def test_unexpected_packet_id_skips_json(monkeypatch):
    parse_json = mock.Mock()
    monkeypatch.setattr(MinecraftProtocol, '_parse_json', parse_json)
    protocol = MinecraftProtocol()

    with pytest.raises(UnexpectedPacketIdError) as excinfo:
        await protocol.read_status_response(make_reader(make_response(PLAYERS_JSON, packet_id=1)))

    assert excinfo.value.packet_id == 1
    parse_json.assert_not_called()

@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [
    b'{"players":',
    b'not json',
    b'\xff\xfe{}',
    b'[1, 2, 3]',
    b'"just a string"',
])
async def test_malformed_payload(payload):
    protocol = MinecraftProtocol()
    with pytest.raises(MalformedPayloadError):
        await protocol.read_status_response(make_reader(make_response(payload)))

@pytest.mark.asyncio
async def test_trailing_bytes_strict():
    protocol = MinecraftProtocol()
    with pytest.raises(ProtocolDecodeError):
        await protocol.read_status_response(make_reader(make_response(PLAYERS_JSON, trailing=b'\x00\x00')))

@pytest.mark.asyncio
async def test_trailing_bytes_lenient():
    protocol = MinecraftProtocol(ProtocolConfig(strict_length=False))
    response = make_response(PLAYERS_JSON, trailing=b'\x00\x00')
    status = await protocol.read_status_response(make_reader(response))
    assert status.players_online == 3

@pytest.mark.asyncio
async def test_string_longer_than_packet():
    body = b'\x00' + encode_varint(100) + b'{}'
    response = encode_varint(len(body)) + body
    with pytest.raises(ProtocolDecodeError):
        await MinecraftProtocol().read_status_response(make_reader(response))

@pytest.mark.asyncio
async def test_invalid_declared_length():
    protocol = MinecraftProtocol(ProtocolConfig(max_packet_size=1024))
    with pytest.raises(ProtocolDecodeError):
        await protocol.read_status_response(make_reader(b'\x00'))
    with pytest.raises(ProtocolDecodeError):
        await protocol.read_status_response(make_reader(encode_varint(4096)))

@pytest.mark.asyncio
async def test_response_truncated():
    response = make_response(PLAYERS_JSON)
    with pytest.raises(ServerConnectionError):
        await MinecraftProtocol().read_status_response(make_reader(response[:-5]))

@pytest.mark.asyncio
async def test_response_length_varint_too_big():
    with pytest.raises(ProtocolDecodeError):
        await MinecraftProtocol().read_status_response(make_reader(b'\xff' * 6))

@pytest.mark.asyncio
async def test_exchange_writes_packets_in_order():
    protocol = MinecraftProtocol()
    writer = FakeWriter()
    session = QuerySession("localhost", 25565, 770)
    payload = json.dumps({"version": {"name": "1.21.5", "protocol": 770}}).encode()

    status = await protocol.exchange(make_reader(make_response(payload)), writer, session)

    expected = protocol.build_handshake("localhost", 25565, 770) + protocol.build_status_request()
    assert bytes(writer.buffer) == expected
    assert status.version['name'] == "1.21.5"
    assert status.protocol_version == 770
    assert session.stage == QueryStage.PARSED

@pytest.mark.asyncio
async def test_exchange_stage_on_failure():
    protocol = MinecraftProtocol()
    session = QuerySession("localhost", 25565)

    with pytest.raises(UnexpectedPacketIdError) as excinfo:
        await protocol.exchange(make_reader(make_response(b'{}', packet_id=1)), FakeWriter(), session)

    session.fail(excinfo.value)
    assert session.stage == QueryStage.FAILED
    assert session.failed_stage == QueryStage.RESPONSE_PENDING
    assert excinfo.value.stage == QueryStage.RESPONSE_PENDING
    assert "response_pending" in str(excinfo.value)

def test_session_keeps_first_failure():
    session = QuerySession("localhost", 25565)
    first = ServerConnectionError("refused")
    session.fail(first)
    session.fail(ProtocolDecodeError("later"))
    assert session.error is first
    assert first.stage == QueryStage.CONNECTING

def test_protocol_config_from_query_config():
    from core.config_types import QueryConfig

    config = ProtocolConfig.from_query_config(
        QueryConfig(timeout=2.0, protocol_version=47, strict_length=False, max_packet_size=4096)
    )
    assert config == ProtocolConfig(timeout=2.0, protocol_version=47,
                                    strict_length=False, max_packet_size=4096)
