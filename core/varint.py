"""
VarInt and string codec for the Minecraft wire format
"""

import asyncio
import logging
from typing import Tuple

from .exceptions import ProtocolDecodeError, MalformedPayloadError, ServerConnectionError

logger = logging.getLogger(__name__)

# A 32-bit value never needs more than 5 groups of 7 bits
VARINT_MAX_BYTES = 5

INT32_MIN = -(1 << 31)
UINT32_LIMIT = 1 << 32

# Only the low 4 bits of the fifth byte fit in 32 bits
LAST_BYTE_MAX = 0x0F

def encode_varint(value: int) -> bytes:
    """Encode an integer as a VarInt.

    Accepts ``0 <= value < 2**32``. Negative values in the signed 32-bit
    range are written as their unsigned two's-complement form, so the
    shift below is always logical.
    """
    if value < INT32_MIN or value >= UINT32_LIMIT:
        raise ValueError(f"Value {value} does not fit in a VarInt")

    value &= 0xFFFFFFFF
    result = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            byte |= 0x80
        result.append(byte)
        if not value:
            break
    return bytes(result)

def _check_last_byte(count: int, value: int) -> None:
    if count == VARINT_MAX_BYTES - 1 and value > LAST_BYTE_MAX:
        raise ProtocolDecodeError("VarInt too big")

def decode_varint(data: bytes, offset: int = 0) -> Tuple[int, int]:
    """Decode a VarInt from ``data`` starting at ``offset``.

    Returns the value and the offset of the first byte after it.
    """
    result = 0
    for count in range(VARINT_MAX_BYTES):
        if offset >= len(data):
            raise ProtocolDecodeError("Buffer ended inside a VarInt")

        value = data[offset]
        offset += 1
        _check_last_byte(count, value)
        result |= (value & 0x7F) << (7 * count)

        if not value & 0x80:
            return result, offset

    raise ProtocolDecodeError("VarInt too big")

async def read_varint(reader: asyncio.StreamReader) -> int:
    """Read a VarInt from a stream, one byte at a time"""
    result = 0
    for count in range(VARINT_MAX_BYTES):
        byte = await reader.read(1)
        if not byte:
            raise ServerConnectionError(f"Connection closed after {count} VarInt bytes")

        value = byte[0]
        _check_last_byte(count, value)
        result |= (value & 0x7F) << (7 * count)

        if not value & 0x80:
            return result

    raise ProtocolDecodeError("VarInt too big")

def encode_string(text: str) -> bytes:
    """Encode a string as VarInt byte length followed by UTF-8 bytes"""
    raw = text.encode('utf-8')
    return encode_varint(len(raw)) + raw

def decode_string(data: bytes, offset: int = 0) -> Tuple[str, int]:
    """Decode a VarInt-length-prefixed UTF-8 string"""
    length, offset = decode_varint(data, offset)
    end = offset + length
    if end > len(data):
        raise ProtocolDecodeError(
            f"String length {length} runs past the end of the packet "
            f"({len(data) - offset} bytes left)"
        )

    try:
        text = data[offset:end].decode('utf-8')
    except UnicodeDecodeError as e:
        logger.debug(f"Invalid UTF-8 in string of {length} bytes: {e}")
        raise MalformedPayloadError(f"String is not valid UTF-8: {e}") from e

    return text, end
