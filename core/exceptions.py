"""
Custom exceptions for SLPCrafty
"""

class SLPCraftyError(Exception):
    """Base exception for SLPCrafty"""

    def __init__(self, message: str = "", *, stage=None):
        super().__init__(message)
        self.stage = stage

    def __str__(self):
        message = super().__str__()
        if self.stage is not None:
            return f"{message} (stage: {self.stage.value})"
        return message

class ServerConnectionError(SLPCraftyError, ConnectionError):
    """Server refused, unreachable, unresolvable or dropped the connection"""
    pass

class QueryTimeoutError(SLPCraftyError, TimeoutError):
    """No connection or response within the configured timeout"""
    pass

class ProtocolError(SLPCraftyError):
    """Protocol-related errors"""
    pass

class ProtocolDecodeError(ProtocolError):
    """Malformed framing: VarInt too big, bad length or length mismatch"""
    pass

class UnexpectedPacketIdError(ProtocolError):
    """Response packet carried an id other than the status response id"""

    def __init__(self, packet_id: int, expected: int = 0, *, stage=None):
        super().__init__(
            f"Unexpected packet id 0x{packet_id:02x} (expected 0x{expected:02x})",
            stage=stage
        )
        self.packet_id = packet_id
        self.expected = expected

class MalformedPayloadError(ProtocolError):
    """Status payload is not valid UTF-8 or not a JSON object"""
    pass

class ConfigError(SLPCraftyError):
    """Configuration-related errors"""
    pass

class ParsingError(SLPCraftyError):
    """Parsing-related errors"""
    pass
