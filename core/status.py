"""
Server status result returned by a status query
"""

from typing import Any, Dict, Optional


class ServerStatus(dict):
    """
    JSON status object reported by a server.

    The schema is defined by the server software and changes between
    versions, so the object is kept as the plain decoded JSON mapping.
    Query metadata (latency, protocol version used) is held in attributes
    and never mixed into the keys.
    """

    def __init__(self, data: Optional[Dict[str, Any]] = None,
                 latency: Optional[float] = None,
                 protocol_version: Optional[int] = None):
        super().__init__(data or {})
        self.latency = latency  # ms
        self.protocol_version = protocol_version

    def __repr__(self):
        return (f"ServerStatus({dict.__repr__(self)}, latency={self.latency!r}, "
                f"protocol_version={self.protocol_version!r})")

    def _section(self, key: str) -> Dict[str, Any]:
        section = self.get(key)
        return section if isinstance(section, dict) else {}

    @property
    def version(self) -> Dict[str, Any]:
        return self._section('version')

    @property
    def players(self) -> Dict[str, Any]:
        return self._section('players')

    @property
    def players_online(self) -> Optional[int]:
        return self.players.get('online')

    @property
    def players_max(self) -> Optional[int]:
        return self.players.get('max')

    @property
    def description(self) -> Any:
        return self.get('description')

    @property
    def favicon(self) -> Optional[str]:
        return self.get('favicon')
