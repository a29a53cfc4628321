"""
Flattens a raw status object into a fixed summary for display and storage
"""

import base64
import binascii
import hashlib
import json
import re
import logging
from typing import Dict, Any, Optional, List, Tuple
from dataclasses import dataclass, field

from core.exceptions import ParsingError
from core.status import ServerStatus

logger = logging.getLogger(__name__)

FAVICON_PREFIX = 'data:image/png;base64,'

@dataclass
class ParsedStatus:
    """Summary of a server status"""
    version_name: str = "Unknown"
    protocol_version: int = -1
    online_players: int = 0
    max_players: int = 0
    player_sample: List[Dict[str, str]] = field(default_factory=list)
    motd_raw: Optional[str] = None
    motd_formatted: Optional[str] = None
    motd_plain: Optional[str] = None
    favicon: Optional[str] = None
    favicon_png: Optional[bytes] = None
    favicon_hash: Optional[str] = None
    mods: List[Dict[str, str]] = field(default_factory=list)
    enforces_secure_chat: Optional[bool] = None
    prevents_chat_reports: Optional[bool] = None
    latency: Optional[float] = None

class MOTDParser:
    """MOTD parsing with Minecraft formatting"""

    COLOR_CODES = {
        'black': '0', 'dark_blue': '1', 'dark_green': '2', 'dark_aqua': '3',
        'dark_red': '4', 'dark_purple': '5', 'gold': '6', 'gray': '7',
        'dark_gray': '8', 'blue': '9', 'green': 'a', 'aqua': 'b',
        'red': 'c', 'light_purple': 'd', 'yellow': 'e', 'white': 'f',
        'reset': 'r'
    }

    FORMATTING_CODES = {
        'obfuscated': 'k', 'bold': 'l', 'strikethrough': 'm',
        'underlined': 'n', 'italic': 'o'
    }

    MAX_DEPTH = 32

    @classmethod
    def parse_motd(cls, description: Any) -> Tuple[Optional[str], Optional[str], Optional[str]]:
        """Return the raw, legacy-formatted and plain text forms of a description"""
        if description is None:
            return None, None, None

        if isinstance(description, str):
            raw = description
            formatted = description
        else:
            raw = json.dumps(description, separators=(',', ':'), ensure_ascii=False)
            formatted = cls._build_formatted_text(description)

        return raw, formatted, cls.strip_formatting(formatted)

    @classmethod
    def _build_formatted_text(cls, obj: Any, depth: int = 0) -> str:
        """Render a chat component as legacy § coded text"""
        if depth > cls.MAX_DEPTH:
            return ""

        if isinstance(obj, str):
            return obj
        if isinstance(obj, list):
            return ''.join(cls._build_formatted_text(item, depth + 1) for item in obj)
        if not isinstance(obj, dict):
            return str(obj)

        output = ""
        color = obj.get('color')
        if isinstance(color, str) and color in cls.COLOR_CODES:
            output += f"§{cls.COLOR_CODES[color]}"
        for format_name, code in cls.FORMATTING_CODES.items():
            if obj.get(format_name) is True:
                output += f"§{code}"

        if 'text' in obj:
            output += str(obj['text'])
        elif 'translate' in obj:
            output += str(obj['translate'])

        if isinstance(obj.get('extra'), list):
            output += cls._build_formatted_text(obj['extra'], depth + 1)

        return output

    @staticmethod
    def strip_formatting(text: str) -> str:
        """Remove § codes and collapse whitespace on each line"""
        text = re.sub(r'§[0-9a-fk-or]', '', text, flags=re.IGNORECASE)
        return '\n'.join(' '.join(line.split()) for line in text.splitlines()).strip()

class StatusParser:
    """Builds a ParsedStatus from a ServerStatus"""

    def __init__(self):
        self.motd_parser = MOTDParser()

    def parse(self, status: ServerStatus) -> ParsedStatus:
        """Parse a status object into summary fields"""
        try:
            parsed = ParsedStatus(latency=getattr(status, 'latency', None))

            version = status.get('version')
            if isinstance(version, dict):
                parsed.version_name = str(version.get('name', 'Unknown'))
                protocol = version.get('protocol')
                if isinstance(protocol, int):
                    parsed.protocol_version = protocol

            players = status.get('players')
            if isinstance(players, dict):
                parsed.online_players = self._as_int(players.get('online'))
                parsed.max_players = self._as_int(players.get('max'))
                parsed.player_sample = self._extract_sample(players.get('sample'))

            parsed.motd_raw, parsed.motd_formatted, parsed.motd_plain = \
                self.motd_parser.parse_motd(status.get('description'))

            favicon = status.get('favicon')
            if isinstance(favicon, str) and favicon:
                parsed.favicon = favicon
                parsed.favicon_hash = hashlib.md5(favicon.encode()).hexdigest()
                parsed.favicon_png = self._decode_favicon(favicon)

            parsed.mods = self._extract_mods(status)
            parsed.enforces_secure_chat = status.get('enforcesSecureChat')
            parsed.prevents_chat_reports = status.get('preventsChatReports')

            return parsed

        except (TypeError, ValueError, AttributeError) as e:
            logger.error(f"Failed to parse server status: {e}")
            raise ParsingError(f"Server status parsing failed: {e}") from e

    @staticmethod
    def _as_int(value: Any) -> int:
        if isinstance(value, bool):
            return int(value)
        if isinstance(value, (int, float)):
            return int(value)
        return 0

    @staticmethod
    def _extract_sample(sample: Any) -> List[Dict[str, str]]:
        players = []
        if not isinstance(sample, list):
            return players
        for player in sample:
            if isinstance(player, dict) and 'id' in player and 'name' in player:
                players.append({'uuid': str(player['id']), 'name': str(player['name'])})
        return players

    @staticmethod
    def _decode_favicon(favicon: str) -> Optional[bytes]:
        if not favicon.startswith(FAVICON_PREFIX):
            logger.debug("Favicon is not a base64 PNG data URI")
            return None
        # Older servers wrap the base64 text with newlines
        data = favicon[len(FAVICON_PREFIX):].replace('\n', '')
        try:
            return base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError) as e:
            logger.debug(f"Favicon base64 decoding failed: {e}")
            return None

    def _extract_mods(self, status: ServerStatus) -> List[Dict[str, str]]:
        """Extract the mod list reported by Forge (modinfo / forgeData)"""
        mods = []

        modinfo = status.get('modinfo')
        if isinstance(modinfo, dict) and isinstance(modinfo.get('modList'), list):
            for mod in modinfo['modList']:
                if isinstance(mod, dict) and mod.get('modid'):
                    mods.append({'id': str(mod['modid']), 'version': str(mod.get('version', ''))})

        forge_data = status.get('forgeData')
        if isinstance(forge_data, dict) and isinstance(forge_data.get('mods'), list):
            for mod in forge_data['mods']:
                if isinstance(mod, dict) and mod.get('modId'):
                    mods.append({'id': str(mod['modId']), 'version': str(mod.get('modmarker', ''))})

        return mods
