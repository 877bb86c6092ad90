"""Rich-presence decoding and the CS2 joinability rules."""

from __future__ import annotations

import re
from typing import Any

from cs2join.constants import CS2_APP_ID
from cs2join.models import RichPresence

# Model field -> key as it appears in the rich-presence blob.
_FIELDS: dict[str, str] = {
    "status": "status",
    "game_state": "game:state",
    "game_mode": "game:mode",
    "game_map": "game:map",
    "game_score": "game:score",
    "connect": "connect",
    "game_server_steam_id": "game_server_steam_id",
}

_PATTERNS: dict[str, re.Pattern[str]] = {
    field: re.compile(f'"{re.escape(key)}"\\s+"([^"]+)"')
    for field, key in _FIELDS.items()
}


def decode_rich_presence(blob: str | None) -> RichPresence:
    """Pull the known fields out of a Valve key/value blob.

    Only targeted ``"key" "value"`` pairs are matched; the surrounding
    structure is ignored. First match wins, missing keys stay None.
    """
    if not blob:
        return RichPresence()
    values: dict[str, str | None] = {}
    for field, pattern in _PATTERNS.items():
        m = pattern.search(blob)
        values[field] = m.group(1) if m else None
    return RichPresence(**values)


def is_in_supported_mode(rich_presence: RichPresence) -> bool:
    """Casual or deathmatch, and actually in a match rather than the lobby."""
    return rich_presence.in_supported_mode


def is_join_available(rich_presence: RichPresence) -> bool:
    return rich_presence.join_available


def is_in_game(private_data: dict[str, Any] | None) -> bool:
    """True when the account's private data says it is running CS2."""
    return isinstance(private_data, dict) and private_data.get("game_id") == CS2_APP_ID


def account_presence(account: dict[str, Any]) -> RichPresence:
    """Decode the rich presence attached to a link-details account."""
    priv = account.get("private_data") or {}
    blob = priv.get("rich_presence_kv") if isinstance(priv, dict) else None
    return decode_rich_presence(blob if isinstance(blob, str) else None)
