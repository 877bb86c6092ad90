"""Steam and Counter-Strike 2 constants shared across the package."""

from __future__ import annotations

STEAM_API_BASE = "https://api.steampowered.com"

CS2_APP_ID = "730"

SUPPORTED_GAME_MODES = frozenset({"casual", "deathmatch"})
NON_PLAYING_STATES = frozenset({"", None, "lobby"})
CONNECT_PREFIX = "+gcconnect"

# IFriendsListService reports relationships as EFriendRelationship codes.
CONFIRMED_RELATIONSHIP_CODE = 3
CONFIRMED_RELATIONSHIP = "friend"

SUMMARIES_BATCH_SIZE = 100

# Steam client URL that launches CS2 straight into a friend's server.
RUN_GAME_URL = "steam://rungame/{app_id}/{friend_id}/{connect}"
