"""Turn raw Web API payloads into plain Python values.

Key-mode and token-mode responses differ in shape, so each method that has
two shapes gets one explicit parser per mode. Missing or malformed
containers always produce an empty result rather than an error.
"""

from __future__ import annotations

import logging
from typing import Any

from cs2join.auth import AuthMode
from cs2join.constants import CONFIRMED_RELATIONSHIP, CONFIRMED_RELATIONSHIP_CODE
from cs2join.presence import account_presence, is_in_game

logger = logging.getLogger(__name__)


def _dig(data: Any, *path: str) -> Any:
    """Follow dict keys, returning None as soon as a level is missing."""
    for key in path:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


# ------------------------------------------------------------------
# GetFriendsList
# ------------------------------------------------------------------


def _token_friend_ids(raw: Any) -> list[str]:
    friends = _as_list(_dig(raw, "response", "friendslist", "friends"))
    return [
        str(f["ulfriendid"])
        for f in friends
        if isinstance(f, dict)
        and f.get("efriendrelationship") == CONFIRMED_RELATIONSHIP_CODE
        and f.get("ulfriendid") is not None
    ]


def _key_friend_ids(raw: Any) -> list[str]:
    friends = _as_list(_dig(raw, "friendslist", "friends"))
    return [
        str(f["steamid"])
        for f in friends
        if isinstance(f, dict)
        and f.get("relationship") == CONFIRMED_RELATIONSHIP
        and f.get("steamid") is not None
    ]


def friend_ids(raw: Any, mode: AuthMode) -> list[str]:
    """Confirmed friends' SteamIDs, in payload order.

    An empty list here is only an intermediate signal; the aggregator
    turns it into :class:`~cs2join.errors.EmptyFriendsListError`.
    """
    ids = _token_friend_ids(raw) if mode is AuthMode.TOKEN else _key_friend_ids(raw)
    logger.debug("Friend relationship filtering (%s mode): %d confirmed", mode.value, len(ids))
    return ids


# ------------------------------------------------------------------
# GetPlayerSummaries
# ------------------------------------------------------------------


def player_summaries(raw: Any) -> list[dict[str, Any]]:
    """Players from ``players`` (token mode) or ``response.players`` (key mode)."""
    for candidate in (_dig(raw, "players"), _dig(raw, "response", "players")):
        players = [p for p in _as_list(candidate) if isinstance(p, dict)]
        if players:
            return players
    return []


def best_avatar(player: dict[str, Any] | None) -> str:
    """Full-size avatar, else the default one, else the medium one."""
    if not isinstance(player, dict):
        return ""
    return player.get("avatarfull") or player.get("avatar") or player.get("avatarmedium") or ""


# ------------------------------------------------------------------
# GetPlayerLinkDetails
# ------------------------------------------------------------------


def link_accounts(raw: Any) -> list[dict[str, Any]]:
    return [a for a in _as_list(_dig(raw, "response", "accounts")) if isinstance(a, dict)]


def _first_account(raw: Any) -> dict[str, Any] | None:
    accounts = link_accounts(raw)
    return accounts[0] if accounts else None


def connect_info(raw: Any) -> str | None:
    """Connect string of the first account, if it is in a supported CS2 match."""
    account = _first_account(raw)
    if account is None or not is_in_game(account.get("private_data")):
        return None
    rich_presence = account_presence(account)
    if rich_presence.in_supported_mode:
        return rich_presence.connect
    return None


def game_server_steam_id(raw: Any) -> str | None:
    """Server id from rich presence, falling back to the account's private data."""
    account = _first_account(raw)
    if account is None:
        return None
    server_id = account_presence(account).game_server_steam_id
    return server_id or _dig(account, "private_data", "game_server_steam_id") or None


def in_cs2(raw: Any, *, require_lobby: bool = False) -> bool:
    """Whether the first account is running CS2 (and sitting in the lobby, if asked)."""
    account = _first_account(raw)
    if account is None or not is_in_game(account.get("private_data")):
        return False
    if require_lobby:
        return account_presence(account).game_state == "lobby"
    return True


# ------------------------------------------------------------------
# ResolveVanityURL
# ------------------------------------------------------------------


def vanity_steam_id(raw: Any) -> str | None:
    if _dig(raw, "response", "success") != 1:
        return None
    steam_id = _dig(raw, "response", "steamid")
    return str(steam_id) if steam_id else None
