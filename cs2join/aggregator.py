"""Friend-presence aggregation: who is in CS2, in which mode, and joinable.

One pass runs strictly in order:

1. fetch confirmed friend ids (empty list is fatal),
2. fetch link details for all of them in one request,
3. keep accounts running CS2, in payload order,
4. decode each account's rich presence,
5. backfill avatars for friends in a supported mode only,
6. assemble :class:`~cs2join.models.Friend` records.

The avatar cache is owned by the caller. It is read, never mutated, and a
merged copy comes back in the resulting snapshot.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Mapping

from cs2join.client import SteamClient
from cs2join.constants import NON_PLAYING_STATES, SUPPORTED_GAME_MODES
from cs2join.errors import EmptyFriendsListError
from cs2join.models import Friend, FriendsSnapshot, RichPresence
from cs2join.normalize import best_avatar
from cs2join.presence import account_presence, is_in_game

logger = logging.getLogger(__name__)

AvatarFetcher = Callable[[list[str]], Awaitable[Mapping[str, Mapping[str, Any]]]]


def _public_steam_id(account: dict[str, Any]) -> str:
    pub = account.get("public_data") or {}
    steam_id = pub.get("steamid") if isinstance(pub, dict) else None
    return str(steam_id) if steam_id else ""


def _persona_name(account: dict[str, Any]) -> str:
    pub = account.get("public_data") or {}
    name = pub.get("persona_name") if isinstance(pub, dict) else None
    return name or ""


def filter_missing_avatars(steam_ids: list[str], avatar_cache: Mapping[str, str]) -> list[str]:
    """Ids with no usable avatar in the cache, order preserved."""
    return [sid for sid in steam_ids if not avatar_cache.get(sid)]


async def backfill_avatars(
    steam_ids: list[str],
    avatar_cache: Mapping[str, str],
    fetch_avatars: AvatarFetcher | None,
    log: logging.Logger = logger,
) -> dict[str, str]:
    """Return a new cache with avatars fetched for the ids the cache lacks."""
    merged = dict(avatar_cache)
    missing = filter_missing_avatars(steam_ids, avatar_cache)
    if not missing:
        if steam_ids:
            log.info("Using cached avatars for all %d supported players", len(steam_ids))
        return merged
    if fetch_avatars is None:
        log.debug("No avatar fetcher supplied; %d avatars stay missing", len(missing))
        return merged

    log.info("Fetching avatars for %d supported players", len(missing))
    players = await fetch_avatars(missing)
    fetched = 0
    for sid, player in players.items():
        avatar = best_avatar(dict(player))
        if avatar:
            merged[str(sid)] = avatar
            fetched += 1
    log.info("Retrieved %d new avatars", fetched)
    return merged


def to_friend(
    account: dict[str, Any],
    rich_presence: RichPresence,
    avatar_cache: Mapping[str, str],
) -> Friend:
    steam_id = _public_steam_id(account)
    return Friend(
        steam_id=steam_id,
        display_name=_persona_name(account),
        avatar_url=avatar_cache.get(steam_id, "") if steam_id else "",
        status=rich_presence.status or "",
        game_mode=rich_presence.game_mode,
        game_state=rich_presence.game_state,
        game_map=rich_presence.game_map or "",
        game_score=rich_presence.game_score or "",
        game_server_id=rich_presence.game_server_steam_id or "",
        connect=rich_presence.connect or "",
    )


def _non_supported_reason(friend: Friend) -> str:
    if not friend.game_mode:
        return "No game mode"
    if friend.game_mode not in SUPPORTED_GAME_MODES:
        return f"Playing {friend.game_mode}"
    if friend.game_state in NON_PLAYING_STATES:
        return f"In {friend.game_state or 'lobby'}"
    return "Other reason"


async def build_friends(
    accounts: list[dict[str, Any]],
    avatar_cache: Mapping[str, str] | None = None,
    fetch_avatars: AvatarFetcher | None = None,
    log: logging.Logger = logger,
) -> tuple[list[Friend], dict[str, str]]:
    """Steps 3-6 of a pass over already-fetched link-details accounts.

    Returns the friends in CS2 and the merged avatar cache.
    """
    cache: Mapping[str, str] = avatar_cache or {}

    in_game = [acc for acc in accounts if is_in_game(acc.get("private_data"))]
    log.info("Found %d of %d friends playing CS2", len(in_game), len(accounts))

    decoded = [(acc, account_presence(acc)) for acc in in_game]

    supported_ids = [
        sid
        for acc, rp in decoded
        if rp.in_supported_mode and (sid := _public_steam_id(acc))
    ]
    log.info("Found %d friends in supported modes (casual/deathmatch)", len(supported_ids))

    merged = await backfill_avatars(supported_ids, cache, fetch_avatars, log)
    friends = [to_friend(acc, rp, merged) for acc, rp in decoded]

    joinable = [f for f in friends if f.join_available]
    log.info("%d supported friends, %d joinable", len(supported_ids), len(joinable))
    log.debug(
        "Non-supported CS2 friends: %s",
        [
            {"name": f.display_name or "Unknown", "reason": _non_supported_reason(f)}
            for f in friends
            if not f.in_supported_mode
        ],
    )
    return friends, merged


class PresenceAggregator:
    """Runs full aggregation passes through a :class:`SteamClient`."""

    def __init__(self, client: SteamClient, logger: logging.Logger | None = None) -> None:
        self.client = client
        self.logger = logger or logging.getLogger(__name__)

    async def aggregate(
        self,
        steam_id: str | None = None,
        avatar_cache: Mapping[str, str] | None = None,
    ) -> FriendsSnapshot:
        """Run one pass for the account behind the client's credential.

        *steam_id* is required in API-key mode; token mode reads the friends
        list of the token's owner.
        """
        friend_ids = await self.client.get_friends_list(steam_id)
        if not friend_ids:
            self.logger.warning("No confirmed friends found after filtering")
            raise EmptyFriendsListError()

        accounts = await self.client.get_link_details(friend_ids)
        friends, cache = await build_friends(
            accounts,
            avatar_cache,
            self.client.get_player_summaries,
            self.logger,
        )
        return FriendsSnapshot(friend_ids=friend_ids, friends=friends, avatar_cache=cache)
