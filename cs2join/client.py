"""Steam Web API client: one coroutine per API call cs2join needs."""

from __future__ import annotations

import logging
from typing import Any, Iterable

import httpx

from cs2join import endpoints
from cs2join import normalize
from cs2join.auth import AuthMode, classify, decode_token_claims, unwrap_envelope
from cs2join.constants import STEAM_API_BASE, SUMMARIES_BATCH_SIZE
from cs2join.errors import PrivateFriendsListError
from cs2join.models import TokenClaims
from cs2join.utils.http import RequestExecutor, RequestSpec


def _chunks(items: list[str], size: int) -> Iterable[list[str]]:
    for i in range(0, len(items), size):
        yield items[i : i + size]


class SteamClient:
    """Talks to the Web API with either an API key or a Web API token.

    The credential may be passed wrapped in the JSON envelope the Steam store
    returns; it is unwrapped once here.

    Use as an async context manager to share one HTTP connection pool across
    calls::

        async with SteamClient(auth) as client:
            ids = await client.get_friends_list(steam_id)
    """

    def __init__(
        self,
        credential: str,
        *,
        base_url: str = STEAM_API_BASE,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.credential = unwrap_envelope(credential.strip())
        self.mode: AuthMode = classify(self.credential)
        self.logger = logger or logging.getLogger(__name__)
        self.executor = RequestExecutor(
            base_url, timeout=timeout, client=http_client, logger=self.logger
        )

    async def __aenter__(self) -> SteamClient:
        await self.executor.__aenter__()
        return self

    async def __aexit__(self, exc_type: object, exc: object, tb: object) -> None:
        await self.executor.__aexit__(exc_type, exc, tb)

    @property
    def token_claims(self) -> TokenClaims | None:
        """Claims of the token credential; None in API-key mode."""
        if self.mode is not AuthMode.TOKEN:
            return None
        return decode_token_claims(self.credential)

    async def _call(self, spec: RequestSpec, **context: Any) -> Any | None:
        return await self.executor.execute(spec, self.credential, context)

    # ------------------------------------------------------------------
    # Friends
    # ------------------------------------------------------------------

    async def get_friends_list(self, steam_id: str | None = None) -> list[str]:
        """SteamIDs of confirmed friends. May be empty.

        Raises PrivateFriendsListError when Steam answers 401.
        """
        spec = (
            RequestSpec(endpoints.GET_FRIENDS_LIST)
            .with_params(steamid=steam_id if self.mode is AuthMode.API_KEY else None)
            .overriding(401, PrivateFriendsListError)
        )
        data = await self._call(spec, steam_id=steam_id)
        ids = normalize.friend_ids(data, self.mode)
        self.logger.info("Retrieved %d confirmed friends", len(ids))
        return ids

    async def get_player_summaries(self, steam_ids: Iterable[str]) -> dict[str, dict[str, Any]]:
        """Player summaries keyed by SteamID, fetched in batches of 100.

        Batches are independent: a failed batch is logged and skipped.
        """
        ids = [str(sid) for sid in steam_ids]
        if not ids:
            return {}

        total = (len(ids) + SUMMARIES_BATCH_SIZE - 1) // SUMMARIES_BATCH_SIZE
        result: dict[str, dict[str, Any]] = {}
        for index, chunk in enumerate(_chunks(ids, SUMMARIES_BATCH_SIZE), 1):
            spec = (
                RequestSpec(endpoints.GET_PLAYER_SUMMARIES)
                .with_params(steamids=",".join(chunk))
                .allowing_failure()
            )
            self.logger.info(
                "Fetching player summaries chunk %d/%d (%d players)", index, total, len(chunk)
            )
            data = await self._call(spec, chunk_index=index, total_chunks=total, chunk_size=len(chunk))
            if data is None:
                self.logger.warning("GetPlayerSummaries chunk %d failed", index)
                continue
            for player in normalize.player_summaries(data):
                sid = player.get("steamid")
                if sid:
                    result[str(sid)] = player

        self.logger.info("Player summaries completed: %d/%d players received", len(result), len(ids))
        return result

    async def get_link_details(self, steam_ids: list[str]) -> list[dict[str, Any]]:
        """Link-details accounts for all ids, in one request."""
        params = {f"steamids[{i}]": sid for i, sid in enumerate(steam_ids)}
        spec = RequestSpec(endpoints.GET_PLAYER_LINK_DETAILS).with_params(params)
        data = await self._call(spec, friends_count=len(steam_ids))
        accounts = normalize.link_accounts(data)
        self.logger.info("Received %d accounts for %d requested ids", len(accounts), len(steam_ids))
        return accounts

    # ------------------------------------------------------------------
    # Single-player lookups (best effort: HTTP failures give None/False)
    # ------------------------------------------------------------------

    async def _single_link_details(self, steam_id: str) -> Any | None:
        spec = (
            RequestSpec(endpoints.GET_PLAYER_LINK_DETAILS)
            .with_params({"steamids[0]": steam_id})
            .allowing_failure()
        )
        return await self._call(spec, steam_id=steam_id)

    async def get_friend_connect_info(self, friend_id: str) -> str | None:
        data = await self._single_link_details(friend_id)
        return normalize.connect_info(data) if data is not None else None

    async def get_user_game_server_steam_id(self, steam_id: str) -> str | None:
        data = await self._single_link_details(steam_id)
        return normalize.game_server_steam_id(data) if data is not None else None

    async def is_player_in_cs2(self, steam_id: str, *, require_lobby: bool = False) -> bool:
        data = await self._single_link_details(steam_id)
        if data is None:
            return False
        playing = normalize.in_cs2(data, require_lobby=require_lobby)
        self.logger.info(
            "Player %s CS2 status: %s", steam_id, "playing" if playing else "not playing"
        )
        return playing

    async def resolve_vanity_url(self, vanity: str) -> str | None:
        spec = (
            RequestSpec(endpoints.RESOLVE_VANITY_URL)
            .with_params(vanityurl=vanity)
            .allowing_failure()
        )
        data = await self._call(spec, vanity=vanity)
        return normalize.vanity_steam_id(data) if data is not None else None
