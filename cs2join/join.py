"""Join loop: wait for a friend's server to become joinable, hand it to Steam,
and confirm that the user landed on the same server.

Each iteration either

- finds no connect string, then checks whether the friend is still in a
  supported match. Time spent outside one is tracked, and the attempt is
  cancelled once it exceeds the missing timeout; or
- finds a connect string, launches ``steam://rungame/730/<friend>/<connect>``
  and compares the user's and the friend's game server ids.

Steam errors inside an iteration are logged and the loop carries on.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import time
from typing import Any, Awaitable, Callable

from cs2join.client import SteamClient
from cs2join.constants import CS2_APP_ID, RUN_GAME_URL
from cs2join.errors import SteamError
from cs2join.presence import account_presence, is_in_game


class JoinStatus(str, enum.Enum):
    WAITING = "waiting"
    CONNECTING = "connecting"
    JOINED = "joined"
    MISSING = "missing"
    CANCELLED = "cancelled"


Launcher = Callable[[str], Any]
StatusCallback = Callable[[str, JoinStatus], None]


def join_url(friend_id: str, connect: str) -> str:
    return RUN_GAME_URL.format(app_id=CS2_APP_ID, friend_id=friend_id, connect=connect)


def _in_supported_match(accounts: list[dict[str, Any]]) -> bool:
    if not accounts:
        return False
    account = accounts[0]
    return is_in_game(account.get("private_data")) and account_presence(account).in_supported_mode


class JoinWatcher:
    """Runs the join loop for one friend at a time.

    *launch* receives the ``steam://`` URL every time a connect string is
    available; *on_status* is told about each status change.
    """

    def __init__(
        self,
        client: SteamClient,
        user_steam_id: str,
        *,
        launch: Launcher,
        interval: float = 0.5,
        missing_timeout: float = 60.0,
        on_status: StatusCallback | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        logger: logging.Logger | None = None,
    ) -> None:
        self.client = client
        self.user_steam_id = user_steam_id
        self.launch = launch
        self.interval = interval
        self.missing_timeout = missing_timeout
        self.on_status = on_status
        self.clock = clock
        self.sleep = sleep
        self.logger = logger or logging.getLogger(__name__)
        self.status: JoinStatus | None = None
        self._cancelled = False

    def cancel(self) -> None:
        """Stop the loop after the current iteration."""
        self._cancelled = True

    def _set_status(self, friend_id: str, status: JoinStatus) -> None:
        if status is self.status:
            return
        self.status = status
        self.logger.info("Join %s: %s", friend_id, status.value)
        if self.on_status is not None:
            self.on_status(friend_id, status)

    async def _servers_match(self, friend_id: str) -> bool:
        user_server, friend_server = await asyncio.gather(
            self.client.get_user_game_server_steam_id(self.user_steam_id),
            self.client.get_user_game_server_steam_id(friend_id),
        )
        self.logger.debug("Game servers: user=%s friend=%s", user_server, friend_server)
        return bool(user_server) and user_server == friend_server

    async def join(self, friend_id: str) -> JoinStatus:
        """Loop until the user is on the friend's server or the attempt ends.

        Returns ``JoinStatus.JOINED`` or ``JoinStatus.CANCELLED``.
        """
        self._cancelled = False
        self.status = None
        self._set_status(friend_id, JoinStatus.WAITING)
        missing_since: float | None = None

        while not self._cancelled:
            try:
                connect = await self.client.get_friend_connect_info(friend_id)
                if not connect:
                    accounts = await self.client.get_link_details([friend_id])
                    if _in_supported_match(accounts):
                        missing_since = None
                        self._set_status(friend_id, JoinStatus.WAITING)
                    else:
                        if missing_since is None:
                            missing_since = self.clock()
                        self._set_status(friend_id, JoinStatus.MISSING)
                        if self.clock() - missing_since > self.missing_timeout:
                            self.logger.warning(
                                "Friend %s left supported modes for over %.0fs",
                                friend_id,
                                self.missing_timeout,
                            )
                            break
                    await self.sleep(self.interval)
                    continue

                missing_since = None
                self._set_status(friend_id, JoinStatus.CONNECTING)
                self.launch(join_url(friend_id, connect))
                await self.sleep(self.interval)

                if await self._servers_match(friend_id):
                    self._set_status(friend_id, JoinStatus.JOINED)
                    return JoinStatus.JOINED

                await self.sleep(self.interval)
            except SteamError as exc:
                self.logger.error("Join loop error for %s: %s", friend_id, exc)
                await self.sleep(self.interval)

        self._set_status(friend_id, JoinStatus.CANCELLED)
        return JoinStatus.CANCELLED
