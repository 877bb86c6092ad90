"""Core data models for cs2join."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal, Protocol

from pydantic import BaseModel, Field, computed_field

from cs2join.constants import CONNECT_PREFIX, NON_PLAYING_STATES, SUPPORTED_GAME_MODES


def _supported(game_mode: str | None, game_state: str | None) -> bool:
    return game_mode in SUPPORTED_GAME_MODES and game_state not in NON_PLAYING_STATES


def _joinable(game_mode: str | None, game_state: str | None, connect: str | None) -> bool:
    return _supported(game_mode, game_state) and bool(connect) and connect.startswith(
        CONNECT_PREFIX
    )


class RichPresence(BaseModel, frozen=True):
    """Fields pulled out of a rich-presence key/value blob. Absent keys are None."""

    status: str | None = None
    game_state: str | None = None
    game_mode: str | None = None
    game_map: str | None = None
    game_score: str | None = None
    connect: str | None = None
    game_server_steam_id: str | None = None

    @property
    def in_supported_mode(self) -> bool:
        return _supported(self.game_mode, self.game_state)

    @property
    def join_available(self) -> bool:
        return _joinable(self.game_mode, self.game_state, self.connect)


class Friend(BaseModel, frozen=True):
    """A friend playing CS2, as handed to the presentation layer."""

    steam_id: str
    display_name: str = ""
    avatar_url: str = ""
    status: str = ""
    game_mode: str | None = None
    game_state: str | None = None
    game_map: str = ""
    game_score: str = ""
    game_server_id: str = ""
    connect: str = ""

    @computed_field  # type: ignore[prop-decorator]
    @property
    def in_supported_mode(self) -> bool:
        return _supported(self.game_mode, self.game_state)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def join_available(self) -> bool:
        return _joinable(self.game_mode, self.game_state, self.connect)


class TokenClaims(BaseModel, frozen=True):
    """Claims carried in the payload segment of a Web API token."""

    steam_id: str | None = None
    expires_at: int | None = None

    @property
    def expires_at_datetime(self) -> datetime | None:
        if self.expires_at is None:
            return None
        try:
            return datetime.fromtimestamp(self.expires_at, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    def is_expired(self, now: datetime | None = None) -> bool:
        expires = self.expires_at_datetime
        if expires is None:
            return False
        return expires <= (now or datetime.now(tz=timezone.utc))


class ProfileRef(BaseModel, frozen=True):
    """What a steamcommunity.com profile URL points at."""

    kind: Literal["steamid", "vanity"]
    value: str


class StateSink(Protocol):
    """Receives key/value change notifications for the UI."""

    def set(self, key: str, value: Any) -> None: ...


class FriendsSnapshot(BaseModel, frozen=True):
    """Result of one aggregation pass."""

    friend_ids: list[str] = Field(default_factory=list)
    friends: list[Friend] = Field(default_factory=list)
    avatar_cache: dict[str, str] = Field(default_factory=dict)

    @property
    def supported(self) -> list[Friend]:
        return [f for f in self.friends if f.in_supported_mode]

    @property
    def joinable(self) -> list[Friend]:
        return [f for f in self.friends if f.join_available]

    def publish(self, sink: StateSink) -> None:
        """Push this snapshot into a UI state container."""
        sink.set("friends", self.friends)
        sink.set("supported_friends", self.supported)
        sink.set("joinable_friends", self.joinable)
        sink.set("avatar_cache", dict(self.avatar_cache))
