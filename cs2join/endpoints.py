"""Endpoint table: API method + auth mode -> path and default parameters."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Union

from cs2join.auth import AuthMode
from cs2join.errors import UnknownMethodError

GET_FRIENDS_LIST = "GetFriendsList"
GET_PLAYER_SUMMARIES = "GetPlayerSummaries"
GET_PLAYER_LINK_DETAILS = "GetPlayerLinkDetails"
RESOLVE_VANITY_URL = "ResolveVanityURL"


@dataclass(frozen=True)
class Endpoint:
    """A concrete Web API path with the parameters it always needs."""

    path: str
    default_params: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class DualEndpoint:
    """Separate endpoints for API-key and token requests."""

    key: Endpoint
    token: Endpoint


@dataclass(frozen=True)
class UnifiedEndpoint:
    """One endpoint that accepts either credential."""

    endpoint: Endpoint


EndpointSet = Union[DualEndpoint, UnifiedEndpoint]

ENDPOINTS: Mapping[str, EndpointSet] = MappingProxyType({
    GET_FRIENDS_LIST: DualEndpoint(
        key=Endpoint("/ISteamUser/GetFriendList/v1/", {"relationship": "friend"}),
        token=Endpoint("/IFriendsListService/GetFriendsList/v1/"),
    ),
    GET_PLAYER_SUMMARIES: DualEndpoint(
        key=Endpoint("/ISteamUser/GetPlayerSummaries/v2/"),
        token=Endpoint("/ISteamUserOAuth/GetUserSummaries/v1/"),
    ),
    GET_PLAYER_LINK_DETAILS: UnifiedEndpoint(
        Endpoint("/IPlayerService/GetPlayerLinkDetails/v1/"),
    ),
    RESOLVE_VANITY_URL: UnifiedEndpoint(
        Endpoint("/ISteamUser/ResolveVanityURL/v1/"),
    ),
})


def resolve(method: str, mode: AuthMode) -> Endpoint:
    """Return the endpoint serving *method* for the given auth mode."""
    entry = ENDPOINTS.get(method)
    if entry is None:
        raise UnknownMethodError(f"Unknown API method: {method}")
    if isinstance(entry, UnifiedEndpoint):
        return entry.endpoint
    return entry.token if mode is AuthMode.TOKEN else entry.key
