"""cs2join: find Steam friends you can join in Counter-Strike 2."""

from cs2join.aggregator import PresenceAggregator, build_friends
from cs2join.auth import AuthMode, classify, decode_token_claims, unwrap_envelope
from cs2join.client import SteamClient
from cs2join.errors import (
    ApiError,
    EmptyFriendsListError,
    MalformedResponseError,
    NetworkError,
    PrivateFriendsListError,
    SteamError,
    UnknownMethodError,
)
from cs2join.models import Friend, FriendsSnapshot, RichPresence, TokenClaims
from cs2join.presence import decode_rich_presence

__all__ = [
    "ApiError",
    "AuthMode",
    "EmptyFriendsListError",
    "Friend",
    "FriendsSnapshot",
    "MalformedResponseError",
    "NetworkError",
    "PresenceAggregator",
    "PrivateFriendsListError",
    "RichPresence",
    "SteamClient",
    "SteamError",
    "TokenClaims",
    "UnknownMethodError",
    "build_friends",
    "classify",
    "decode_rich_presence",
    "decode_token_claims",
    "unwrap_envelope",
]
