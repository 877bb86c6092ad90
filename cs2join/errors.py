"""Error taxonomy for Steam API failures."""

from __future__ import annotations

PRIVATE_FRIENDS_LIST = "PRIVATE_FRIENDS_LIST"
EMPTY_FRIENDS_LIST = "EMPTY_FRIENDS_LIST"
UNKNOWN_METHOD = "UNKNOWN_METHOD"
MALFORMED_RESPONSE = "MALFORMED_RESPONSE"
NETWORK_FAILURE = "NETWORK_FAILURE"

_USER_MESSAGES: dict[str, str] = {
    PRIVATE_FRIENDS_LIST: (
        "Your friends list is private. "
        "Please make it public in your Steam privacy settings."
    ),
    EMPTY_FRIENDS_LIST: "No friends found in your friends list.",
    "API_ERROR_403": "Access forbidden. Please check your API key permissions.",
    "API_ERROR_401": "Unauthorized. Please check your API key or token.",
    NETWORK_FAILURE: "Could not reach the Steam Web API.",
}


def user_message(code: str) -> str:
    """Return the user-facing text for an error code."""
    return _USER_MESSAGES.get(code, f"An error occurred ({code})")


class SteamError(Exception):
    """Base class for every failure raised by cs2join."""

    code: str = "STEAM_ERROR"

    def __init__(self, message: str | None = None, *, status: int | None = None) -> None:
        self.status = status
        self.message = message or user_message(self.code)
        super().__init__(self.message)

    @property
    def user_message(self) -> str:
        return _USER_MESSAGES.get(self.code, self.message)


class UnknownMethodError(SteamError):
    """No endpoint is registered for the requested API method."""

    code = UNKNOWN_METHOD


class MalformedResponseError(SteamError):
    """A successful response carried a body that is not JSON."""

    code = MALFORMED_RESPONSE


class ApiError(SteamError):
    """Generic non-2xx HTTP status."""

    def __init__(self, message: str | None = None, *, status: int | None = None) -> None:
        self.code = f"API_ERROR_{status}"
        super().__init__(message, status=status)


class PrivateFriendsListError(SteamError):
    """The friends list endpoint answered 401."""

    code = PRIVATE_FRIENDS_LIST


class EmptyFriendsListError(SteamError):
    """No confirmed friends were left after filtering."""

    code = EMPTY_FRIENDS_LIST


class NetworkError(SteamError):
    """The request never produced an HTTP response."""

    code = NETWORK_FAILURE


def is_privacy_error(error: BaseException | str) -> bool:
    """True for errors caused by Steam privacy settings."""
    if isinstance(error, SteamError) and error.code == PRIVATE_FRIENDS_LIST:
        return True
    return "private" in str(error).lower()
