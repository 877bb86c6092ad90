"""Credential classification: Steam Web API keys vs. Web API tokens."""

from __future__ import annotations

import base64
import binascii
import enum
import json
import math
import re
from typing import Any

from cs2join.models import ProfileRef, TokenClaims

_TOKEN_RE = re.compile(r"[\w-]+\.[\w-]+\.[\w-]+", re.ASCII)
_API_KEY_RE = re.compile(r"[A-Z0-9]{32}", re.IGNORECASE)
_STEAM_ID_RE = re.compile(r"[0-9]{17}")


class AuthMode(str, enum.Enum):
    """How a request authenticates against the Web API."""

    API_KEY = "key"
    TOKEN = "token"

    @property
    def query_param(self) -> str:
        return "access_token" if self is AuthMode.TOKEN else "key"


def is_token(value: str) -> bool:
    return isinstance(value, str) and bool(_TOKEN_RE.fullmatch(value))


def is_api_key(value: str) -> bool:
    return isinstance(value, str) and bool(_API_KEY_RE.fullmatch(value))


def classify(credential: str) -> AuthMode:
    """Decide the auth mode from the credential's shape alone."""
    return AuthMode.TOKEN if is_token(credential) else AuthMode.API_KEY


def _envelope_token(raw: str) -> str | None:
    if not isinstance(raw, str) or not raw.lstrip().startswith("{"):
        return None
    try:
        parsed = json.loads(raw)
    except (ValueError, RecursionError):
        return None
    if not isinstance(parsed, dict):
        return None
    data = parsed.get("data")
    if not isinstance(data, dict):
        return None
    token = data.get("webapi_token")
    return token if isinstance(token, str) and token else None


def unwrap_envelope(raw: str) -> str:
    """Return the token from ``{"data": {"webapi_token": ...}}``, else *raw* unchanged.

    The Steam store hands out tokens through
    ``https://store.steampowered.com/pointssummary/ajaxgetasyncconfig``, whose
    response body users tend to paste verbatim.
    """
    return _envelope_token(raw) or raw


def extract_token(raw: str) -> str | None:
    """Return a Web API token from *raw* (enveloped or bare), or None."""
    token = _envelope_token(raw)
    if token:
        return token
    return raw if is_token(raw) else None


def is_valid_credential(raw: str) -> bool:
    if not isinstance(raw, str):
        return False
    token = _envelope_token(raw)
    if token:
        return is_token(token)
    return is_api_key(raw) or is_token(raw)


def is_valid_steam_id(value: str) -> bool:
    return isinstance(value, str) and bool(_STEAM_ID_RE.fullmatch(value))


def decode_token_claims(token: str) -> TokenClaims | None:
    """Read ``sub`` and ``exp`` from a JWT-shaped token without verifying it."""
    parts = token.split(".") if isinstance(token, str) else []
    if len(parts) != 3:
        return None

    segment = parts[1]
    segment += "=" * (-len(segment) % 4)
    try:
        payload = json.loads(base64.urlsafe_b64decode(segment))
    except (binascii.Error, ValueError, RecursionError):
        return None
    if not isinstance(payload, dict):
        return None

    sub = payload.get("sub")
    exp = payload.get("exp")
    if exp is not None and not _is_whole_number(exp):
        return None
    try:
        return TokenClaims(
            steam_id=str(sub) if sub is not None else None,
            expires_at=int(exp) if exp is not None else None,
        )
    except (TypeError, ValueError, OverflowError):
        return None


def _is_whole_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value) and value.is_integer()


def parse_profile_url(url: str) -> ProfileRef | None:
    """Recognise ``/profiles/<steamid>`` and ``/id/<vanity>`` community URLs."""
    if not isinstance(url, str) or "steamcommunity.com" not in url:
        return None

    m = re.search(r"/profiles/(\d{17})", url)
    if m:
        return ProfileRef(kind="steamid", value=m.group(1))

    m = re.search(r"/id/([^/?#]+)", url)
    if m:
        return ProfileRef(kind="vanity", value=m.group(1))
    return None
