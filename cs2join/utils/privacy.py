"""Privacy filter: keep credentials out of anything that gets logged."""

from __future__ import annotations

import re

MASK = "***"

_AUTH_PARAM = re.compile(r"(?<=[?&])(key|access_token)=[^&#]*")


def mask_auth_in_url(url: str) -> str:
    """Replace ``key=`` / ``access_token=`` query values with a placeholder."""
    return _AUTH_PARAM.sub(rf"\1={MASK}", url)


def mask_secret(text: str, secret: str | None) -> str:
    """Remove every literal occurrence of *secret* from *text*."""
    if not secret:
        return text
    return text.replace(secret, MASK)
