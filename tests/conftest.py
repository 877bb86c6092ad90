"""Shared fixtures: a fake Steam Web API behind httpx.MockTransport."""

from __future__ import annotations

import base64
import json
from typing import Any, Callable

import httpx
import pytest

from cs2join.client import SteamClient

API_KEY = "0123456789ABCDEF0123456789ABCDEF"
OWNER_ID = "76561198000000001"


def make_token(sub: str = OWNER_ID, exp: int = 1893456000) -> str:
    """Build an unsigned JWT-shaped Web API token."""

    def seg(obj: dict[str, Any]) -> str:
        raw = json.dumps(obj).encode()
        return base64.urlsafe_b64encode(raw).decode().rstrip("=")

    return f"{seg({'typ': 'JWT', 'alg': 'EdDSA'})}.{seg({'sub': sub, 'exp': exp})}.c2lnbmF0dXJl"


TOKEN = make_token()


def rp_blob(**fields: str) -> str:
    """Render rich presence the way Steam sends it (Valve key/value text)."""
    lines = ['"RP"', "{"]
    for key, value in fields.items():
        lines.append(f'\t"{key.replace("__", ":")}"\t\t"{value}"')
    lines.append("}")
    return "\n".join(lines)


def link_account(
    steam_id: str,
    name: str = "",
    *,
    game_id: str | None = "730",
    rich_presence: str | None = None,
) -> dict[str, Any]:
    priv: dict[str, Any] = {}
    if game_id is not None:
        priv["game_id"] = game_id
    if rich_presence is not None:
        priv["rich_presence_kv"] = rich_presence
    return {
        "public_data": {"steamid": steam_id, "persona_name": name},
        "private_data": priv,
    }


Route = httpx.Response | Callable[[httpx.Request], httpx.Response]


class FakeSteam:
    """Routes requests by URL path and records everything it receives."""

    def __init__(self) -> None:
        self.routes: dict[str, Route] = {}
        self.requests: list[httpx.Request] = []

    def route(self, path: str, response: Route) -> None:
        self.routes[path] = response

    def json(self, path: str, payload: Any, status: int = 200) -> None:
        self.route(path, httpx.Response(status, json=payload))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, text="not found")
        if callable(route):
            return route(request)
        return httpx.Response(route.status_code, headers=route.headers, content=route.content)

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]


@pytest.fixture
def steam() -> FakeSteam:
    return FakeSteam()


@pytest.fixture
def make_client(steam: FakeSteam) -> Callable[..., SteamClient]:
    def factory(credential: str = API_KEY) -> SteamClient:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(steam))
        return SteamClient(credential, http_client=http_client)

    return factory
