"""Tests for the CLI entry point."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import click
import httpx
import pytest
from click.testing import CliRunner
from conftest import API_KEY, OWNER_ID, TOKEN, FakeSteam, link_account, make_token, rp_blob

from cs2join import cli
from cs2join.cli import main
from cs2join.client import SteamClient

KEY_FRIENDS = "/ISteamUser/GetFriendList/v1/"
TOKEN_FRIENDS = "/IFriendsListService/GetFriendsList/v1/"
LINK_DETAILS = "/IPlayerService/GetPlayerLinkDetails/v1/"
VANITY = "/ISteamUser/ResolveVanityURL/v1/"

JOINABLE = rp_blob(game__mode="casual", game__state="game", game__map="de_nuke", connect="+gcconnectG:1")


@pytest.fixture
def settings_path(tmp_path: Path) -> Path:
    return tmp_path / "settings.json"


@pytest.fixture
def invoke(settings_path: Path) -> Callable[..., Any]:
    runner = CliRunner()
    env = {
        "CS2JOIN_AUTH": None,
        "CS2JOIN_STEAM_ID": None,
        "CS2JOIN_SETTINGS_PATH": str(settings_path),
        "CS2JOIN_JOIN_INTERVAL": "0",
    }

    def run(*args: str) -> Any:
        return runner.invoke(main, ["--log-level", "error", *args], env=env)

    return run


@pytest.fixture
def fake_api(
    monkeypatch: pytest.MonkeyPatch, make_client: Callable[..., SteamClient]
) -> None:
    monkeypatch.setattr(cli, "_make_client", lambda config, auth: make_client(auth))


def _serve_friends(steam: FakeSteam) -> None:
    steam.json(
        KEY_FRIENDS,
        {"friendslist": {"friends": [
            {"steamid": "1", "relationship": "friend"},
            {"steamid": "2", "relationship": "friend"},
        ]}},
    )
    steam.json(
        LINK_DETAILS,
        {"response": {"accounts": [
            link_account("1", "Alice", rich_presence=JOINABLE),
            link_account("2", "Bob", rich_presence=rp_blob(game__mode="competitive", game__state="game")),
        ]}},
    )


class TestFriends:
    def test_missing_credential(self, invoke: Callable[..., Any]) -> None:
        result = invoke("friends")
        assert result.exit_code == 1
        assert "No credential given" in result.output

    def test_invalid_credential_rejected(self, invoke: Callable[..., Any], steam: FakeSteam) -> None:
        result = invoke("friends", "--auth", "hello", "--steam-id", OWNER_ID)
        assert result.exit_code == 1
        assert "neither a 32-character Web API key nor a Web API token" in result.output
        assert steam.requests == []

    def test_key_mode_needs_steam_id(self, invoke: Callable[..., Any]) -> None:
        result = invoke("friends", "--auth", API_KEY)
        assert result.exit_code == 1
        assert "--steam-id is required" in result.output

    def test_lists_friends(
        self,
        invoke: Callable[..., Any],
        steam: FakeSteam,
        fake_api: None,
        settings_path: Path,
    ) -> None:
        _serve_friends(steam)
        result = invoke("friends", "--auth", API_KEY, "--steam-id", OWNER_ID)

        assert result.exit_code == 0, result.output
        assert "2 friend(s) in CS2, 1 in casual/deathmatch, 1 joinable" in result.output
        assert "Alice" in result.output
        assert "de_nuke" in result.output

        saved = json.loads(settings_path.read_text())
        assert saved["steam_id"] == OWNER_ID
        assert saved["friend_ids"] == ["1", "2"]

    def test_joinable_json(
        self, invoke: Callable[..., Any], steam: FakeSteam, fake_api: None
    ) -> None:
        _serve_friends(steam)
        result = invoke("friends", "-a", API_KEY, "-s", OWNER_ID, "--joinable-only", "--json")

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert [f["steam_id"] for f in data] == ["1"]
        assert data[0]["join_available"] is True

    def test_token_mode_uses_token_owner(
        self, invoke: Callable[..., Any], steam: FakeSteam, fake_api: None
    ) -> None:
        steam.json(TOKEN_FRIENDS, {"response": {"friendslist": {"friends": []}}})
        result = invoke("friends", "--auth", TOKEN)

        assert result.exit_code == 1
        assert "No friends found" in result.output
        assert steam.paths() == [TOKEN_FRIENDS]

    def test_private_list(
        self, invoke: Callable[..., Any], steam: FakeSteam, fake_api: None
    ) -> None:
        steam.json(KEY_FRIENDS, {}, status=401)
        result = invoke("friends", "--auth", API_KEY, "--steam-id", OWNER_ID)

        assert result.exit_code == 1
        assert "friends list is private" in result.output
        assert "Privacy Settings" in result.output

    def test_saved_credential_reused(
        self,
        invoke: Callable[..., Any],
        steam: FakeSteam,
        fake_api: None,
        settings_path: Path,
    ) -> None:
        settings_path.write_text(json.dumps({"auth": API_KEY, "steam_id": OWNER_ID}))
        _serve_friends(steam)

        result = invoke("friends")

        assert result.exit_code == 0, result.output
        assert steam.requests[0].url.params["steamid"] == OWNER_ID


class TestTokenInfo:
    def test_shows_claims(self, invoke: Callable[..., Any]) -> None:
        result = invoke("token-info", "--auth", TOKEN)
        assert result.exit_code == 0
        assert f"SteamID: {OWNER_ID}" in result.output
        assert "Expires: 2030-01-01T00:00:00+00:00" in result.output
        assert "expired" not in result.output

    def test_expired(self, invoke: Callable[..., Any]) -> None:
        result = invoke("token-info", "--auth", make_token(exp=1000000000))
        assert result.exit_code == 0
        assert "Token has expired" in result.output

    def test_expiry_out_of_range(self, invoke: Callable[..., Any]) -> None:
        result = invoke("token-info", "--auth", make_token(exp=10**20))
        assert result.exit_code == 0
        assert "Expires: unknown" in result.output

    def test_api_key_is_not_a_token(self, invoke: Callable[..., Any]) -> None:
        result = invoke("token-info", "--auth", API_KEY)
        assert result.exit_code == 1
        assert "not a Web API token" in result.output


class TestResolve:
    def test_steam_id_passthrough(self, invoke: Callable[..., Any]) -> None:
        result = invoke("resolve", OWNER_ID)
        assert result.exit_code == 0
        assert result.output.strip() == OWNER_ID

    def test_profiles_url(self, invoke: Callable[..., Any]) -> None:
        result = invoke("resolve", f"https://steamcommunity.com/profiles/{OWNER_ID}")
        assert result.exit_code == 0
        assert result.output.strip() == OWNER_ID

    def test_vanity_url(
        self, invoke: Callable[..., Any], steam: FakeSteam, fake_api: None
    ) -> None:
        steam.json(VANITY, {"response": {"success": 1, "steamid": OWNER_ID}})
        result = invoke("resolve", "https://steamcommunity.com/id/someone/", "--auth", API_KEY)

        assert result.exit_code == 0
        assert result.output.strip() == OWNER_ID
        assert steam.requests[0].url.params["vanityurl"] == "someone"

    def test_unresolvable(
        self, invoke: Callable[..., Any], steam: FakeSteam, fake_api: None
    ) -> None:
        steam.json(VANITY, {"response": {"success": 42}})
        result = invoke("resolve", "nobody", "--auth", API_KEY)

        assert result.exit_code == 1
        assert "Could not resolve 'nobody'" in result.output


class TestConnectAndCheck:
    def test_connect(self, invoke: Callable[..., Any], steam: FakeSteam, fake_api: None) -> None:
        steam.json(LINK_DETAILS, {"response": {"accounts": [link_account("1", rich_presence=JOINABLE)]}})
        result = invoke("connect", "1", "--auth", API_KEY)
        assert result.exit_code == 0
        assert result.output.strip() == "+gcconnectG:1"

    def test_connect_not_joinable(
        self, invoke: Callable[..., Any], steam: FakeSteam, fake_api: None
    ) -> None:
        steam.json(LINK_DETAILS, {"response": {"accounts": [link_account("1")]}})
        result = invoke("connect", "1", "--auth", API_KEY)
        assert result.exit_code == 1
        assert "not in a joinable" in result.output

    def test_check_playing(self, invoke: Callable[..., Any], steam: FakeSteam, fake_api: None) -> None:
        steam.json(LINK_DETAILS, {"response": {"accounts": [link_account("1")]}})
        result = invoke("check", "1", "--auth", API_KEY)
        assert result.exit_code == 0
        assert "1 is playing CS2" in result.output

    def test_check_not_in_lobby(
        self, invoke: Callable[..., Any], steam: FakeSteam, fake_api: None
    ) -> None:
        steam.json(LINK_DETAILS, {"response": {"accounts": [link_account("1", rich_presence=JOINABLE)]}})
        result = invoke("check", "1", "--lobby", "--auth", API_KEY)
        assert result.exit_code == 1
        assert "1 is not in the CS2 lobby" in result.output


class TestJoin:
    def _serve(self, steam: FakeSteam, friend: dict[str, Any], user: dict[str, Any]) -> None:
        accounts = {"1": friend, OWNER_ID: user}

        def handler(request: httpx.Request) -> httpx.Response:
            account = accounts[request.url.params["steamids[0]"]]
            return httpx.Response(200, json={"response": {"accounts": [account]}})

        steam.route(LINK_DETAILS, handler)

    def test_joins_friend(
        self,
        invoke: Callable[..., Any],
        steam: FakeSteam,
        fake_api: None,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        opened: list[str] = []
        monkeypatch.setattr(click, "launch", lambda url, **kwargs: opened.append(url))
        in_match = rp_blob(
            game__mode="casual", game__state="game", connect="+gcconnectG:1", game_server_steam_id="900"
        )
        self._serve(
            steam,
            link_account("1", rich_presence=in_match),
            link_account(OWNER_ID, rich_presence=rp_blob(game_server_steam_id="900")),
        )

        result = invoke("join", "1", "--auth", API_KEY, "--steam-id", OWNER_ID)

        assert result.exit_code == 0, result.output
        assert "steam://rungame/730/1/+gcconnectG:1" in result.output
        assert "[1] connecting" in result.output
        assert "✓ Joined 1" in result.output
        assert opened == ["steam://rungame/730/1/+gcconnectG:1"]

    def test_no_launch(self, invoke: Callable[..., Any], steam: FakeSteam, fake_api: None) -> None:
        in_match = rp_blob(
            game__mode="deathmatch", game__state="game", connect="+gcconnectG:2", game_server_steam_id="7"
        )
        self._serve(
            steam,
            link_account("1", rich_presence=in_match),
            link_account(OWNER_ID, rich_presence=rp_blob(game_server_steam_id="7")),
        )

        result = invoke("join", "1", "--auth", TOKEN, "--no-launch")

        assert result.exit_code == 0, result.output
        assert "steam://rungame/730/1/+gcconnectG:2" in result.output

    def test_gives_up_when_friend_leaves(
        self, invoke: Callable[..., Any], steam: FakeSteam, fake_api: None
    ) -> None:
        self._serve(steam, link_account("1", game_id=None), link_account(OWNER_ID))

        result = invoke(
            "join", "1", "--auth", API_KEY, "-s", OWNER_ID, "--no-launch", "--missing-timeout", "0"
        )

        assert result.exit_code == 1
        assert "[1] missing" in result.output
        assert "Join cancelled" in result.output

    def test_key_mode_needs_steam_id(self, invoke: Callable[..., Any]) -> None:
        result = invoke("join", "1", "--auth", API_KEY)
        assert result.exit_code == 1
        assert "--steam-id is required" in result.output
