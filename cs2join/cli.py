"""CLI entry point for cs2join."""

from __future__ import annotations

import asyncio
import json
import sys
from dataclasses import replace
from typing import Any, Callable, Coroutine

import click

from cs2join.config import Config
from cs2join.errors import SteamError, is_privacy_error
from cs2join.log import setup_logging
from cs2join.models import Friend, FriendsSnapshot
from cs2join.settings import JsonSettingsStore


def _run(coro: Coroutine[Any, Any, Any]) -> Any:
    """Run *coro*, turning Steam errors into a message and exit status 1."""
    try:
        return asyncio.run(coro)
    except SteamError as e:
        click.echo(f"✗ {e.user_message}", err=True)
        if is_privacy_error(e):
            click.echo(
                "  Steam > Profile > Edit Profile > Privacy Settings > Friends List: Public",
                err=True,
            )
        sys.exit(1)


def _resolve_auth(config: Config, auth: str | None, saved: dict[str, Any]) -> str:
    from cs2join.auth import is_valid_credential

    value = auth or config.auth or saved.get("auth")
    if not value:
        click.echo(
            "No credential given. Pass --auth or set CS2JOIN_AUTH "
            "(API key, Web API token, or the JSON holding one).",
            err=True,
        )
        sys.exit(1)
    value = value.strip()
    if not is_valid_credential(value):
        click.echo(
            "The credential is neither a 32-character Web API key nor a Web API token.",
            err=True,
        )
        sys.exit(1)
    return value


def _make_client(config: Config, auth: str):
    from cs2join.client import SteamClient

    return SteamClient(auth, base_url=config.api_base, timeout=config.http_timeout)


def _resolve_steam_id(
    client: Any, config: Config, steam_id: str | None, saved: dict[str, Any]
) -> str | None:
    """Option, then environment, then saved settings, then the token's owner."""
    steam_id = steam_id or config.steam_id or saved.get("steam_id")
    if not steam_id:
        claims = client.token_claims
        steam_id = claims.steam_id if claims else None
    return steam_id


def _format_friend(friend: Friend) -> str:
    marker = "✓" if friend.join_available else ("·" if friend.in_supported_mode else " ")
    details = " ".join(
        part
        for part in (
            friend.game_mode or "unknown mode",
            friend.game_map,
            f"[{friend.game_score}]" if friend.game_score else "",
        )
        if part
    )
    line = f"  {marker} {friend.display_name or friend.steam_id} - {details}"
    if friend.status:
        line += f" ({friend.status})"
    return line


def _render(snapshot: FriendsSnapshot, *, joinable_only: bool, as_json: bool) -> None:
    friends = snapshot.joinable if joinable_only else snapshot.friends
    if as_json:
        click.echo(json.dumps([f.model_dump() for f in friends], indent=2, ensure_ascii=False))
        return
    click.echo(
        f"{len(snapshot.friends)} friend(s) in CS2, "
        f"{len(snapshot.supported)} in casual/deathmatch, "
        f"{len(snapshot.joinable)} joinable"
    )
    for friend in friends:
        click.echo(_format_friend(friend))


async def _poll_friends(
    client: Any,
    steam_id: str | None,
    store: JsonSettingsStore,
    render: Callable[[FriendsSnapshot], None],
    *,
    watch: bool,
    interval: float,
) -> None:
    from cs2join.aggregator import PresenceAggregator

    avatar_cache: dict[str, str] = {}
    async with client:
        aggregator = PresenceAggregator(client)
        while True:
            snapshot = await aggregator.aggregate(steam_id, avatar_cache)
            avatar_cache = snapshot.avatar_cache
            store.update(
                auth=client.credential,
                steam_id=steam_id,
                friend_ids=snapshot.friend_ids,
            )
            render(snapshot)
            if not watch:
                return
            await asyncio.sleep(interval)


@click.group()
@click.option("--log-level", default=None, help="error/warning/info/debug/trace")
@click.pass_context
def main(ctx: click.Context, log_level: str | None) -> None:
    """cs2join: find Steam friends you can join in CS2."""
    config = Config.from_env()
    if log_level:
        config = replace(config, log_level=log_level)
    setup_logging(config.log_level)
    ctx.obj = config


_auth_option = click.option(
    "--auth", "-a", default=None, help="Steam Web API key or Web API token (raw or JSON)"
)


@main.command()
@_auth_option
@click.option("--steam-id", "-s", default=None, help="Your SteamID64 (required with an API key)")
@click.option("--joinable-only", is_flag=True, help="Only list friends you can join right now")
@click.option("--json", "as_json", is_flag=True, help="Print friends as JSON")
@click.option("--watch", "-w", is_flag=True, help="Keep polling until interrupted")
@click.option("--interval", type=float, default=None, help="Seconds between polls with --watch")
@click.pass_obj
def friends(
    config: Config,
    auth: str | None,
    steam_id: str | None,
    joinable_only: bool,
    as_json: bool,
    watch: bool,
    interval: float | None,
) -> None:
    """List friends playing CS2 and whether you can join them."""
    from cs2join.auth import AuthMode

    store = JsonSettingsStore(config.settings_path)
    saved = store.load()
    client = _make_client(config, _resolve_auth(config, auth, saved))

    steam_id = _resolve_steam_id(client, config, steam_id, saved)
    if client.mode is AuthMode.API_KEY and not steam_id:
        click.echo("--steam-id is required when using an API key.", err=True)
        sys.exit(1)

    def render(snapshot: FriendsSnapshot) -> None:
        _render(snapshot, joinable_only=joinable_only, as_json=as_json)

    try:
        _run(
            _poll_friends(
                client,
                steam_id,
                store,
                render,
                watch=watch,
                interval=interval or config.refresh_interval,
            )
        )
    except KeyboardInterrupt:
        click.echo("\nStopped.")


@main.command("token-info")
@_auth_option
@click.pass_obj
def token_info(config: Config, auth: str | None) -> None:
    """Show the SteamID and expiry carried by a Web API token."""
    from cs2join.auth import decode_token_claims, extract_token

    store = JsonSettingsStore(config.settings_path)
    token = extract_token(_resolve_auth(config, auth, store.load()))
    if not token:
        click.echo("The credential is not a Web API token.", err=True)
        sys.exit(1)

    claims = decode_token_claims(token)
    if claims is None:
        click.echo("Could not decode the token payload.", err=True)
        sys.exit(1)

    expires = claims.expires_at_datetime
    click.echo(f"SteamID: {claims.steam_id or 'unknown'}")
    click.echo(f"Expires: {expires.isoformat() if expires else 'unknown'}")
    if claims.is_expired():
        click.echo("✗ Token has expired")


@main.command()
@click.argument("target")
@_auth_option
@click.pass_obj
def resolve(config: Config, target: str, auth: str | None) -> None:
    """Resolve a profile URL or vanity name to a SteamID64."""
    from cs2join.auth import is_valid_steam_id, parse_profile_url

    if is_valid_steam_id(target):
        click.echo(target)
        return

    vanity = target
    ref = parse_profile_url(target)
    if ref is not None:
        if ref.kind == "steamid":
            click.echo(ref.value)
            return
        vanity = ref.value

    store = JsonSettingsStore(config.settings_path)
    client = _make_client(config, _resolve_auth(config, auth, store.load()))
    steam_id = _run(client.resolve_vanity_url(vanity))
    if not steam_id:
        click.echo(f"Could not resolve '{vanity}'.", err=True)
        sys.exit(1)
    click.echo(steam_id)


@main.command()
@click.argument("friend_id")
@_auth_option
@click.pass_obj
def connect(config: Config, friend_id: str, auth: str | None) -> None:
    """Print the connect command for a friend in a joinable match."""
    store = JsonSettingsStore(config.settings_path)
    client = _make_client(config, _resolve_auth(config, auth, store.load()))
    connect_string = _run(client.get_friend_connect_info(friend_id))
    if not connect_string:
        click.echo("Friend is not in a joinable casual/deathmatch game.", err=True)
        sys.exit(1)
    click.echo(connect_string)


async def _join_friend(client: Any, watcher_factory: Callable[[Any], Any], friend_id: str) -> Any:
    async with client:
        return await watcher_factory(client).join(friend_id)


@main.command()
@click.argument("friend_id")
@_auth_option
@click.option("--steam-id", "-s", default=None, help="Your SteamID64 (required with an API key)")
@click.option("--no-launch", is_flag=True, help="Print the steam:// URL instead of opening it")
@click.option(
    "--missing-timeout",
    type=float,
    default=None,
    help="Give up after the friend has left casual/deathmatch this many seconds",
)
@click.pass_obj
def join(
    config: Config,
    friend_id: str,
    auth: str | None,
    steam_id: str | None,
    no_launch: bool,
    missing_timeout: float | None,
) -> None:
    """Wait until a friend's match is joinable, launch it, and confirm the join."""
    from cs2join.join import JoinStatus, JoinWatcher

    store = JsonSettingsStore(config.settings_path)
    saved = store.load()
    client = _make_client(config, _resolve_auth(config, auth, saved))

    steam_id = _resolve_steam_id(client, config, steam_id, saved)
    if not steam_id:
        click.echo("--steam-id is required when using an API key.", err=True)
        sys.exit(1)

    launched: list[str] = []

    def launch(url: str) -> None:
        if not launched or launched[-1] != url:
            click.echo(url)
        launched.append(url)
        if not no_launch:
            click.launch(url)

    def on_status(fid: str, status: JoinStatus) -> None:
        click.echo(f"[{fid}] {status.value}", err=True)

    def make_watcher(c: Any) -> JoinWatcher:
        return JoinWatcher(
            c,
            steam_id,
            launch=launch,
            interval=config.join_interval,
            missing_timeout=config.missing_timeout if missing_timeout is None else missing_timeout,
            on_status=on_status,
        )

    try:
        result = _run(_join_friend(client, make_watcher, friend_id))
    except KeyboardInterrupt:
        click.echo("\nStopped.")
        sys.exit(1)
    if result is not JoinStatus.JOINED:
        click.echo("✗ Join cancelled: friend is no longer in a joinable game.", err=True)
        sys.exit(1)
    click.echo(f"✓ Joined {friend_id}")


@main.command()
@click.argument("steam_id")
@_auth_option
@click.option("--lobby", is_flag=True, help="Require the player to be in the main menu lobby")
@click.pass_obj
def check(config: Config, steam_id: str, auth: str | None, lobby: bool) -> None:
    """Check whether a player is running CS2."""
    store = JsonSettingsStore(config.settings_path)
    client = _make_client(config, _resolve_auth(config, auth, store.load()))
    playing = _run(client.is_player_in_cs2(steam_id, require_lobby=lobby))
    where = "in the CS2 lobby" if lobby else "playing CS2"
    click.echo(f"{steam_id} is {'' if playing else 'not '}{where}")
    if not playing:
        sys.exit(1)


if __name__ == "__main__":
    main()
