"""Configuration management for cs2join."""

from __future__ import annotations

import os
from dataclasses import dataclass

from cs2join.constants import STEAM_API_BASE

DEFAULT_SETTINGS_PATH = "~/.cs2join/settings.json"


@dataclass(frozen=True)
class Config:
    """Runtime configuration, populated from environment variables."""

    auth: str | None = None
    steam_id: str | None = None
    api_base: str = STEAM_API_BASE
    http_timeout: float = 30.0
    log_level: str = "INFO"
    refresh_interval: float = 3.0
    join_interval: float = 0.5
    missing_timeout: float = 60.0
    settings_path: str = DEFAULT_SETTINGS_PATH

    @classmethod
    def from_env(cls) -> Config:
        return cls(
            auth=os.getenv("CS2JOIN_AUTH") or None,
            steam_id=os.getenv("CS2JOIN_STEAM_ID") or None,
            api_base=os.getenv("CS2JOIN_API_BASE", STEAM_API_BASE),
            http_timeout=float(os.getenv("CS2JOIN_TIMEOUT", "30")),
            log_level=os.getenv("CS2JOIN_LOG_LEVEL", "INFO"),
            refresh_interval=float(os.getenv("CS2JOIN_REFRESH_INTERVAL", "3")),
            join_interval=float(os.getenv("CS2JOIN_JOIN_INTERVAL", "0.5")),
            missing_timeout=float(os.getenv("CS2JOIN_MISSING_TIMEOUT", "60")),
            settings_path=os.getenv("CS2JOIN_SETTINGS_PATH", DEFAULT_SETTINGS_PATH),
        )
