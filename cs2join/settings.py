"""Settings persistence: last-used credential, SteamID and friend ids.

The core treats the stored document as opaque; only the CLI reads keys.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class SettingsStore(Protocol):
    def load(self) -> dict[str, Any]: ...

    def save(self, data: dict[str, Any]) -> None: ...


def _expand_path(raw: str | Path) -> Path:
    p = Path(raw)
    if str(raw).startswith("~"):
        p = p.expanduser()
    return p


class JsonSettingsStore:
    """Stores settings as one JSON object on disk."""

    def __init__(self, path: str | Path) -> None:
        self.path = _expand_path(path)

    def load(self) -> dict[str, Any]:
        """Read the settings file; missing or unreadable files load as ``{}``."""
        if not self.path.is_file():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            logger.warning("Ignoring unreadable settings file %s", self.path, exc_info=True)
            return {}
        return data if isinstance(data, dict) else {}

    def save(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")

    def update(self, **values: Any) -> dict[str, Any]:
        """Merge *values* into the stored settings and save them."""
        data = {**self.load(), **values}
        self.save(data)
        return data
