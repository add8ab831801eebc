"""
Persisted key-value state.

Two stores are used by netdock:

- global state (``~/.local/share/netdock/global-state.json``): debugger
  acquisition timestamps shared by every workspace
- workspace state (``<workspace>/.netdock/state.json``): image build cache
  and the containers started for debugging
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any, Protocol, TypeVar, runtime_checkable

logger = logging.getLogger(__name__)

T = TypeVar("T")


@runtime_checkable
class Memento(Protocol):
    """Protocol for a persisted key-value store."""

    def get(self, key: str, default: T | None = None) -> Any: ...

    async def update(self, key: str, value: Any) -> None: ...


def get_xdg_data_home() -> Path:
    """
    Get XDG data home directory.

    Returns:
        Path to data directory (defaults to ~/.local/share)
    """
    if xdg_home := os.environ.get("XDG_DATA_HOME"):
        return Path(xdg_home)
    return Path.home() / ".local" / "share"


def get_global_state_path() -> Path:
    """Default location of the global state file."""
    return get_xdg_data_home() / "netdock" / "global-state.json"


def get_workspace_state_path(workspace_folder: Path) -> Path:
    """Location of the workspace state file inside a workspace folder."""
    return workspace_folder / ".netdock" / "state.json"


class JsonFileMemento:
    """
    Memento persisted as a single JSON object on disk.

    The file is read once, lazily. Every update rewrites the whole file; a
    value of None removes the key.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._data: dict[str, Any] | None = None

    def _load(self) -> dict[str, Any]:
        if self._data is None:
            self._data = {}
            if self.path.exists():
                try:
                    with self.path.open() as f:
                        data = json.load(f)
                    if isinstance(data, dict):
                        self._data = data
                except (json.JSONDecodeError, OSError) as e:
                    # Corrupted state is discarded, it only holds caches
                    logger.warning(f"Ignoring unreadable state file {self.path}: {e}")
        return self._data

    def get(self, key: str, default: T | None = None) -> Any:
        return self._load().get(key, default)

    async def update(self, key: str, value: Any) -> None:
        data = self._load()
        if value is None:
            data.pop(key, None)
        else:
            data[key] = value
        await asyncio.to_thread(self._write, dict(data))

    def _write(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w") as f:
            json.dump(data, f, indent=2, default=str)
