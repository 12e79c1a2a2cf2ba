"""Host capabilities the watch manager depends on.

The manager never reaches for globals: file reads, settings persistence, the
resource cache and user notifications all come through a Host.

LocalHost is the standalone implementation used by the CLI. Its settings blob
lives in a YAML file:
  $BASE/.hotreload/settings.yaml
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import yaml
from rich.console import Console
from rich.markup import escape

from hotreload.config.paths import get_default_settings_path
from hotreload.logging import get_logger

log = get_logger("host")


@runtime_checkable
class Host(Protocol):
    """Capabilities provided by the application that owns the resources."""

    async def read_file(self, path: str) -> bytes:
        """Read a file relative to the base path. Raises OSError on failure."""
        ...

    def load_settings_blob(self) -> dict[str, Any] | None:
        """Return the persisted settings blob (None if nothing was saved)."""
        ...

    def save_settings_blob(self, blob: dict[str, Any]) -> None:
        """Persist the settings blob."""
        ...

    def resolve_base_path(self) -> Path:
        """Absolute directory that watched paths are relative to."""
        ...

    def notify_user(self, message: str) -> None:
        """Best-effort user-visible notification."""
        ...

    def update_resource(self, path: str, content: bytes) -> None:
        """Store freshly read content in the resource cache."""
        ...

    def request_reload(self) -> None:
        """Ask the host to re-apply its cached resources."""
        ...

    def cached_paths(self) -> list[str]:
        """Paths currently held in the resource cache."""
        ...


class LocalHost:
    """Filesystem-backed Host for standalone use."""

    def __init__(
        self,
        base_path: str | Path,
        settings_path: str | Path | None = None,
        console: Console | None = None,
    ) -> None:
        self._base_path = Path(base_path).expanduser().resolve()
        if settings_path is None:
            self._settings_path = get_default_settings_path(self._base_path)
        else:
            self._settings_path = Path(settings_path).expanduser()
        self._console = console or Console(stderr=True)
        self._cache: dict[str, bytes] = {}
        self._reload_callbacks: list[Callable[[], None]] = []

    @property
    def settings_path(self) -> Path:
        return self._settings_path

    def resolve_base_path(self) -> Path:
        return self._base_path

    async def read_file(self, path: str) -> bytes:
        return await asyncio.to_thread((self._base_path / path).read_bytes)

    def load_settings_blob(self) -> dict[str, Any] | None:
        if not self._settings_path.exists():
            return None

        try:
            with open(self._settings_path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            log.warning("Invalid YAML in %s: %s", self._settings_path, e)
            return None
        except OSError as e:
            log.warning("Error reading %s: %s", self._settings_path, e)
            return None

        return data if isinstance(data, dict) else None

    def save_settings_blob(self, blob: dict[str, Any]) -> None:
        """Write the blob atomically through a temp file."""
        self._settings_path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self._settings_path.with_name(self._settings_path.name + ".tmp")

        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                yaml.dump(blob, f, default_flow_style=False, allow_unicode=True, sort_keys=False)
            temp_path.replace(self._settings_path)
            log.debug("Saved settings to %s", self._settings_path)
        except OSError as e:
            if temp_path.exists():
                temp_path.unlink()
            raise RuntimeError(f"Failed to save settings: {e}") from e

    def notify_user(self, message: str) -> None:
        try:
            self._console.print(f"[bold]Hot-Reload[/bold] {escape(message)}", highlight=False)
        except Exception as e:
            log.debug("Notification failed: %s", e)

    def update_resource(self, path: str, content: bytes) -> None:
        self._cache[path] = content

    def get_resource(self, path: str) -> bytes | None:
        return self._cache.get(path)

    def cached_paths(self) -> list[str]:
        return list(self._cache)

    def request_reload(self) -> None:
        for callback in list(self._reload_callbacks):
            try:
                callback()
            except Exception as e:
                log.warning("Reload callback error: %s", e)

    def on_reload(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register a callback for request_reload().

        Returns:
            A function to unregister the callback.
        """
        self._reload_callbacks.append(callback)

        def unregister() -> None:
            if callback in self._reload_callbacks:
                self._reload_callbacks.remove(callback)

        return unregister
