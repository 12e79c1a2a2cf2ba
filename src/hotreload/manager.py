"""Coordinates the watch registry, the watcher engine and the host.

Every user action goes through HotReloadManager, which:
1. Mutates the registry (the source of truth)
2. Brings the engine's live set in line with the registry
3. Persists the settings blob through the host

Errors never escape: each WatchError is logged and surfaced to the user
through Host.notify_user, and the registry is left consistent.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from hotreload.config.schema import SymlinkMode
from hotreload.engine import ChangeCallback, WatcherEngine
from hotreload.errors import ReadFailureError, WatchError
from hotreload.host import Host
from hotreload.logging import get_logger
from hotreload.registry import WatchEntry, WatchRegistry
from hotreload.settings import (
    DEFAULT_INTERVAL_MS,
    clamp_interval,
    settings_from_blob,
    settings_to_blob,
)

log = get_logger("manager")


@dataclass
class WatchStatus:
    """A registry entry together with its live state."""

    path: str
    active: bool
    live: bool
    full_path: Path


def _path_of(entry: WatchEntry | str) -> str:
    return entry.path if isinstance(entry, WatchEntry) else entry


class HotReloadManager:
    """Keeps the registry and live watchers in sync and reloads changed files.

    Must be used from within a running event loop: watchers are asyncio tasks.

    Example:
        manager = HotReloadManager(LocalHost("/vault"))
        manager.load()
        manager.add("themes/a.css")
        ...
        manager.unload()
    """

    def __init__(self, host: Host, symlinks: SymlinkMode = SymlinkMode.ONE) -> None:
        self.host = host
        self.registry = WatchRegistry()
        self.interval_ms = DEFAULT_INTERVAL_MS
        self.engine = WatcherEngine(
            base_path=host.resolve_base_path(),
            symlinks=symlinks,
        )
        self._reload_tasks: set[asyncio.Task[bool]] = set()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def load(self) -> list[WatchError]:
        """Restore entries from the settings blob and start active watchers."""
        settings = settings_from_blob(self.host.load_settings_blob())
        self.engine.stop_all()
        self.registry = WatchRegistry(settings.entries)
        self.interval_ms = settings.interval_ms

        failures: list[WatchError] = []
        for entry in self.registry.active_entries():
            log.info("Loading file watcher for %s", entry.path)
            error = self._start(entry)
            if error is not None:
                failures.append(error)
        return failures

    def unload(self) -> None:
        """Stop every live watcher; the registry is left untouched."""
        count = self.engine.stop_all()
        log.debug("Stopped %d file watcher(s)", count)

    async def drain(self) -> None:
        """Wait for reloads that are still in flight."""
        if self._reload_tasks:
            await asyncio.gather(*list(self._reload_tasks), return_exceptions=True)

    # ------------------------------------------------------------------
    # User actions
    # ------------------------------------------------------------------

    def add(self, path: str) -> bool:
        """Register path and start watching it.

        The entry is rolled back if the watcher cannot be started.
        """
        try:
            entry = self.registry.add(path)
        except WatchError as e:
            self._report(e)
            return False

        log.info("Loading file watcher for %s", path)
        if self._start(entry) is not None:
            self.registry.remove(path)
            return False

        self.persist()
        return True

    def remove(self, entry: WatchEntry | str) -> None:
        """Stop and forget an entry. Unknown paths are ignored."""
        path = _path_of(entry)
        self.engine.stop_path(path)
        self.registry.remove(path)
        self.persist()

    def activate(self, entry: WatchEntry | str) -> bool:
        """Enable an entry and start its watcher.

        The flag stays set even if the watcher fails to start; restart_all()
        retries it.
        """
        path = _path_of(entry)
        current = self.registry.get(path)
        if current is None:
            return False

        self.registry.set_active(path, True)
        ok = True
        if not self.engine.is_live(path):
            ok = self._start(current) is None
        self.persist()
        return ok

    def deactivate(self, entry: WatchEntry | str) -> None:
        """Stop an entry's watcher and clear its enabled flag."""
        path = _path_of(entry)
        self.engine.stop_path(path)
        self.registry.set_active(path, False)
        self.persist()

    def restart_all(self) -> list[WatchError]:
        """Rebuild every watcher at the current interval."""
        failures = self.engine.restart_all(
            self.registry.list(), self._callback_for, self.interval_ms
        )
        for error in failures:
            self._report(error)
        self._notify("Restarted all file watchers.")
        return failures

    def set_interval(self, value: Any) -> int:
        """Store a new poll interval. Running watchers keep theirs until restart_all()."""
        self.interval_ms = clamp_interval(value)
        self.persist()
        return self.interval_ms

    def list(self) -> list[WatchStatus]:
        """Registry entries in order, with whether each has a live watcher."""
        return [
            WatchStatus(
                path=entry.path,
                active=entry.active,
                live=self.engine.is_live(entry.path),
                full_path=self.engine.full_path(entry.path),
            )
            for entry in self.registry.list()
        ]

    # ------------------------------------------------------------------
    # Reloading
    # ------------------------------------------------------------------

    async def reload_file(self, path: str) -> bool:
        """Read path through the host, cache it and trigger a host reload."""
        try:
            content = await self.host.read_file(path)
        except Exception as e:
            self._report(ReadFailureError(path=path, reason=str(e)))
            return False

        self.host.update_resource(path, content)
        self.host.request_reload()
        log.info("Reloaded file %s", path)
        return True

    async def reload_all(self) -> int:
        """Reload every resource in the host cache. Returns the number reloaded."""
        reloaded = 0
        for path in self.host.cached_paths():
            if await self.reload_file(path):
                reloaded += 1
        return reloaded

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def persist(self) -> bool:
        """Save the registry and interval through the host."""
        blob = settings_to_blob(self.registry.list(), self.interval_ms)
        try:
            self.host.save_settings_blob(blob)
        except Exception as e:
            log.error("Failed to save settings: %s", e)
            self._notify(f"Error\nFailed to save settings: {e}")
            return False
        return True

    def _callback_for(self, entry: WatchEntry) -> ChangeCallback:
        path = entry.path
        return lambda: self._on_change(path)

    def _on_change(self, path: str) -> None:
        log.debug("Change detected for %s", path)
        task = asyncio.get_running_loop().create_task(self.reload_file(path))
        self._reload_tasks.add(task)
        task.add_done_callback(self._reload_tasks.discard)

    def _start(self, entry: WatchEntry) -> WatchError | None:
        try:
            self.engine.start(entry, self._callback_for(entry), self.interval_ms)
        except WatchError as e:
            self._report(e)
            return e
        return None

    def _report(self, error: WatchError) -> None:
        log.warning("%s", error)
        self._notify(f"Error\n{error}")

    def _notify(self, message: str) -> None:
        try:
            self.host.notify_user(message)
        except Exception as e:
            log.debug("Notification failed: %s", e)
