"""Live set of polling file watchers.

Each enabled watch entry gets one ActiveWatcher: an asyncio task that stats
the resolved file every interval and invokes a callback when the file's
metadata changes. The engine only mirrors the registry; it never decides
which entries should be watched.

Example:
    engine = WatcherEngine(base_path=Path("/vault"))
    watcher = engine.start(WatchEntry("themes/a.css"), on_change, interval_ms=200)
    ...
    engine.stop(watcher)
"""

from __future__ import annotations

import asyncio
import errno
import os
import stat
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path

from hotreload.config.schema import SymlinkMode
from hotreload.errors import AccessError, NotAFileError, NotFoundError, WatchError
from hotreload.logging import TRACE, get_logger
from hotreload.registry import WatchEntry
from hotreload.settings import DEFAULT_INTERVAL_MS

log = get_logger("engine")

ChangeCallback = Callable[[], None]

# stat failures that mean "nothing to watch here"
_MISSING_ERRNOS = frozenset({errno.ENOENT, errno.ENOTDIR, errno.ELOOP})


@dataclass(frozen=True)
class FileStamp:
    """Modification metadata compared between polls."""

    mtime_ns: int
    size: int
    inode: int


def stamp_file(path: Path) -> FileStamp | None:
    """Stat path, returning None if it does not exist.

    A parent that became a file (ENOTDIR) or a symlink loop counts as missing.
    Other OSErrors propagate.
    """
    try:
        st = os.stat(path)
    except OSError as e:
        if e.errno in _MISSING_ERRNOS:
            return None
        raise
    return FileStamp(mtime_ns=st.st_mtime_ns, size=st.st_size, inode=st.st_ino)


def watch_error_for(path: str, full_path: Path, exc: Exception) -> WatchError:
    """Translate a failure to inspect full_path into a WatchError."""
    if isinstance(exc, OSError) and exc.errno in _MISSING_ERRNOS:
        return NotFoundError(path=path, full_path=str(full_path))
    return AccessError(path=path, full_path=str(full_path), reason=str(exc))


def resolve_watch_path(
    base_path: Path,
    path: str,
    symlinks: SymlinkMode = SymlinkMode.ONE,
) -> Path:
    """Join path onto base_path and resolve symbolic links.

    With SymlinkMode.ONE a single level is followed: if the joined path is a
    symlink, its target (relative targets are taken from the link's
    directory) becomes the watched path. SymlinkMode.FULL follows the whole
    chain.
    """
    full = Path(base_path) / path
    if symlinks is SymlinkMode.FULL:
        return full.resolve()

    if full.is_symlink():
        target = Path(os.readlink(full))
        if not target.is_absolute():
            target = full.parent / target
        full = target
    return Path(os.path.abspath(full))


def validate_watch_target(path: str, full_path: Path) -> None:
    """Check full_path is an existing regular file (not followed further).

    Raises:
        NotFoundError: Nothing exists at full_path, or a parent is not a directory.
        NotAFileError: full_path is a directory, a further symlink or a device.
        AccessError: full_path cannot be inspected (permissions, invalid name).
    """
    try:
        st = os.lstat(full_path)
    except (OSError, ValueError) as e:
        raise watch_error_for(path, full_path, e) from None
    if not stat.S_ISREG(st.st_mode):
        raise NotAFileError(path=path, full_path=str(full_path))


class ActiveWatcher:
    """A poller bound to one watch entry.

    The poll loop runs as an asyncio task on the current event loop, so the
    callback always runs on the loop and never overlaps other loop work.
    """

    def __init__(
        self,
        entry: WatchEntry,
        resolved_path: Path,
        callback: ChangeCallback,
        interval_ms: int,
    ) -> None:
        if interval_ms <= 0:
            raise ValueError(f"Poll interval must be positive, got {interval_ms}")
        self.entry = entry
        self.resolved_path = resolved_path
        self.callback = callback
        self.interval_ms = interval_ms

        self._stamp: FileStamp | None = None
        self._running = False
        self._task: asyncio.Task[None] | None = None

    @property
    def path(self) -> str:
        return self.entry.path

    @property
    def is_running(self) -> bool:
        return self._running

    def check(self) -> bool:
        """Stat the file once and report whether it changed since the last check.

        A file that went missing is not a change; it is recorded so that the
        file reappearing later counts as one.
        """
        try:
            current = stamp_file(self.resolved_path)
        except OSError as e:
            log.warning("Error checking %s: %s", self.resolved_path, e)
            return False

        if current == self._stamp:
            return False

        previous = self._stamp
        self._stamp = current
        if current is None:
            log.debug("Watched file %s is missing", self.resolved_path)
            return False
        log.log(TRACE, "Change on %s: %s -> %s", self.resolved_path, previous, current)
        return True

    def _fire(self) -> None:
        if not self._running:
            return
        try:
            self.callback()
        except Exception as e:
            log.error("Error in file change callback for %s: %s", self.path, e)

    async def _poll_loop(self) -> None:
        try:
            while self._running:
                await asyncio.sleep(self.interval_ms / 1000)
                if not self._running:
                    break
                if self.check():
                    self._fire()
        except asyncio.CancelledError:
            log.debug("Poller for %s cancelled", self.resolved_path)

    def enable(self) -> None:
        """Start polling. Must be called from within a running event loop."""
        if self._running:
            return

        loop = asyncio.get_running_loop()
        self._stamp = stamp_file(self.resolved_path)
        self._running = True
        self._task = loop.create_task(self._poll_loop(), name=f"hotreload:{self.path}")
        log.debug("Activated file watcher for %s", self.resolved_path)

    def disable(self) -> None:
        """Stop polling. Safe to call repeatedly and from inside the callback."""
        if not self._running:
            return

        self._running = False
        task, self._task = self._task, None
        if task is not None and not task.done() and task is not _current_task():
            task.cancel()
        log.debug("Deactivated file watcher for %s", self.resolved_path)


def _current_task() -> asyncio.Task[object] | None:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None


class WatcherEngine:
    """Owns the live set: at most one ActiveWatcher per entry path."""

    def __init__(
        self,
        base_path: Path,
        symlinks: SymlinkMode = SymlinkMode.ONE,
        default_interval_ms: int = DEFAULT_INTERVAL_MS,
    ) -> None:
        self._base_path = Path(base_path)
        self._symlinks = symlinks
        self._default_interval_ms = default_interval_ms
        self._live: dict[str, ActiveWatcher] = {}

    @property
    def base_path(self) -> Path:
        return self._base_path

    def __len__(self) -> int:
        return len(self._live)

    def resolve(self, path: str) -> Path:
        """Absolute path a watcher for path would poll.

        Raises whatever symlink resolution raises (OSError, ValueError,
        RuntimeError for loops on older interpreters).
        """
        return resolve_watch_path(self._base_path, path, self._symlinks)

    def full_path(self, path: str) -> Path:
        """Like resolve(), but falls back to the plain join instead of raising."""
        try:
            return self.resolve(path)
        except (OSError, ValueError, RuntimeError):
            return self._base_path / path

    def get(self, path: str) -> ActiveWatcher | None:
        return self._live.get(path)

    def is_live(self, path: str) -> bool:
        return path in self._live

    def live(self) -> list[ActiveWatcher]:
        return list(self._live.values())

    def start(
        self,
        entry: WatchEntry,
        callback: ChangeCallback,
        interval_ms: int | None = None,
    ) -> ActiveWatcher:
        """Validate entry's file and start polling it.

        A watcher already live for the same path is replaced.

        Raises:
            NotFoundError: The resolved file does not exist.
            NotAFileError: The resolved path is not a regular file.
            AccessError: The path cannot be inspected.
        """
        try:
            full_path = self.resolve(entry.path)
        except (OSError, ValueError, RuntimeError) as e:
            raise watch_error_for(entry.path, self._base_path / entry.path, e) from e
        validate_watch_target(entry.path, full_path)

        watcher = ActiveWatcher(
            entry=entry,
            resolved_path=full_path,
            callback=callback,
            interval_ms=interval_ms or self._default_interval_ms,
        )

        existing = self._live.pop(entry.path, None)
        if existing is not None:
            existing.disable()

        try:
            watcher.enable()
        except OSError as e:
            raise watch_error_for(entry.path, full_path, e) from e
        self._live[entry.path] = watcher
        log.info("Activated file watcher for %s (interval: %dms)", full_path, watcher.interval_ms)
        return watcher

    def stop(self, watcher: ActiveWatcher) -> None:
        """Stop watcher and drop it from the live set. Idempotent."""
        watcher.disable()
        if self._live.get(watcher.path) is watcher:
            del self._live[watcher.path]
            log.info("Deactivated file watcher for %s", watcher.resolved_path)

    def stop_path(self, path: str) -> bool:
        """Stop the live watcher for path, if any."""
        watcher = self._live.get(path)
        if watcher is None:
            return False
        self.stop(watcher)
        return True

    def stop_all(self) -> int:
        """Stop every live watcher and clear the live set."""
        count = len(self._live)
        for watcher in list(self._live.values()):
            watcher.disable()
        self._live.clear()
        return count

    def restart_all(
        self,
        entries: Iterable[WatchEntry],
        callback_for: Callable[[WatchEntry], ChangeCallback],
        interval_ms: int | None = None,
    ) -> list[WatchError]:
        """Rebuild the live set from entries.

        Every watcher is stopped first, then a watcher is started for each
        active entry. Failures are collected and do not abort the batch.
        """
        log.info("Restarting all file watchers")
        self.stop_all()

        failures: list[WatchError] = []
        for entry in entries:
            if not entry.active:
                continue
            try:
                self.start(entry, callback_for(entry), interval_ms)
            except WatchError as e:
                log.warning("Could not restart watcher for %s: %s", entry.path, e)
                failures.append(e)
        return failures
