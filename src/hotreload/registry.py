"""Persisted list of watch entries.

The registry is plain data: it never touches the filesystem. Whether a path
is watchable is decided when the engine starts a watcher for it.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from hotreload.errors import AlreadyExistsError, InvalidPathError
from hotreload.logging import get_logger

log = get_logger("registry")


@dataclass
class WatchEntry:
    """A watched file path (relative to the base directory) and its enabled flag."""

    path: str
    active: bool = True


class WatchRegistry:
    """Ordered collection of WatchEntry objects keyed by exact path.

    Insertion order is preserved and no two entries share a path.
    """

    def __init__(self, entries: Iterable[WatchEntry] | None = None) -> None:
        self._entries: list[WatchEntry] = []
        for entry in entries or ():
            if self.get(entry.path) is not None:
                log.warning("Dropping duplicate watch entry for %s", entry.path)
                continue
            self._entries.append(entry)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[WatchEntry]:
        return iter(list(self._entries))

    def __contains__(self, path: object) -> bool:
        return any(entry.path == path for entry in self._entries)

    def get(self, path: str) -> WatchEntry | None:
        """Return the entry for path, or None."""
        for entry in self._entries:
            if entry.path == path:
                return entry
        return None

    def add(self, path: str) -> WatchEntry:
        """Append a new active entry for path.

        Raises:
            InvalidPathError: If path is blank.
            AlreadyExistsError: If an entry with the same path exists.
        """
        if not path or not path.strip():
            raise InvalidPathError(path=path)
        if path in self:
            raise AlreadyExistsError(path=path)

        entry = WatchEntry(path=path, active=True)
        self._entries.append(entry)
        log.debug("Added watch entry for %s", path)
        return entry

    def remove(self, path: str) -> None:
        """Remove the entry for path. Missing paths are ignored."""
        self._entries = [entry for entry in self._entries if entry.path != path]

    def set_active(self, path: str, active: bool) -> None:
        """Set the enabled flag of the entry for path, if present."""
        entry = self.get(path)
        if entry is not None:
            entry.active = active

    def list(self) -> list[WatchEntry]:
        """Entries in insertion order."""
        return list(self._entries)

    def active_entries(self) -> list[WatchEntry]:
        """Entries that should currently have a live watcher."""
        return [entry for entry in self._entries if entry.active]
