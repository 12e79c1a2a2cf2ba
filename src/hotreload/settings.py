"""Watcher settings and their persisted blob layout.

The host stores an opaque dict:

    {"fileWatchers": [{"file": "themes/a.css", "active": true}, ...],
     "fileWatcherInterval": 200}

Loading merges the blob over the defaults; missing keys fall back, unknown
keys are ignored and malformed entries are skipped.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any

from hotreload.config.merge import deep_merge
from hotreload.logging import get_logger
from hotreload.registry import WatchEntry

log = get_logger("settings")

DEFAULT_INTERVAL_MS = 200
MIN_INTERVAL_MS = 100
MAX_INTERVAL_MS = 10000

WATCHERS_KEY = "fileWatchers"
INTERVAL_KEY = "fileWatcherInterval"


@dataclass
class WatcherSettings:
    """In-memory form of the settings blob."""

    entries: list[WatchEntry] = field(default_factory=list)
    interval_ms: int = DEFAULT_INTERVAL_MS


def default_blob() -> dict[str, Any]:
    return {WATCHERS_KEY: [], INTERVAL_KEY: DEFAULT_INTERVAL_MS}


def clamp_interval(value: Any) -> int:
    """Coerce user input to a poll interval in milliseconds.

    Numbers (and numeric strings) are clamped to [100, 10000]. Anything
    non-numeric falls back to the default.
    """
    if isinstance(value, bool):
        return DEFAULT_INTERVAL_MS
    if isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError:
            return DEFAULT_INTERVAL_MS
    if isinstance(value, float):
        if not math.isfinite(value):
            return DEFAULT_INTERVAL_MS
        value = int(value)
    if not isinstance(value, int):
        return DEFAULT_INTERVAL_MS
    return max(MIN_INTERVAL_MS, min(MAX_INTERVAL_MS, value))


def _entry_from_blob(item: Any) -> WatchEntry | None:
    if not isinstance(item, dict):
        return None
    path = item.get("file")
    if not isinstance(path, str) or not path:
        return None
    active = item.get("active", True)
    if not isinstance(active, bool):
        log.warning("Watch entry %s has non-boolean active=%r, treating it as enabled", path, active)
        active = True
    return WatchEntry(path=path, active=active)


def settings_from_blob(blob: dict[str, Any] | None) -> WatcherSettings:
    """Build WatcherSettings from a persisted blob merged over the defaults."""
    data = deep_merge(default_blob(), blob if isinstance(blob, dict) else {})

    raw_entries = data.get(WATCHERS_KEY)
    if not isinstance(raw_entries, list):
        log.warning("Ignoring malformed %s value: %r", WATCHERS_KEY, raw_entries)
        raw_entries = []

    entries: list[WatchEntry] = []
    seen: set[str] = set()
    for item in raw_entries:
        entry = _entry_from_blob(item)
        if entry is None:
            log.warning("Skipping malformed watch entry: %r", item)
            continue
        if entry.path in seen:
            log.warning("Skipping duplicate watch entry: %s", entry.path)
            continue
        seen.add(entry.path)
        entries.append(entry)

    return WatcherSettings(entries=entries, interval_ms=clamp_interval(data.get(INTERVAL_KEY)))


def settings_to_blob(entries: list[WatchEntry], interval_ms: int) -> dict[str, Any]:
    """Serialize entries and interval into the persisted blob layout."""
    return {
        WATCHERS_KEY: [{"file": entry.path, "active": entry.active} for entry in entries],
        INTERVAL_KEY: interval_ms,
    }
