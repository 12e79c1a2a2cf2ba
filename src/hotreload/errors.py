"""Errors raised by the watch registry, watcher engine and reload action.

Each carries the offending path so the coordinating layer can report it.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class WatchError(Exception):
    """Base class for every recoverable watch failure."""

    path: str

    def __str__(self) -> str:
        return f"File watcher error for '{self.path}'"


@dataclass
class AlreadyExistsError(WatchError):
    """Raised when adding a path the registry already holds."""

    def __str__(self) -> str:
        return f"File watcher for '{self.path}' already exists"


@dataclass
class InvalidPathError(WatchError):
    """Raised when adding a blank or otherwise unusable path."""

    def __str__(self) -> str:
        return f"Invalid file path: '{self.path}'"


@dataclass
class NotFoundError(WatchError):
    """Raised when the watched file does not exist after symlink resolution."""

    full_path: str = ""

    def __str__(self) -> str:
        return f"File does not exist: {self.full_path or self.path}"


@dataclass
class NotAFileError(WatchError):
    """Raised when the watched path exists but is not a regular file."""

    full_path: str = ""

    def __str__(self) -> str:
        return f"File path must point to a file: {self.full_path or self.path}"


@dataclass
class ReadFailureError(WatchError):
    """Raised when the reload action cannot read the file's content."""

    reason: str = ""

    def __str__(self) -> str:
        if self.reason:
            return f"Failed to read '{self.path}': {self.reason}"
        return f"Failed to read '{self.path}'"


@dataclass
class AccessError(WatchError):
    """Raised when the watched path cannot be inspected (permissions, bad name)."""

    full_path: str = ""
    reason: str = ""

    def __str__(self) -> str:
        target = self.full_path or self.path
        if self.reason:
            return f"Cannot access file {target}: {self.reason}"
        return f"Cannot access file {target}"
