"""Configuration schema dataclasses for hotreload.

All fields are optional to support partial configs that merge together.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class SymlinkMode(Enum):
    """How far watched symlinks are followed when a watcher starts."""

    ONE = "one"  # Resolve a single level (default)
    FULL = "full"  # Resolve the whole chain


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str | None = None  # DEBUG, INFO, WARNING, ERROR
    verbose: int | None = None  # 0-4, overrides level
    file: str | None = None  # Log file path


@dataclass
class WatchConfig:
    """File watching configuration.

    Example config.yaml:
        watch:
          settings_file: ~/.hotreload/settings.yaml
          resolve_symlinks: one
    """

    settings_file: str | None = None  # Default: $base/.hotreload/settings.yaml
    resolve_symlinks: SymlinkMode = SymlinkMode.ONE


@dataclass
class Config:
    """Root configuration object."""

    logging: LoggingConfig = field(default_factory=LoggingConfig)
    watch: WatchConfig = field(default_factory=WatchConfig)

    # Unknown top-level sections
    extra: dict[str, Any] = field(default_factory=dict)
