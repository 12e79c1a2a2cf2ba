"""Where hotreload looks for config and keeps per-project state.

  system   /etc/hotreload/config.yaml, or %PROGRAMDATA%\\hotreload\\config.yaml
  user     $XDG_CONFIG_HOME/hotreload/, ~/.config/hotreload/, ~/.hotreload/
           or %APPDATA%\\hotreload\\
  project  $BASE/.hotreload/ (config.yaml, settings.yaml, history)
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

CONFIG_FILENAME = "config.yaml"
SETTINGS_FILENAME = "settings.yaml"
APP_NAME = "hotreload"
SHORT_NAME = ".hotreload"


def _windows_dir(env_var: str) -> Path | None:
    root = os.environ.get(env_var)
    return Path(root) / APP_NAME if root else None


def get_system_config_path() -> Path | None:
    """System-wide config file. May not exist."""
    if sys.platform == "win32":
        folder = _windows_dir("PROGRAMDATA")
        return folder / CONFIG_FILENAME if folder else None
    return Path("/etc") / APP_NAME / CONFIG_FILENAME


def get_user_config_path() -> Path | None:
    """Per-user config file. May not exist."""
    if sys.platform == "win32":
        folder = _windows_dir("APPDATA")
        return folder / CONFIG_FILENAME if folder else None

    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / APP_NAME / CONFIG_FILENAME

    dot_config = Path.home() / ".config"
    if dot_config.exists():
        return dot_config / APP_NAME / CONFIG_FILENAME
    return Path.home() / SHORT_NAME / CONFIG_FILENAME


def get_project_dir(base_path: str | Path) -> Path:
    return Path(base_path) / SHORT_NAME


def get_project_config_path(base_path: str | Path) -> Path:
    return get_project_dir(base_path) / CONFIG_FILENAME


def get_default_settings_path(base_path: str | Path) -> Path:
    """Settings blob location when watch.settings_file is not configured."""
    return get_project_dir(base_path) / SETTINGS_FILENAME


def get_config_paths(base_path: str | Path | None = None) -> list[Path]:
    """Config files to merge, lowest priority first.

    The project file is only included when base_path is given.
    """
    candidates = [get_system_config_path(), get_user_config_path()]
    if base_path:
        candidates.append(get_project_config_path(base_path))
    return [path for path in candidates if path is not None]
