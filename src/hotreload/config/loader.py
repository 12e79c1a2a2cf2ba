"""Loading the layered hotreload config.

Layers, lowest priority first: system file, user file, project file
($BASE/.hotreload/config.yaml), an explicit --config file, then environment
variables. The merged dict is converted once into a Config and cached until
reset_config() or load_config(reload=True).
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from hotreload.config.merge import merge_configs
from hotreload.config.paths import get_config_paths
from hotreload.config.schema import Config, LoggingConfig, SymlinkMode, WatchConfig

# Logging may not be set up yet when config is first read
_log = logging.getLogger("hotreload.config")

_ENV_LOGGING_KEYS = {
    "HOTRELOAD_LOG": "file",
    "HOTRELOAD_LOG_LEVEL": "level",
}

_cached_config: Config | None = None


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Parse a YAML mapping from path.

    A missing, unreadable or malformed file, or one whose top level is not a
    mapping, yields {} so one bad layer never blocks the others.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError as e:
        _log.warning("Cannot read config %s: %s", path, e)
        return {}

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        _log.warning("Invalid YAML in %s: %s", path, e)
        return {}

    if data is not None and not isinstance(data, dict):
        _log.warning("Ignoring %s: top level is not a mapping", path)
    return data if isinstance(data, dict) else {}


def env_overrides() -> dict[str, Any]:
    """Config layer built from HOTRELOAD_* environment variables."""
    logging_section = {
        key: os.environ[var] for var, key in _ENV_LOGGING_KEYS.items() if os.environ.get(var)
    }
    return {"logging": logging_section} if logging_section else {}


def _parse_symlink_mode(value: Any) -> SymlinkMode:
    try:
        return SymlinkMode(str(value).lower())
    except ValueError:
        _log.warning("Unknown resolve_symlinks value %r, using 'one'", value)
        return SymlinkMode.ONE


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name)
    return section if isinstance(section, dict) else {}


def dict_to_config(data: dict[str, Any]) -> Config:
    """Build a typed Config from a merged dict; unknown sections go to extra."""
    log_data = _section(data, "logging")
    verbose = log_data.get("verbose")
    watch_data = _section(data, "watch")

    return Config(
        logging=LoggingConfig(
            level=log_data.get("level"),
            verbose=verbose if isinstance(verbose, int) and not isinstance(verbose, bool) else None,
            file=log_data.get("file"),
        ),
        watch=WatchConfig(
            settings_file=watch_data.get("settings_file"),
            resolve_symlinks=_parse_symlink_mode(watch_data.get("resolve_symlinks", "one")),
        ),
        extra={k: v for k, v in data.items() if k not in ("logging", "watch")},
    )


def load_config(
    base_path: str | Path | None = None,
    config_file: Path | None = None,
    reload: bool = False,
) -> Config:
    """Merge every config layer into a Config.

    Args:
        base_path: Project directory; enables the project layer.
        config_file: Extra file layered above the project file.
        reload: Ignore the cached Config.
    """
    global _cached_config

    if _cached_config is not None and not reload:
        return _cached_config

    paths = get_config_paths(base_path)
    if config_file is not None:
        paths.append(config_file)

    layers = []
    for path in paths:
        layer = load_yaml_file(path)
        if layer:
            _log.debug("Loaded config from %s", path)
            layers.append(layer)
    layers.append(env_overrides())

    _cached_config = dict_to_config(merge_configs(*layers))
    return _cached_config


def get_config() -> Config:
    """The cached Config, loading it without a project layer if needed."""
    return _cached_config if _cached_config is not None else load_config()


def reset_config() -> None:
    global _cached_config
    _cached_config = None
