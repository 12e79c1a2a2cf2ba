"""hotreload configuration.

YAML files from the system, user and project levels are deep-merged, with
HOTRELOAD_LOG / HOTRELOAD_LOG_LEVEL applied last:

    from hotreload.config import load_config

    config = load_config(base_path="/path/to/vault")
    config.watch.resolve_symlinks  # SymlinkMode.ONE unless configured
"""

from hotreload.config.loader import get_config, load_config, reset_config
from hotreload.config.paths import (
    get_config_paths,
    get_default_settings_path,
    get_project_config_path,
    get_project_dir,
    get_system_config_path,
    get_user_config_path,
)
from hotreload.config.schema import Config, LoggingConfig, SymlinkMode, WatchConfig

__all__ = [
    "Config",
    "LoggingConfig",
    "WatchConfig",
    "SymlinkMode",
    "load_config",
    "get_config",
    "reset_config",
    "get_config_paths",
    "get_default_settings_path",
    "get_project_config_path",
    "get_project_dir",
    "get_system_config_path",
    "get_user_config_path",
]
