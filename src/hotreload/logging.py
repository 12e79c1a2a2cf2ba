"""Package logging for hotreload.

Everything logs under the "hotreload" logger; modules take a child through
get_logger("engine") and friends. setup_logging() installs at most one
handler:

- a file, from LoggingConfig.file or $HOTRELOAD_LOG
- otherwise stderr, but only when stderr is a terminal (the REPL owns stdout)

Verbosity 0-4 maps to error, warning, info, verbose and trace. TRACE is where
per-poll output goes; VERBOSE sits between DEBUG and INFO.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from hotreload.config.schema import LoggingConfig

TRACE = 5
VERBOSE = 15

logging.addLevelName(TRACE, "TRACE")
logging.addLevelName(VERBOSE, "VERBOSE")

logger = logging.getLogger("hotreload")

LOG_FORMAT = "%(asctime)s %(levelname)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"

_VERBOSITY_LEVELS = (logging.ERROR, logging.WARNING, logging.INFO, VERBOSE, TRACE)

_initialized = False


class _LowercaseLevelFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        record.levelname = record.levelname.lower()
        return super().format(record)


def resolve_level(config: LoggingConfig | None) -> int:
    """Effective level for config. A verbose count wins over a level name."""
    if config is None:
        return logging.INFO
    if config.verbose is not None:
        index = max(0, min(config.verbose, len(_VERBOSITY_LEVELS) - 1))
        return _VERBOSITY_LEVELS[index]
    if config.level:
        name = config.level.upper()
        level = logging.getLevelName("WARNING" if name == "WARN" else name)
        if isinstance(level, int):
            return level
    return logging.INFO


def _install(handler: logging.Handler, level: int) -> None:
    handler.setLevel(level)
    handler.setFormatter(_LowercaseLevelFormatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)


def _add_stderr_handler(level: int) -> None:
    _install(logging.StreamHandler(sys.stderr), level)


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Configure the hotreload logger once; later calls do nothing."""
    global _initialized
    if _initialized:
        return
    _initialized = True

    level = resolve_level(config)
    logger.setLevel(level)

    log_path = (config.file if config else None) or os.environ.get("HOTRELOAD_LOG")
    if not log_path:
        if sys.stderr.isatty():
            _add_stderr_handler(level)
        return

    try:
        handler = logging.FileHandler(os.path.expanduser(log_path), mode="a", encoding="utf-8")
    except OSError as e:
        if sys.stderr.isatty():
            print(f"[hotreload] Failed to open log file {log_path}: {e}", file=sys.stderr)
            _add_stderr_handler(level)
        return
    _install(handler, level)


def reset_logging() -> None:
    """Close and drop installed handlers so setup_logging() can run again."""
    global _initialized
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    _initialized = False


def get_logger(name: str | None = None) -> logging.Logger:
    """The hotreload logger, or its child called name."""
    return logger.getChild(name) if name else logger
