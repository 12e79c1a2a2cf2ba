"""Command-line interface for hotreload."""

from __future__ import annotations

import argparse
import asyncio
from collections.abc import Sequence
from pathlib import Path

from rich.console import Console

from hotreload import __version__
from hotreload.config import LoggingConfig, load_config
from hotreload.config.paths import get_project_dir
from hotreload.host import LocalHost
from hotreload.logging import get_logger, setup_logging
from hotreload.manager import HotReloadManager

log = get_logger("cli")

console = Console()


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="hotreload",
        description="Watch files by polling and reload them when they change",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=None,
        help="Increase verbosity (can be repeated)",
    )
    parser.add_argument(
        "--base",
        type=Path,
        default=Path.cwd(),
        help="Directory watched paths are relative to (default: current directory)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Extra config file layered over the discovered ones",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command")

    subparsers.add_parser(
        "watch",
        help="Start all active watchers and open the interactive prompt",
    )

    add_parser = subparsers.add_parser("add", help="Add a file watcher")
    add_parser.add_argument("path", help="File path relative to the base directory")

    remove_parser = subparsers.add_parser("remove", help="Remove a file watcher")
    remove_parser.add_argument("path", help="Watched file path")

    enable_parser = subparsers.add_parser("enable", help="Activate a file watcher")
    enable_parser.add_argument("path", help="Watched file path")

    disable_parser = subparsers.add_parser("disable", help="Deactivate a file watcher")
    disable_parser.add_argument("path", help="Watched file path")

    subparsers.add_parser("list", help="List file watchers")

    interval_parser = subparsers.add_parser(
        "interval",
        help="Set the poll interval in milliseconds (100-10000)",
    )
    interval_parser.add_argument("ms", help="Interval in milliseconds")

    return parser


def build_manager(base: Path, config_file: Path | None = None, verbose: int | None = None) -> HotReloadManager:
    """Load config, set up logging and create a manager over a LocalHost."""
    config = load_config(base_path=base, config_file=config_file, reload=True)
    if verbose is not None:
        config.logging = LoggingConfig(
            level=config.logging.level,
            verbose=min(4, 2 + verbose),
            file=config.logging.file,
        )
    setup_logging(config.logging)

    host = LocalHost(base_path=base, settings_path=config.watch.settings_file)
    return HotReloadManager(host, symlinks=config.watch.resolve_symlinks)


async def run_watch(manager: HotReloadManager) -> int:
    """Start every active watcher and run the REPL until the user quits."""
    from hotreload.interactive.repl import InteractiveRepl

    manager.load()
    project_dir = get_project_dir(manager.engine.base_path)
    project_dir.mkdir(parents=True, exist_ok=True)
    repl = InteractiveRepl(manager, history_file=project_dir / "history")
    try:
        await repl.run()
    finally:
        manager.unload()
        await manager.drain()
    return 0


async def run_command(manager: HotReloadManager, parsed: argparse.Namespace) -> int:
    """Run a one-shot command against the persisted settings."""
    from hotreload.interactive.commands import render_status_table

    manager.load()
    try:
        if parsed.command == "add":
            return 0 if manager.add(parsed.path) else 1
        if parsed.command == "remove":
            manager.remove(parsed.path)
            return 0
        if parsed.command == "enable":
            if parsed.path not in manager.registry:
                console.print(f"No file watcher for {parsed.path}", markup=False)
                return 1
            return 0 if manager.activate(parsed.path) else 1
        if parsed.command == "disable":
            if parsed.path not in manager.registry:
                console.print(f"No file watcher for {parsed.path}", markup=False)
                return 1
            manager.deactivate(parsed.path)
            return 0
        if parsed.command == "interval":
            interval = manager.set_interval(parsed.ms)
            console.print(f"Interval set to {interval}ms")
            return 0
        if parsed.command == "list":
            statuses = manager.list()
            if statuses:
                console.print(render_status_table(statuses, manager.interval_ms))
            else:
                console.print("[dim]No file watchers[/dim]")
            return 0
        return 1
    finally:
        manager.unload()


def run_cli(args: Sequence[str]) -> int:
    """Run the CLI with the given arguments."""
    parser = create_parser()
    parsed = parser.parse_args(args)

    if parsed.command is None:
        parser.print_help()
        return 1

    manager = build_manager(parsed.base, parsed.config, parsed.verbose)

    if parsed.command == "watch":
        return asyncio.run(run_watch(manager))
    return asyncio.run(run_command(manager, parsed))
