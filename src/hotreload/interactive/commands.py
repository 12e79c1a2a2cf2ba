"""Slash command handlers for interactive mode."""

from __future__ import annotations

import shlex
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from hotreload.settings import DEFAULT_INTERVAL_MS, MAX_INTERVAL_MS, MIN_INTERVAL_MS

if TYPE_CHECKING:
    from collections.abc import Sequence

    from hotreload.manager import HotReloadManager, WatchStatus

COMMANDS = [
    ("/help", "Show this help message"),
    ("/list", "List file watchers"),
    ("/add <file>", "Watch a file (relative to the base path)"),
    ("/remove <file>", "Stop watching a file and forget it"),
    ("/enable <file>", "Re-activate a file watcher"),
    ("/disable <file>", "Deactivate a file watcher"),
    ("/interval [ms]", "Show or set the poll interval"),
    ("/restart", "Restart all file watchers"),
    ("/reload [file]", "Reload one file, or every cached file"),
    ("/quit", "Exit"),
]


def render_status_table(statuses: Sequence[WatchStatus], interval_ms: int) -> Table:
    """Build the file watcher table shown by /list and `hotreload list`."""
    table = Table(title=f"File Watchers (interval: {interval_ms}ms)")
    table.add_column("File", style="bold")
    table.add_column("Active")
    table.add_column("Live")
    table.add_column("Full Path", style="dim")

    for status in statuses:
        table.add_row(
            escape(status.path),
            "[green]yes[/green]" if status.active else "[dim]no[/dim]",
            "[green]yes[/green]" if status.live else "[red]no[/red]" if status.active else "-",
            escape(str(status.full_path)),
        )

    return table


class CommandHandler:
    """Handles slash commands in interactive mode."""

    def __init__(self, manager: HotReloadManager, console: Console | None = None) -> None:
        self.manager = manager
        self.console = console or Console()

    async def handle(self, line: str) -> None:
        """Handle a slash command."""
        try:
            parts = shlex.split(line)
        except ValueError as e:
            self.console.print(f"[red]Could not parse command: {e}[/red]")
            return
        if not parts:
            return

        cmd = parts[0].lower()
        args = parts[1:]

        handlers = {
            "/help": self._cmd_help,
            "/list": self._cmd_list,
            "/add": self._cmd_add,
            "/remove": self._cmd_remove,
            "/enable": self._cmd_enable,
            "/disable": self._cmd_disable,
            "/interval": self._cmd_interval,
            "/restart": self._cmd_restart,
            "/reload": self._cmd_reload,
            "/quit": self._cmd_quit,
        }

        handler = handlers.get(cmd)
        if handler:
            await handler(args)
        else:
            self.console.print(f"[red]Unknown command: {escape(cmd)}[/red]")
            self.console.print("Type [bold]/help[/bold] for available commands.")

    async def _cmd_help(self, args: list[str]) -> None:
        """Show available commands."""
        table = Table(title="Available Commands")
        table.add_column("Command", style="bold")
        table.add_column("Description")

        for cmd, desc in COMMANDS:
            table.add_row(escape(cmd), desc)

        self.console.print(table)

    async def _cmd_list(self, args: list[str]) -> None:
        """List file watchers."""
        statuses = self.manager.list()
        if not statuses:
            self.console.print("[dim]No file watchers[/dim]")
            return
        self.console.print(render_status_table(statuses, self.manager.interval_ms))

    async def _cmd_add(self, args: list[str]) -> None:
        """Add a file watcher."""
        if not args:
            self.console.print("[red]Usage: /add <file>[/red]")
            return

        path = " ".join(args)
        if self.manager.add(path):
            self.console.print(f"[green]Watching {escape(path)}[/green]")

    async def _cmd_remove(self, args: list[str]) -> None:
        """Remove a file watcher."""
        if not args:
            self.console.print("[red]Usage: /remove <file>[/red]")
            return

        path = " ".join(args)
        self.manager.remove(path)
        self.console.print(f"[dim]Removed {escape(path)}[/dim]")

    async def _cmd_enable(self, args: list[str]) -> None:
        """Activate a file watcher."""
        if not args:
            self.console.print("[red]Usage: /enable <file>[/red]")
            return

        path = " ".join(args)
        if path not in self.manager.registry:
            self.console.print(f"[red]No file watcher for {escape(path)}[/red]")
            return
        if self.manager.activate(path):
            self.console.print(f"[green]Activated {escape(path)}[/green]")

    async def _cmd_disable(self, args: list[str]) -> None:
        """Deactivate a file watcher."""
        if not args:
            self.console.print("[red]Usage: /disable <file>[/red]")
            return

        path = " ".join(args)
        if path not in self.manager.registry:
            self.console.print(f"[red]No file watcher for {escape(path)}[/red]")
            return
        self.manager.deactivate(path)
        self.console.print(f"[dim]Deactivated {escape(path)}[/dim]")

    async def _cmd_interval(self, args: list[str]) -> None:
        """Show or set the poll interval."""
        if not args:
            self.console.print(
                f"Interval: {self.manager.interval_ms}ms "
                f"(default {DEFAULT_INTERVAL_MS}, min {MIN_INTERVAL_MS}, max {MAX_INTERVAL_MS})"
            )
            return

        interval = self.manager.set_interval(args[0])
        self.console.print(f"[green]Interval set to {interval}ms[/green]")
        self.console.print("[yellow]Run /restart for running watchers to pick it up.[/yellow]")

    async def _cmd_restart(self, args: list[str]) -> None:
        """Restart all file watchers."""
        failures = self.manager.restart_all()
        live = len(self.manager.engine)
        if failures:
            self.console.print(f"[yellow]{live} watcher(s) running, {len(failures)} failed[/yellow]")
        else:
            self.console.print(f"[green]{live} watcher(s) running[/green]")

    async def _cmd_reload(self, args: list[str]) -> None:
        """Reload one file or every cached file."""
        if args:
            path = " ".join(args)
            if await self.manager.reload_file(path):
                self.console.print(f"[green]Reloaded {escape(path)}[/green]")
            return

        count = await self.manager.reload_all()
        self.console.print(f"[green]Reloaded {count} file(s)[/green]")

    async def _cmd_quit(self, args: list[str]) -> None:
        """Exit."""
        self.console.print("[dim]Exiting...[/dim]")
