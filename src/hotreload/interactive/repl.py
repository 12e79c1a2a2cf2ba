"""Interactive prompt for `hotreload watch`.

The prompt is awaited on the event loop with prompt_async, so watcher tasks
keep polling while the user types. Output printed meanwhile (notifications,
reload messages) goes through patch_stdout and lands above the prompt line.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from prompt_toolkit import PromptSession
from prompt_toolkit.auto_suggest import AutoSuggestFromHistory
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.history import FileHistory
from prompt_toolkit.patch_stdout import patch_stdout
from rich.console import Console

from hotreload import __version__
from hotreload.interactive.commands import COMMANDS, CommandHandler

if TYPE_CHECKING:
    from pathlib import Path

    from hotreload.manager import HotReloadManager

console = Console()


class InteractiveRepl:
    """Reads slash commands until /quit, Ctrl-D or stop()."""

    def __init__(
        self,
        manager: HotReloadManager,
        history_file: Path | None = None,
    ) -> None:
        self.manager = manager
        self.commands = CommandHandler(manager, console)
        self._running = False

        self.session: PromptSession[str] = PromptSession(
            history=FileHistory(str(history_file)) if history_file else None,
            auto_suggest=AutoSuggestFromHistory(),
            completer=WordCompleter([usage.split()[0] for usage, _ in COMMANDS], sentence=True),
        )

    def _prompt_text(self) -> str:
        return f"hotreload [{len(self.manager.engine)} live]> "

    async def run(self) -> None:
        self._running = True

        console.print(
            f"[bold]Hot-Reload[/bold] v{__version__} - watching {self.manager.engine.base_path}"
        )
        console.print(
            f"{len(self.manager.engine)} of {len(self.manager.registry)} file watcher(s) live. "
            "Type [bold]/help[/bold] for commands, [bold]/quit[/bold] to exit.\n"
        )

        with patch_stdout():
            while self._running:
                try:
                    line = (await self.session.prompt_async(self._prompt_text())).strip()
                except KeyboardInterrupt:
                    continue
                except EOFError:
                    break

                if not line:
                    continue
                if not line.startswith("/"):
                    console.print("[dim]Commands start with '/'. Type /help for the list.[/dim]")
                    continue

                await self.commands.handle(line)
                if line.split()[0].lower() == "/quit":
                    break

        self._running = False

    def stop(self) -> None:
        self._running = False
