"""Interactive REPL for hotreload."""

from hotreload.interactive.commands import CommandHandler, render_status_table
from hotreload.interactive.repl import InteractiveRepl

__all__ = [
    "InteractiveRepl",
    "CommandHandler",
    "render_status_table",
]
