"""Slash command listing pending changes."""

from __future__ import annotations

from typing import List

from rich.console import Console
from rich.table import Table

from ..slash_commands import SlashCommand, SlashCommandContext, render_rich
from ..sync import Renamed

MAX_ROWS = 50
STATUS_STYLES = {
    "created": "green",
    "modified": "yellow",
    "deleted": "red",
    "renamed": "blue",
}


def _handler(context: SlashCommandContext, args: List[str]) -> str:
    tracker = context.runtime.tracker

    if args and args[0].lower() == "clear":
        dropped = tracker.drain()
        return f"[pending] Dropped {len(dropped)} pending change(s)."

    pending = tracker.snapshot()
    if not pending:
        return "[pending] No changes since last publish."

    def _render(console: Console) -> None:
        table = Table(title=f"Pending Changes ({len(pending)})", show_header=True)
        table.add_column("Path", style="cyan")
        table.add_column("Status")
        table.add_column("From", style="dim")

        for path in sorted(pending)[:MAX_ROWS]:
            status = pending[path]
            kind = status.kind.value
            from_path = status.from_path if isinstance(status, Renamed) else ""
            table.add_row(path, f"[{STATUS_STYLES[kind]}]{kind}[/]", from_path)

        if len(pending) > MAX_ROWS:
            console.print(f"(showing first {MAX_ROWS} of {len(pending)} changes)")
        console.print(table)

    return render_rich(_render)


COMMAND = SlashCommand(
    name="pending",
    description="List pending changes, or drop them all.",
    usage="[clear]",
    handler=_handler,
    saves_state=True,
)
