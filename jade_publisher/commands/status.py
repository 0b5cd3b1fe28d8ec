"""Slash command for runtime status."""

from __future__ import annotations

from collections import Counter
from typing import List

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..logging_utils import describe_log_path
from ..slash_commands import SlashCommand, SlashCommandContext, render_rich


def _handler(context: SlashCommandContext, _: List[str]) -> str:
    runtime = context.runtime
    config = runtime.config
    counts = Counter(status.kind.value for status in runtime.tracker.snapshot().values())

    def _render(console: Console) -> None:
        info = Table.grid(padding=(0, 1))
        info.add_column("Key", style="bold", no_wrap=True)
        info.add_column("Value")
        info.add_row("Vault", str(config.vault_dir))
        info.add_row("Config", config.status)
        info.add_row("State file", str(runtime.store.path))
        if config.log_path is not None:
            info.add_row("Log", describe_log_path(config.log_path, config.vault_dir))
        info.add_row("Endpoint", runtime.state.endpoint or "(not set)")
        info.add_row("Access token", "set" if runtime.state.access_token else "(not set)")
        info.add_row("Active file", runtime.active_path or "(any)")
        pending = ", ".join(f"{n} {kind}" for kind, n in sorted(counts.items())) or "none"
        info.add_row("Pending", pending)
        console.print(Panel(info, title="Jade Publisher", box=box.ROUNDED))

        if config.diagnostics:
            diags = Table(title="Diagnostics", show_header=True)
            diags.add_column("Level")
            diags.add_column("Message")
            for diag in config.diagnostics:
                diags.add_row(diag.level.upper(), diag.message)
            console.print(diags)

    return render_rich(_render)


COMMAND = SlashCommand(
    name="status",
    description="Show vault, settings and pending change summary.",
    handler=_handler,
)
