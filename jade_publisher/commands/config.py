"""Slash command for persisted publisher settings."""

from __future__ import annotations

from typing import List

from rich.console import Console
from rich.table import Table

from ..slash_commands import SlashCommand, SlashCommandContext, render_rich

USAGE = "[config] Usage: /config [endpoint <url> | token <access-token>]"


def _mask(token: str) -> str:
    if not token:
        return "(not set)"
    if len(token) <= 4:
        return "*" * len(token)
    return "*" * (len(token) - 4) + token[-4:]


def _handler(context: SlashCommandContext, args: List[str]) -> str:
    runtime = context.runtime

    if not args:
        settings = runtime.settings()

        def _render(console: Console) -> None:
            table = Table(title="Publisher Settings", show_header=False)
            table.add_column("Setting", style="bold")
            table.add_column("Value")
            table.add_row("Endpoint", settings.endpoint or "(not set)")
            table.add_row("Base URL", settings.base_url if settings.endpoint else "-")
            table.add_row("Access token", _mask(settings.access_token))
            table.add_row("Token header", settings.token_header)
            table.add_row("Health timeout", f"{settings.health_timeout:g}s")
            table.add_row(
                "Cycle timeout",
                f"{settings.cycle_timeout:g}s" if settings.cycle_timeout else "(none)",
            )
            table.add_row("Retry attempts", str(settings.retry_attempts))
            table.add_row("Failure policy", settings.failure_policy)
            console.print(table)

        return render_rich(_render)

    if len(args) != 2:
        return USAGE

    key, value = args[0].lower(), args[1]
    try:
        if key == "endpoint":
            runtime.set_endpoint(value)
            return f"[config] Endpoint set to {runtime.state.endpoint}"
        if key == "token":
            runtime.set_access_token(value)
            return "[config] Access token updated."
    except RuntimeError as e:
        return f"[config] {e}"
    return USAGE


COMMAND = SlashCommand(
    name="config",
    description="Show settings, or change the endpoint or access token.",
    usage="[endpoint <url> | token <access-token>]",
    handler=_handler,
)
