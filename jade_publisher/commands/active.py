"""Slash command for the active-file gate on modify events."""

from __future__ import annotations

from typing import List

from ..slash_commands import SlashCommand, SlashCommandContext


def _handler(context: SlashCommandContext, args: List[str]) -> str:
    runtime = context.runtime
    if not args:
        current = runtime.active_path
        return f"[active] {current}" if current else "[active] Tracking modifies of every file."
    if args[0] in {"-", "none", "--clear"}:
        runtime.set_active(None)
        return "[active] Cleared; modifies of every file are tracked."
    runtime.set_active(" ".join(args))
    return f"[active] Only modifies of '{runtime.active_path}' are tracked."


COMMAND = SlashCommand(
    name="active",
    description="Show or set the file open for editing; only its modifies are tracked.",
    usage="[path|none]",
    handler=_handler,
)
