"""Slash command that feeds file events into the change tracker."""

from __future__ import annotations

from typing import List

from ..sync import EventKind, FileEvent, encode_status
from ..slash_commands import SlashCommand, SlashCommandContext

USAGE = "[record] Usage: /record <create|modify|delete> <path> | /record rename <new> <old>"


def _handler(context: SlashCommandContext, args: List[str]) -> str:
    if len(args) < 2:
        return USAGE

    try:
        kind = EventKind(args[0].lower())
    except ValueError:
        return f"[record] Unknown event '{args[0]}'.\n{USAGE}"

    if kind is EventKind.RENAME:
        if len(args) != 3:
            return USAGE
        event = FileEvent(kind, args[1], old_path=args[2])
    else:
        if len(args) != 2:
            return USAGE
        event = FileEvent(kind, args[1])

    tracker = context.runtime.tracker
    context.runtime.handle_event(event)
    status = tracker.status(event.path)
    shown = encode_status(status) if status is not None else "(not pending)"
    return f"[record] {event.path}: {shown} ({len(tracker)} pending)"


COMMAND = SlashCommand(
    name="record",
    description="Record a file event as the host watcher would.",
    usage="<create|modify|delete> <path> | rename <new> <old>",
    handler=_handler,
    saves_state=True,
)
