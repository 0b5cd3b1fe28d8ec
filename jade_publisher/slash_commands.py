"""Slash command registry, dispatch and rich rendering helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from io import StringIO
import shutil
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Sequence

from rich.console import Console
from rich.table import Table

if TYPE_CHECKING:
    from .runtime import PublisherRuntime

SlashCommandHandler = Callable[["SlashCommandContext", List[str]], str]
Renderer = Callable[[Console], None]


@dataclass
class SlashCommandContext:
    """What a handler gets to work with."""

    runtime: "PublisherRuntime"
    router: "CommandRouter"
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class SlashCommand:
    """A named handler.

    ``requires_ready`` refuses to run while the configuration has errors;
    ``saves_state`` writes the state file after the handler returns.
    """

    name: str
    description: str
    handler: SlashCommandHandler
    usage: str = ""
    requires_ready: bool = False
    saves_state: bool = False

    @property
    def invocation(self) -> str:
        return f"/{self.name} {self.usage}".rstrip()


class CommandRouter:
    """Looks commands up by name and runs them against one runtime."""

    def __init__(
        self,
        runtime: "PublisherRuntime",
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.runtime = runtime
        self.metadata = metadata or {}
        self._registry: Dict[str, SlashCommand] = {}

    def register(self, command: SlashCommand) -> None:
        self._registry[command.name.lower()] = command

    def get(self, command_name: str) -> Optional[SlashCommand]:
        return self._registry.get(command_name.lower())

    @property
    def command_names(self) -> Sequence[str]:
        return sorted(self._registry)

    def commands(self) -> Sequence[SlashCommand]:
        return [self._registry[name] for name in self.command_names]

    def handle(self, command_name: str, args: List[str]) -> str:
        command = self.get(command_name)
        if command is None:
            return self._unknown(command_name)

        status = self.runtime.config.status
        if command.requires_ready and status != "ready":
            return (
                f"[router] '/{command.name}' needs a ready configuration "
                f"(current status: {status}). See /status for diagnostics."
            )

        output = command.handler(
            SlashCommandContext(runtime=self.runtime, router=self, metadata=self.metadata),
            args,
        )
        if command.saves_state:
            self.runtime.save()
        return output

    def _unknown(self, command_name: str) -> str:
        return f"[router] Unknown command '/{command_name}'. Use /help for a list."


def render_help_table(commands: Sequence[SlashCommand]) -> str:
    """Table of every command with its usage line."""

    def _render(console: Console) -> None:
        table = Table(title="Slash Commands", header_style="bold cyan")
        table.add_column("Usage", style="green", no_wrap=True)
        table.add_column("Description")
        for command in commands:
            table.add_row(command.invocation, command.description)
        console.print(table)

    return render_rich(_render)


def render_rich(render_fn: Renderer, width: Optional[int] = None) -> str:
    """Capture what ``render_fn`` prints as ANSI text instead of printing it."""

    columns = width or shutil.get_terminal_size(fallback=(80, 24)).columns
    buffer_console = Console(
        file=StringIO(),
        record=True,
        force_terminal=True,
        color_system="auto",
        width=max(20, columns),
    )
    render_fn(buffer_console)
    return buffer_console.export_text(styles=True)


__all__ = [
    "CommandRouter",
    "SlashCommand",
    "SlashCommandContext",
    "render_help_table",
    "render_rich",
]
