"""User-visible notices raised during publish cycles."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Tuple

from rich.console import Console
from rich.panel import Panel
from rich.text import Text


class Notifier(Protocol):
    def notify(self, message: str, *, blocking: bool = False) -> None:
        ...


class ConsoleNotifier:
    """Print notices to the terminal; blocking notices are shown in a panel."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    def notify(self, message: str, *, blocking: bool = False) -> None:
        if blocking:
            self.console.print(
                Panel(Text(message, style="bold"), title="Jade", border_style="red")
            )
        else:
            self.console.print(Text(f"[jade] {message}", style="cyan"))


@dataclass
class RecordingNotifier:
    """Keeps notices in memory instead of displaying them."""

    notices: List[Tuple[str, bool]] = field(default_factory=list)

    def notify(self, message: str, *, blocking: bool = False) -> None:
        self.notices.append((message, blocking))

    @property
    def messages(self) -> List[str]:
        return [message for message, _ in self.notices]

    @property
    def blocking(self) -> List[str]:
        return [message for message, blocking in self.notices if blocking]


__all__ = ["ConsoleNotifier", "Notifier", "RecordingNotifier"]
