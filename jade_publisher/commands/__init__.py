"""Slash command registry."""

from __future__ import annotations

from .active import COMMAND as ACTIVE_COMMAND
from .config import COMMAND as CONFIG_COMMAND
from .help import COMMAND as HELP_COMMAND
from .pending import COMMAND as PENDING_COMMAND
from .publish import PUBLISH_COMMAND, SYNC_COMMAND
from .record import COMMAND as RECORD_COMMAND
from .status import COMMAND as STATUS_COMMAND

COMMANDS = [
    STATUS_COMMAND,
    HELP_COMMAND,
    ACTIVE_COMMAND,
    CONFIG_COMMAND,
    PENDING_COMMAND,
    PUBLISH_COMMAND,
    RECORD_COMMAND,
    SYNC_COMMAND,
]

__all__ = ["COMMANDS"]
