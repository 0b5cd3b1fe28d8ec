# jade_publisher/app.py
"""
Interactive operator loop for the Jade publisher.

File events are normally produced by the host's watcher and fed through
``PublisherRuntime.handle_event``; here they can also be entered by hand
with ``/record``.
"""

from __future__ import annotations

import logging
import os
import shlex
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.text import Text

from . import __version__
from .commands import COMMANDS
from .configuration import (
    ConfigurationBundle,
    Diagnostic,
    load_runtime_configuration,
    resolve_vault_dir,
)
from .logging_utils import describe_log_path, setup_logging
from .runtime import PublisherRuntime, build_runtime
from .slash_commands import CommandRouter

logger = logging.getLogger("jade_publisher")

EXIT_WORDS = {"quit", "exit", "/quit", "/exit"}
LEVEL_STYLES = {"error": "red", "warning": "yellow", "info": "dim"}


def build_router(runtime: PublisherRuntime) -> CommandRouter:
    router = CommandRouter(runtime, metadata={"version": __version__})
    for command in COMMANDS:
        router.register(command)
    return router


def emit_configuration_report(config: ConfigurationBundle, console: Optional[Console] = None) -> None:
    """Show which files were read and every diagnostic raised while reading them."""

    console = console or Console()
    loaded = len(config.files_loaded)
    if not config.diagnostics:
        print(f"[config] {loaded} file(s) read, no problems found.")
        return

    print(f"[config] {loaded} file(s) read, {len(config.diagnostics)} problem(s):")
    for diag in config.diagnostics:
        where = describe_log_path(diag.source, config.vault_dir) if diag.source else "-"
        style = LEVEL_STYLES.get(diag.level, "")
        console.print(
            Text.assemble("  ", (diag.level.upper(), style), f" {diag.message} ({where})")
        )


def execute_cli_command(command_line: str, router: CommandRouter) -> str:
    """Run one slash command line (without the leading slash)."""

    if not command_line.strip():
        return ""
    try:
        name, *args = shlex.split(command_line)
    except ValueError as e:
        return f"[router] Could not parse command: {e}"
    logger.info("Executing /%s with %d argument(s)", name, len(args))
    return router.handle(name, args)


def _start_logging(config: ConfigurationBundle) -> None:
    logging_cfg = config.section("logging")
    level = os.environ.get("JADE_LOG_LEVEL") or logging_cfg.get("level") or "INFO"
    log_path = setup_logging(
        config.vault_dir,
        level,
        structured=bool(logging_cfg.get("structured", True)),
        console=False,
    )
    config.log_path = log_path
    if Path(describe_log_path(log_path, config.vault_dir)).is_absolute():
        config.diagnostics.append(
            Diagnostic(
                level="warning",
                message=f"Vault is not writable for logs; using '{log_path}' instead.",
                source=log_path,
            )
        )
    logger.info("Jade publisher %s logging to %s", __version__, log_path)


def initialize(vault_dir: Optional[Path] = None) -> PublisherRuntime:
    """Load configuration, start logging and build the runtime."""

    config = load_runtime_configuration(vault_dir or resolve_vault_dir())
    if config.status != "missing":
        _start_logging(config)
    return build_runtime(config)


def main() -> None:
    """Entry point for `python -m jade_publisher`."""

    console = Console()
    runtime = initialize()
    emit_configuration_report(runtime.config, console)
    router = build_router(runtime)
    console.print(
        f"[bold]Jade Publisher {__version__}[/bold] :: {runtime.config.vault_dir} "
        "(type /help for commands)"
    )

    try:
        while True:
            try:
                line = input("> ").strip()
            except (EOFError, KeyboardInterrupt):
                print()
                break
            if not line:
                continue
            if line.lower() in EXIT_WORDS:
                break
            if not line.startswith("/"):
                print("[router] Commands start with '/'. Use /help for a list.")
                continue
            print(execute_cli_command(line[1:], router))
    finally:
        if runtime.config.status != "missing":
            runtime.save()
        print("Bye.")
