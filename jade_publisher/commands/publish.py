"""Slash commands that run publish cycles."""

from __future__ import annotations

import json
from typing import List

from rich.console import Console
from rich.table import Table

from ..slash_commands import SlashCommand, SlashCommandContext, render_rich
from ..sync import EntryOutcome, SyncReport

OUTCOME_STYLES = {
    EntryOutcome.SYNCED: "green",
    EntryOutcome.SKIPPED: "yellow",
    EntryOutcome.FAILED: "red",
}


def _render_report(report: SyncReport, *, verbose: bool) -> str:
    label = "publish" if report.mode == "publish" else "sync"
    if not report.committed:
        return f"[{label}] Not committed: {report.message}"

    def _render(console: Console) -> None:
        console.print(f"[bold]{label.capitalize()} committed:[/bold] {report.summary()}")
        shown = report.results if verbose else [r for r in report.results if r.outcome is not EntryOutcome.SYNCED]
        if not shown:
            return
        table = Table(show_header=True)
        table.add_column("Path", style="cyan")
        table.add_column("Outcome")
        table.add_column("Detail", style="dim")
        for result in shown:
            style = OUTCOME_STYLES[result.outcome]
            detail = result.error or ("uploaded" if result.uploaded else "deduplicated")
            table.add_row(result.path, f"[{style}]{result.outcome.value}[/]", detail)
        console.print(table)

    return render_rich(_render)


def _verbose(context: SlashCommandContext, args: List[str]) -> bool:
    if any(arg in {"-v", "--verbose"} for arg in args):
        return True
    return bool(context.runtime.config.section("ui").get("verbose", False))


def _output(context: SlashCommandContext, args: List[str], report: SyncReport) -> str:
    if "--json" in args:
        return json.dumps(report.to_dict(), indent=2)
    return _render_report(report, verbose=_verbose(context, args))


def _publish_handler(context: SlashCommandContext, args: List[str]) -> str:
    """Publish pending changes incrementally."""
    return _output(context, args, context.runtime.publish())


def _sync_handler(context: SlashCommandContext, args: List[str]) -> str:
    """Resync the whole vault and prune remote entries that are gone."""
    return _output(context, args, context.runtime.sync_vault())


PUBLISH_COMMAND = SlashCommand(
    name="publish",
    description="Publish pending changes to the Jade service.",
    usage="[-v] [--json]",
    handler=_publish_handler,
    requires_ready=True,
)

SYNC_COMMAND = SlashCommand(
    name="sync",
    description="Resync the entire vault; the remote prunes files that are gone.",
    usage="[-v] [--json]",
    handler=_sync_handler,
    requires_ready=True,
)
