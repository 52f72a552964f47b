"""Rich-based display functions for chronosweep."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.syntax import Syntax
from rich.table import Table

from .constants import PREVIEW_SUBJECT_DISPLAY_LIMIT
from .lint import format_window
from .models import Findings, Report

console = Console()
err_console = Console(stderr=True)


def configure_logging(verbose: bool = False) -> None:
    """Route chronosweep log records to stderr through rich."""
    logger = logging.getLogger("chronosweep")
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)
    handler = RichHandler(console=err_console, show_path=False, log_time_format="[%X]")
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)


def _truncate(text: str, limit: int = PREVIEW_SUBJECT_DISPLAY_LIMIT) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 1] + "…"


def create_progress(description: str) -> Progress:
    """Create a configured Rich Progress bar."""
    return Progress(
        SpinnerColumn(),
        TextColumn(f"[bold blue]{description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=err_console,
    )


def _ranking_table(title: str, key_header: str, rows: list[tuple[str, int, str]]) -> Table:
    table = Table(title=title)
    table.add_column("#", justify="right", style="dim")
    table.add_column(key_header)
    table.add_column("Count", justify="right")
    table.add_column("Preview subject")
    for idx, (key, count, subject) in enumerate(rows, start=1):
        table.add_row(str(idx), key, str(count), _truncate(subject))
    return table


def display_findings(findings: Findings) -> None:
    """Print dead rules, missing labels and conflicts, colored by severity."""
    if findings.is_empty():
        console.print("[green]No lint findings.[/green]")
        return

    lines: list[str] = []
    for fr in findings.dead_rules:
        lines.append(f"[yellow]dead rule:[/yellow] {fr.name} [dim]({fr.reason})[/dim]")
    for label in findings.missing_labels:
        lines.append(f"[red]missing label:[/red] {label}")
    for cf in findings.conflicts:
        lines.append(f"[red]conflict:[/red] {', '.join(cf.rules)} [dim]({cf.description})[/dim]")
    console.print(Panel("\n".join(lines), title="Lint findings"))


def display_report(report: Report) -> None:
    """Render a full audit report."""
    console.print(
        f"[bold]chronosweep audit[/bold] - window {format_window(report.window)} "
        f"({report.total} messages)"
    )
    if report.total == 0:
        console.print("[dim]No messages in window.[/dim]")
        return

    if report.top_senders:
        rows = [(s.domain, s.count, s.preview_subject) for s in report.top_senders]
        console.print(_ranking_table("Top senders", "Domain", rows))
    if report.top_lists:
        rows = [(ls.list_id, ls.count, ls.preview_subject) for ls in report.top_lists]
        console.print(_ranking_table("Top lists", "List-Id", rows))

    if report.coverage:
        table = Table(title="Label coverage")
        table.add_column("Label")
        table.add_column("Messages", justify="right")
        for name, count in report.coverage.items():
            table.add_row(name, str(count))
        console.print(table)

    if report.suggestions.archive_rules:
        console.print("[bold]Suggested gmailctl snippets:[/bold]")
        for snippet in report.suggestions.archive_rules:
            console.print(Syntax(snippet, "jsonnet", theme="ansi_dark"))

    display_findings(report.findings)
