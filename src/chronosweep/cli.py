"""CLI entry point for chronosweep."""

from __future__ import annotations

import signal
import threading
from datetime import timedelta
from pathlib import Path

import click

from .audit import AuditService, Options
from .auth import authenticated_address, get_gmail_service
from .constants import CONFIG_DIR, DEFAULT_FAIL_ON, DEFAULT_RPS, GMAILCTL_BINARY, PAGE_SIZE
from .display import configure_logging, console, create_progress, display_report
from .errors import AuditError
from .export import write_json
from .gmail_client import GmailClient
from .gmailctl import ExportFileLoader, GmailctlRunner
from .lint import parse_fail_on
from .rate import RateLimiter


def _build_service(config_dir: Path, rps: int, loader) -> AuditService:
    try:
        gmail = get_gmail_service(config_dir)
    except FileNotFoundError as e:
        raise click.ClickException(str(e)) from e
    limiter = RateLimiter(rps) if rps > 0 else None
    return AuditService(GmailClient(gmail), limiter=limiter, loader=loader)


def _build_loader(export_file: str | None, gmailctl_config: str | None, gmailctl_bin: str):
    if export_file:
        return ExportFileLoader(export_file)
    return GmailctlRunner(binary=gmailctl_bin, config_dir=gmailctl_config)


def _cancel_on_sigterm() -> threading.Event:
    cancel = threading.Event()
    signal.signal(signal.SIGTERM, lambda signum, frame: cancel.set())
    return cancel


def _run(service: AuditService, options: Options, lint: bool):
    cancel = _cancel_on_sigterm()
    with create_progress("Fetching metadata") as progress:
        task = progress.add_task("fetching", total=None)

        def on_message(fetched: int, listed: int) -> None:
            progress.update(task, completed=fetched, total=listed)

        try:
            if lint:
                return service.run_lint(options, cancel=cancel, callback=on_message)
            return service.run(options, cancel=cancel, callback=on_message)
        except AuditError as e:
            raise click.ClickException(str(e)) from e


def rule_source_options(func):
    """Options selecting where compiled gmailctl filters come from."""
    func = click.option(
        "--gmailctl-bin",
        default=GMAILCTL_BINARY,
        show_default=True,
        envvar="CHRONOSWEEP_GMAILCTL_BIN",
        help="gmailctl executable.",
    )(func)
    func = click.option(
        "--gmailctl-config",
        default=None,
        envvar="CHRONOSWEEP_GMAILCTL_CONFIG",
        help="gmailctl config directory (passed as --config).",
    )(func)
    func = click.option(
        "--export-file",
        default=None,
        type=click.Path(dir_okay=False),
        help="Read filters from a saved 'gmailctl compile --format=json' output.",
    )(func)
    return func


def fetch_options(func):
    func = click.option(
        "--rps",
        default=DEFAULT_RPS,
        show_default=True,
        type=int,
        help="Max Gmail API requests per second (0 disables pacing).",
    )(func)
    func = click.option(
        "--page-size",
        default=PAGE_SIZE,
        show_default=True,
        type=int,
        help="Gmail list page size (<= 500).",
    )(func)
    return func


@click.group()
@click.version_option(version="0.1.0", prog_name="chronosweep")
@click.option(
    "--config-dir",
    default=str(CONFIG_DIR),
    show_default=True,
    envvar="CHRONOSWEEP_CONFIG_DIR",
    type=click.Path(file_okay=False),
    help="Directory holding credentials.json and token.json.",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, config_dir: str, verbose: bool) -> None:
    """chronosweep - audit Gmail against your gmailctl filters."""
    configure_logging(verbose)
    ctx.obj = {"config_dir": Path(config_dir)}


@cli.command()
@click.option("-d", "--days", default=60, show_default=True, type=int, help="Lookback window in days.")
@click.option("-n", "--top", default=30, show_default=True, type=int, help="Top senders/lists to show.")
@click.option("--json", "json_out", default=None, help="Write a JSON report to this relative path.")
@click.option("--no-rules", is_flag=True, help="Skip gmailctl replay; rankings only.")
@rule_source_options
@fetch_options
@click.pass_obj
def audit(
    obj: dict,
    days: int,
    top: int,
    json_out: str | None,
    no_rules: bool,
    export_file: str | None,
    gmailctl_config: str | None,
    gmailctl_bin: str,
    page_size: int,
    rps: int,
) -> None:
    """Rank noisy senders and lists and replay gmailctl filters."""
    loader = None if no_rules else _build_loader(export_file, gmailctl_config, gmailctl_bin)
    service = _build_service(obj["config_dir"], rps, loader)
    options = Options(window=timedelta(days=days), top_n=top, page_size=page_size)

    report = _run(service, options, lint=False)
    display_report(report)

    if json_out:
        try:
            path = write_json(report, json_out)
        except AuditError as e:
            raise click.ClickException(str(e)) from e
        console.print(f"[dim]Report saved to {path}[/dim]")


@cli.command()
@click.option("-d", "--days", default=30, show_default=True, type=int, help="Lookback window in days.")
@click.option(
    "--fail-on",
    default=DEFAULT_FAIL_ON,
    show_default=True,
    envvar="CHRONOSWEEP_FAIL_ON",
    help="Comma list of conditions that fail the build: dead, missing-label, conflict.",
)
@rule_source_options
@fetch_options
@click.pass_obj
def lint(
    obj: dict,
    days: int,
    fail_on: str,
    export_file: str | None,
    gmailctl_config: str | None,
    gmailctl_bin: str,
    page_size: int,
    rps: int,
) -> None:
    """Check gmailctl filters for dead rules, missing labels and conflicts."""
    loader = _build_loader(export_file, gmailctl_config, gmailctl_bin)
    service = _build_service(obj["config_dir"], rps, loader)
    options = Options(window=timedelta(days=days), page_size=page_size)

    report = _run(service, options, lint=True)
    click.echo(report.human_summary(), nl=False)

    if report.should_fail(parse_fail_on(fail_on)):
        click.get_current_context().exit(1)


@cli.command()
@click.pass_obj
def auth(obj: dict) -> None:
    """Test Gmail authentication."""
    try:
        address = authenticated_address(obj["config_dir"])
    except FileNotFoundError as e:
        raise click.ClickException(str(e)) from e
    console.print(f"Authenticated as [bold]{address}[/bold]")
