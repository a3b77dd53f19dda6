"""
Interpreter Booking CLI.

Command-line interface for operating the booking engine.

Usage:
    booking serve --port 8000
    booking migrate
    booking expire-sweep
    booking eligible 42
    booking resend-push 42
    booking expiry "2026-06-15 10:00" "2026-06-14 09:00"
"""

import asyncio
import json
import logging
import sys
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import TypeVar

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from interpreter_booking import __version__
from interpreter_booking.booking.expiry import will_expire_at
from interpreter_booking.booking.matching import EligibilityMatcher
from interpreter_booking.booking.service import BookingService, build_booking_service
from interpreter_booking.core.exceptions import BookingError
from interpreter_booking.core.models import ActingUser, TranslatorProfile, UserRole
from interpreter_booking.core.results import BookingResult
from interpreter_booking.notifications.channels import HttpNotificationChannel
from interpreter_booking.notifications.dispatcher import DispatchReport
from interpreter_booking.storage import (
    close_connection,
    get_connection,
    get_directory,
    get_job_store,
)
from interpreter_booking.storage.migrations import run_migrations

console = Console()

T = TypeVar("T")

# Identity used for scheduled maintenance commands
SYSTEM_USER = ActingUser(id=0, role=UserRole.SUPERADMIN)


# =============================================================================
# Helper Functions
# =============================================================================


def _run(description: str, work: Callable[[], Awaitable[T]]) -> T:
    """Run a coroutine behind a spinner, exiting on booking errors."""

    async def _with_cleanup() -> T:
        try:
            return await work()
        finally:
            await close_connection()

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        progress.add_task(description=description, total=None)
        try:
            return asyncio.run(_with_cleanup())
        except BookingError as e:
            console.print(f"[red]Error:[/red] {e.message}")
            sys.exit(1)


async def _with_service(action: Callable[[BookingService], Awaitable[T]]) -> T:
    """Build a service over the configured database and notification channel."""
    store = await get_job_store()
    directory = await get_directory()
    async with HttpNotificationChannel() as channel:
        service = build_booking_service(store, directory, channel)
        return await action(service)


def _print_report(report: DispatchReport) -> None:
    color = "red" if report.failed else "green"
    console.print(
        f"[{color}]{report.channel}[/{color}] job {report.job_id}: "
        f"{report.sent} sent, {report.delayed} delayed, "
        f"{len(report.skipped)} skipped, {report.failed} failed"
    )
    for failure in report.failures:
        console.print(f"  [red]•[/red] {failure.recipient}: {failure.error}")


# =============================================================================
# CLI Commands
# =============================================================================


@click.group()
@click.version_option(__version__, prog_name="booking")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """
    Interpreter Booking - operate the booking lifecycle engine.

    \b
    Examples:
        booking serve --port 8000
        booking expire-sweep
        booking eligible 42
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


@cli.command()
@click.option("--host", default="127.0.0.1", help="Host to bind to")
@click.option("--port", default=8000, type=int, help="Port to bind to")
@click.option("--reload", is_flag=True, help="Enable auto-reload for development")
def serve(host: str, port: int, reload: bool) -> None:
    """Start the REST API server."""
    import uvicorn

    console.print(f"[green]Starting API server at http://{host}:{port}[/green]")
    console.print("[dim]Press Ctrl+C to stop[/dim]\n")

    uvicorn.run(
        "interpreter_booking.api.main:app",
        host=host,
        port=port,
        reload=reload,
    )


@cli.command()
def migrate() -> None:
    """Create or update the database schema."""

    async def _migrate() -> None:
        connection = await get_connection()
        if not connection.settings.auto_migrate and connection.engine is not None:
            await run_migrations(connection.engine)

    _run("Migrating...", _migrate)
    console.print("[green]Database schema is up to date[/green]")


@cli.command("expire-sweep")
@click.option("--dry-run", is_flag=True, help="Only list the bookings that would expire")
def expire_sweep(dry_run: bool) -> None:
    """Time out pending bookings whose acceptance deadline has passed."""

    async def _sweep(service: BookingService) -> list[tuple[int, BookingResult | None]]:
        jobs = await service.expired_jobs()
        if dry_run:
            return [(job.id, None) for job in jobs]
        results = []
        for job in jobs:
            results.append((job.id, await service.expire_job(SYSTEM_USER, job.id)))
        return results

    outcomes = _run("Expiring bookings...", lambda: _with_service(_sweep))

    if not outcomes:
        console.print("[yellow]No expired bookings.[/yellow]")
        return

    table = Table(title="Expired Bookings", show_header=True, header_style="bold cyan")
    table.add_column("Job", style="bold white")
    table.add_column("Result")

    for job_id, result in outcomes:
        if result is None:
            table.add_row(str(job_id), "[dim]would expire[/dim]")
        elif result.ok:
            table.add_row(str(job_id), "[green]timed out[/green]")
        else:
            table.add_row(str(job_id), f"[yellow]{result.message}[/yellow]")

    console.print(table)


@cli.command("resend-push")
@click.argument("job_id", type=int)
def resend_push(job_id: int) -> None:
    """Push a booking offer to all eligible translators again."""
    report = _run(
        "Sending...", lambda: _with_service(lambda s: s.resend_notifications(job_id))
    )
    _print_report(report)


@cli.command("resend-sms")
@click.argument("job_id", type=int)
def resend_sms(job_id: int) -> None:
    """Text a booking offer to all eligible translators again."""
    report = _run(
        "Sending...", lambda: _with_service(lambda s: s.resend_sms_notifications(job_id))
    )
    _print_report(report)


@cli.command()
@click.argument("job_id", type=int)
@click.option("--json", "as_json", is_flag=True, help="Print JSON instead of a table")
def eligible(job_id: int, as_json: bool) -> None:
    """List the translators a booking would be offered to."""

    async def _eligible() -> list[TranslatorProfile]:
        store = await get_job_store()
        matcher = EligibilityMatcher(await get_directory(), store)
        return await matcher.find_eligible(await store.find_or_fail(job_id))

    translators = _run("Matching...", _eligible)

    if as_json:
        data = [t.model_dump(mode="json") for t in translators]
        click.echo(json.dumps(data, indent=2, ensure_ascii=False, default=str))
        return

    if not translators:
        console.print("[yellow]No eligible translators.[/yellow]")
        return

    table = Table(
        title=f"Eligible Translators for Job {job_id}",
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("ID", style="bold white")
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Levels")
    table.add_column("Night")

    for t in translators:
        table.add_row(
            str(t.user_id),
            t.name,
            t.translator_type.value,
            ", ".join(sorted(level.value for level in t.levels)) or "-",
            "[red]off[/red]" if t.not_get_nighttime else "[green]on[/green]",
        )

    console.print(table)


@cli.command()
@click.argument("due", type=click.DateTime(["%Y-%m-%d %H:%M"]))
@click.argument("created", type=click.DateTime(["%Y-%m-%d %H:%M"]))
def expiry(due: datetime, created: datetime) -> None:
    """
    Show when a booking created at CREATED for DUE would expire.

    \b
    Example:
        booking expiry "2026-06-15 10:00" "2026-06-14 09:00"
    """
    deadline = will_expire_at(due, created)
    console.print(f"[bold]Expires at:[/bold] {deadline:%Y-%m-%d %H:%M}")


if __name__ == "__main__":
    cli()
